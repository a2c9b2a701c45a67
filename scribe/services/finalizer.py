import logging

from scribe.errors import Conflict
from scribe.models import Session, SessionStatus
from scribe.services.notes import NotesService
from scribe.services.store import SessionStore

logger = logging.getLogger(__name__)


class SessionFinalizer:
    """Close a session with one consolidated summary over every chunk.

    Finalizing an already completed session runs again and overwrites the
    summary.  A failed session is terminal and cannot be finalized.
    """

    def __init__(self, store: SessionStore, notes: NotesService | None = None) -> None:
        self.store = store
        self.notes = notes or NotesService()

    async def finalize(self, session_id: str) -> Session:
        session = await self.store.require_session(session_id)
        if session.status == SessionStatus.FAILED:
            raise Conflict(f"Session {session_id} has failed and cannot be finalized")

        chunks = await self.store.list_chunks(session_id)
        transcripts = [c.transcript for c in chunks if c.transcript and c.transcript.strip()]

        final_summary = ""
        if transcripts:
            final_summary = await self.notes.generate_final_summary(transcripts, session.profile)

        # the session may have failed while the summary was being generated
        updated = await self.store.complete_session(session_id, final_summary)
        logger.info(
            "Session %s finalized from %d/%d non-empty chunks",
            session_id, len(transcripts), len(chunks),
        )
        return updated

    async def fail(self, session_id: str) -> None:
        """Mark an active session failed. No-op for sessions already terminal."""
        if not await self.store.mark_failed(session_id):
            logger.info("Session %s was not active; left as is", session_id)
