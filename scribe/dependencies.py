"""FastAPI dependencies: caller identity, ownership checks and service wiring.

Authentication happens upstream; the fronting auth layer passes the
caller's identity in the ``X-User-Id`` header.
"""

from fastapi import Depends, Header, HTTPException

from scribe.errors import NotFound, Unauthorized
from scribe.models import Session
from scribe.services.finalizer import SessionFinalizer
from scribe.services.notes import NotesService
from scribe.services.pipeline import ChunkProcessor
from scribe.services.store import SessionStore
from scribe.services.transcription import TranscriptionService
from scribe.services.uploads import UploadPipeline


async def get_current_user(x_user_id: str | None = Header(default=None)) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not signed in")
    return x_user_id


def get_store() -> SessionStore:
    return SessionStore()


def get_transcriber() -> TranscriptionService:
    return TranscriptionService()


def get_notes_service() -> NotesService:
    return NotesService()


def get_processor(
    store: SessionStore = Depends(get_store),
    transcriber: TranscriptionService = Depends(get_transcriber),
    notes: NotesService = Depends(get_notes_service),
) -> ChunkProcessor:
    return ChunkProcessor(store, transcriber, notes)


def get_finalizer(
    store: SessionStore = Depends(get_store),
    notes: NotesService = Depends(get_notes_service),
) -> SessionFinalizer:
    return SessionFinalizer(store, notes)


def get_upload_pipeline(
    store: SessionStore = Depends(get_store),
    processor: ChunkProcessor = Depends(get_processor),
    finalizer: SessionFinalizer = Depends(get_finalizer),
) -> UploadPipeline:
    return UploadPipeline(store, processor, finalizer)


async def load_owned_session(store: SessionStore, session_id: str, user_id: str) -> Session:
    """Fetch *session_id* and verify it belongs to *user_id*."""
    session = await store.get_session(session_id)
    if session is None:
        raise NotFound(f"Session {session_id} not found")
    if session.owner_id != user_id:
        raise Unauthorized(f"Session {session_id} belongs to another user")
    return session


async def owned_session(
    session_id: str,
    store: SessionStore = Depends(get_store),
    user_id: str = Depends(get_current_user),
) -> Session:
    return await load_owned_session(store, session_id, user_id)
