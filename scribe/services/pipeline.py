import logging

from scribe.errors import ScribeError, StoreError, TranscriptionFailed
from scribe.models import ChunkResult, Profile
from scribe.services.notes import NotesService
from scribe.services.store import SessionStore
from scribe.services.transcription import TranscriptionService

logger = logging.getLogger(__name__)


class ChunkProcessor:
    """Turn one audio piece into a persisted Chunk and Note.

    Steps run strictly in order: context gathering needs this chunk's
    write, and note generation needs the context.  The processor does not
    enforce submission order; callers send pieces of one source in
    increasing ``seq``.  Concurrent calls for the same session may each
    miss the other's chunk in their context window.
    """

    def __init__(
        self,
        store: SessionStore,
        transcriber: TranscriptionService | None = None,
        notes: NotesService | None = None,
    ) -> None:
        self.store = store
        self.transcriber = transcriber or TranscriptionService()
        self.notes = notes or NotesService()

    async def process(
        self,
        session_id: str,
        seq: int,
        audio: bytes,
        profile: Profile,
        *,
        filename: str = "audio.webm",
        duration_seconds: int = 0,
    ) -> ChunkResult:
        # 1. Transcribe
        try:
            transcript = (await self.transcriber.transcribe(audio, filename) or "").strip()
        except ScribeError:
            raise
        except Exception as e:
            raise TranscriptionFailed(f"Transcription failed for chunk {seq}: {e}") from e
        if not transcript:
            logger.info("Session %s chunk %d: nothing transcribed, skipping", session_id, seq)
            return ChunkResult()

        # 2. Persist chunk
        chunk = await self.store.create_chunk(session_id, seq, transcript, duration_seconds)

        # 3. Prior context from the other persisted chunks, in seq order
        previous = [
            c.transcript for c in await self.store.list_chunks(session_id) if c.id != chunk.id
        ]

        # 4. Notes + rolling summary
        generated = await self.notes.generate_notes(transcript, profile, previous)

        # 5. Persist note
        await self.store.create_note(
            session_id,
            generated.content,
            generated.rolling_summary,
            chunk_id=chunk.id,
        )

        # 6. Touch session (non-critical)
        try:
            await self.store.touch_session(session_id)
        except StoreError as e:
            logger.warning("Could not touch session %s: %s", session_id, e)

        logger.info("Session %s chunk %d processed (%d chars)", session_id, seq, len(transcript))
        return ChunkResult(
            transcript=transcript,
            notes=generated.content,
            rolling_summary=generated.rolling_summary,
            chunk_id=chunk.id,
        )
