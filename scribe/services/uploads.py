import asyncio
import logging
import os
from dataclasses import dataclass

from scribe.config import settings
from scribe.models import AudioPiece, Profile, Session
from scribe.services.finalizer import SessionFinalizer
from scribe.services.pipeline import ChunkProcessor
from scribe.services.splitter import (
    SplitStrategy,
    check_size,
    split_bytes,
    split_duration,
)
from scribe.services.store import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    session: Session
    pieces: int

    def to_dict(self) -> dict:
        return {"session_id": self.session.id, "pieces": self.pieces, "session": self.session.to_dict()}


def default_name(filename: str, fallback: str = "Upload") -> str:
    return os.path.splitext(os.path.basename(filename))[0] or fallback


class UploadPipeline:
    """Whole-file upload: split, process every piece in order, finalize.

    Unlike per-chunk submission, any error after the session exists marks
    the session ``failed`` before being re-raised.
    """

    def __init__(
        self,
        store: SessionStore,
        processor: ChunkProcessor,
        finalizer: SessionFinalizer,
    ) -> None:
        self.store = store
        self.processor = processor
        self.finalizer = finalizer

    async def run(
        self,
        owner_id: str,
        data: bytes,
        filename: str,
        *,
        profile: Profile = Profile.MEETING,
        name: str = "",
        strategy: SplitStrategy = SplitStrategy.BYTES,
    ) -> UploadResult:
        check_size(len(data))
        session = await self.store.create_session(owner_id, name or default_name(filename), profile)

        try:
            pieces = await self._split(data, filename, SplitStrategy(strategy))
            logger.info(
                "Session %s: %s upload split into %d piece(s)",
                session.id, SplitStrategy(strategy).value, len(pieces),
            )
            for piece in pieces:
                await self.processor.process(
                    session.id,
                    piece.index,
                    piece.data,
                    session.profile,
                    filename=piece.filename,
                    duration_seconds=piece.duration_seconds,
                )
            session = await self.finalizer.finalize(session.id)
        except Exception:
            logger.exception("Upload pipeline failed for session %s", session.id)
            await self.finalizer.fail(session.id)
            raise

        return UploadResult(session=session, pieces=len(pieces))

    async def save_transcript(
        self,
        owner_id: str,
        transcript: str,
        *,
        profile: Profile = Profile.MEETING,
        name: str = "",
    ) -> Session:
        """Store an already transcribed text as chunk 0 and finalize it."""
        session = await self.store.create_session(owner_id, name or "Transcript", profile)
        try:
            await self.store.create_chunk(session.id, 0, transcript.strip())
            return await self.finalizer.finalize(session.id)
        except Exception:
            logger.exception("Saving transcript failed for session %s", session.id)
            await self.finalizer.fail(session.id)
            raise

    @staticmethod
    async def _split(data: bytes, filename: str, strategy: SplitStrategy) -> list[AudioPiece]:
        if strategy == SplitStrategy.DURATION:
            return await asyncio.to_thread(split_duration, data)
        # small files go up whole
        if len(data) <= settings.direct_upload_max_bytes:
            return [AudioPiece(data=data, index=0, total_pieces=1, filename=filename)]
        return split_bytes(data, filename)
