import asyncio
import logging
from concurrent.futures import Future
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from scribe.dependencies import get_finalizer, get_processor, owned_session
from scribe.models import AudioPiece, Session, SessionStatus
from scribe.recording import RecordingWorker
from scribe.services.finalizer import SessionFinalizer
from scribe.services.pipeline import ChunkProcessor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["recording"])

# In-memory registry of active server-side recordings.
# session_id -> {"worker": RecordingWorker, "futures": [Future]}
_active: dict[str, dict[str, Any]] = {}


@router.post("/sessions/{session_id}/recording/start")
async def start_recording(
    session: Session = Depends(owned_session),
    processor: ChunkProcessor = Depends(get_processor),
) -> dict:
    """Start microphone capture; every flushed piece is processed as a chunk."""
    if session.id in _active:
        raise HTTPException(
            status_code=409, detail="Recording already active for this session."
        )
    if session.status != SessionStatus.ACTIVE:
        raise HTTPException(
            status_code=409, detail=f"Session is {session.status.value}; cannot record."
        )

    loop = asyncio.get_running_loop()
    worker = RecordingWorker(session.id)
    futures: list[Future] = []

    def _on_piece(piece: AudioPiece) -> None:
        """Called from the worker thread. Bridges to the event loop."""
        futures.append(
            asyncio.run_coroutine_threadsafe(
                processor.process(
                    session.id,
                    piece.index,
                    piece.data,
                    session.profile,
                    filename=piece.filename,
                    duration_seconds=piece.duration_seconds,
                ),
                loop,
            )
        )

    worker.on_piece(_on_piece)

    try:
        worker.start()
    except Exception as e:
        logger.exception("Could not start recording for session %s", session.id)
        raise HTTPException(status_code=500, detail=f"Could not open microphone: {e}")

    _active[session.id] = {"worker": worker, "futures": futures}
    return {"session_id": session.id, "status": "recording"}


@router.post("/sessions/{session_id}/recording/stop")
async def stop_recording(
    session: Session = Depends(owned_session),
    finalizer: SessionFinalizer = Depends(get_finalizer),
) -> dict:
    """Stop capture, wait for in-flight pieces, then finalize the session."""
    entry = _active.pop(session.id, None)
    if entry is None:
        raise HTTPException(
            status_code=400, detail="No active recording for this session."
        )

    worker: RecordingWorker = entry["worker"]
    await asyncio.to_thread(worker.stop)

    results = await asyncio.gather(
        *(asyncio.wrap_future(f) for f in entry["futures"]), return_exceptions=True
    )
    failed = [r for r in results if isinstance(r, BaseException)]
    for error in failed:
        logger.warning("Session %s: piece failed during recording: %s", session.id, error)

    updated = await finalizer.finalize(session.id)
    return {
        "session": updated.to_dict(),
        "pieces": worker.pieces_emitted,
        "failed_pieces": len(failed),
    }
