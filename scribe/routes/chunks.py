import math

from fastapi import APIRouter, Depends, File, Form, UploadFile

from scribe.config import settings
from scribe.dependencies import get_processor, owned_session
from scribe.errors import Conflict
from scribe.models import Session, SessionStatus
from scribe.services.pipeline import ChunkProcessor
from scribe.services.splitter import check_size

router = APIRouter(prefix="/api", tags=["chunks"])


@router.post("/sessions/{session_id}/chunks")
async def submit_chunk(
    audio: UploadFile = File(...),
    seq: int = Form(..., ge=0),
    seconds: float = Form(0.0, ge=0),
    session: Session = Depends(owned_session),
    processor: ChunkProcessor = Depends(get_processor),
) -> dict:
    """Transcribe one audio piece and derive its note.

    Returns empty strings when nothing was heard.  Failures abort this
    piece only; the session stays active.
    """
    if session.status == SessionStatus.FAILED:
        raise Conflict(f"Session {session.id} has failed and accepts no more chunks")

    data = await audio.read()
    check_size(len(data), settings.direct_upload_max_bytes)

    result = await processor.process(
        session.id,
        seq,
        data,
        session.profile,
        filename=audio.filename or f"piece-{seq}.webm",
        duration_seconds=int(math.floor(seconds + 0.5)),
    )
    return result.to_dict()
