from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from scribe.dependencies import get_store, owned_session
from scribe.models import Session
from scribe.services.live import LiveUpdateChannel
from scribe.services.store import SessionStore

router = APIRouter(prefix="/api", tags=["stream"])


@router.get("/sessions/{session_id}/stream")
async def stream_session(
    request: Request,
    session: Session = Depends(owned_session),
    store: SessionStore = Depends(get_store),
) -> StreamingResponse:
    """Server-sent events with new notes and rolling-summary changes.

    Ownership is checked once, here; the poll loop does not re-check.
    """
    channel = LiveUpdateChannel(store, session.id)
    return StreamingResponse(
        channel.stream(request.is_disconnected),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache, no-transform",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable buffering in nginx
        },
    )
