from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from scribe.dependencies import (
    get_current_user,
    get_finalizer,
    get_store,
    get_upload_pipeline,
    owned_session,
)
from scribe.models import Profile, Session
from scribe.services.finalizer import SessionFinalizer
from scribe.services.store import SessionStore
from scribe.services.uploads import UploadPipeline

router = APIRouter(prefix="/api", tags=["sessions"])


# ------------------------------------------------------------------
# Request bodies
# ------------------------------------------------------------------


class SessionCreate(BaseModel):
    name: str = ""
    profile: Profile = Profile.MEETING


class SessionAction(BaseModel):
    action: Literal["finish", "rename"]
    name: str | None = None


class TranscriptCreate(BaseModel):
    transcript: str
    profile: Profile = Profile.MEETING
    name: str = ""


def _default_session_name(profile: Profile) -> str:
    return f"{profile.value.capitalize()} {date.today().isoformat()}"


# ------------------------------------------------------------------
# Session endpoints
# ------------------------------------------------------------------


@router.post("/sessions")
async def create_session(
    body: SessionCreate,
    user_id: str = Depends(get_current_user),
    store: SessionStore = Depends(get_store),
) -> dict:
    name = body.name.strip() or _default_session_name(body.profile)
    session = await store.create_session(user_id, name, body.profile)
    return {"session": session.to_dict()}


@router.get("/sessions")
async def list_sessions(
    user_id: str = Depends(get_current_user),
    store: SessionStore = Depends(get_store),
) -> dict:
    sessions = await store.list_sessions(user_id)
    return {"sessions": [s.to_dict() for s in sessions]}


@router.get("/sessions/{session_id}")
async def get_session(
    session: Session = Depends(owned_session),
    store: SessionStore = Depends(get_store),
) -> dict:
    """Session with its chunks (by seq) and notes (by creation)."""
    return await store.get_session_detail(session.id)


@router.patch("/sessions/{session_id}")
async def update_session(
    body: SessionAction,
    session: Session = Depends(owned_session),
    store: SessionStore = Depends(get_store),
    finalizer: SessionFinalizer = Depends(get_finalizer),
) -> dict:
    if body.action == "finish":
        updated = await finalizer.finalize(session.id)
    else:
        if not body.name or not body.name.strip():
            raise HTTPException(status_code=400, detail="A new name is required.")
        updated = await store.update_session(session.id, name=body.name.strip())
    return {"session": updated.to_dict()}


# ------------------------------------------------------------------
# Already transcribed text
# ------------------------------------------------------------------


@router.post("/transcripts")
async def save_transcript(
    body: TranscriptCreate,
    user_id: str = Depends(get_current_user),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
) -> dict:
    """Create a finished session from text transcribed elsewhere."""
    if not body.transcript.strip():
        raise HTTPException(status_code=400, detail="Transcript is empty.")
    name = body.name.strip() or _default_session_name(body.profile)
    session = await pipeline.save_transcript(
        user_id, body.transcript, profile=body.profile, name=name
    )
    return {"session_id": session.id, "final_summary": session.final_summary}
