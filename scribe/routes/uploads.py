import os

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from scribe.dependencies import get_current_user, get_upload_pipeline
from scribe.models import Profile
from scribe.services.splitter import MIME_TYPES, SplitStrategy
from scribe.services.uploads import UploadPipeline

router = APIRouter(prefix="/api", tags=["uploads"])


@router.post("/uploads")
async def upload_file(
    file: UploadFile = File(...),
    profile: Profile = Form(Profile.MEETING),
    name: str = Form(""),
    strategy: SplitStrategy = Form(SplitStrategy.BYTES),
    user_id: str = Depends(get_current_user),
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
) -> dict:
    """Upload a whole recording, process every piece and finalize.

    Any failure after the session is created marks it ``failed``.
    """
    filename = file.filename or "upload.webm"
    ext = os.path.splitext(filename)[1].lstrip(".").lower()
    if ext not in MIME_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: .{ext}. Use one of: "
            + ", ".join(f".{e}" for e in MIME_TYPES),
        )

    data = await file.read()
    result = await pipeline.run(
        user_id,
        data,
        filename,
        profile=profile,
        name=name.strip(),
        strategy=strategy,
    )
    return result.to_dict()
