import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from scribe.config import settings
from scribe.database import init_db
from scribe.errors import ScribeError
from scribe.routes import chunks, recording, sessions, stream, uploads

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Configure logging and create SQLite tables on startup. Nothing to tear
    down on shutdown (RecordingWorker threads are daemon threads)."""
    logging.basicConfig(
        level=settings.log_level, format="%(levelname)s %(name)s: %(message)s"
    )
    await init_db()
    logger.info(
        "scribe ready (db=%s, transcription=%s)",
        settings.database_path, settings.transcription_backend,
    )
    yield


app = FastAPI(
    title="scribe",
    description="Chunked transcription with rolling notes and final summaries",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(sessions.router)
app.include_router(chunks.router)
app.include_router(uploads.router)
app.include_router(stream.router)
app.include_router(recording.router)


@app.exception_handler(ScribeError)
async def scribe_error_handler(_request: Request, exc: ScribeError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}
