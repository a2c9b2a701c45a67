import asyncio

import pytest
from fastapi.testclient import TestClient

from scribe.database import init_db
from scribe.dependencies import get_notes_service, get_store, get_transcriber
from scribe.main import app
from scribe.services.notes import NotesService
from scribe.services.store import SessionStore


class FakeGroq:
    """Stands in for GroqClient. Records every request it receives."""

    def __init__(self, json_replies: list | None = None, final_summary: str = "Final summary") -> None:
        self.json_replies = list(json_replies or [])
        self.final_summary = final_summary
        self.json_calls: list[list[dict]] = []
        self.chat_calls: list[list[dict]] = []

    async def chat_json(self, messages, response_schema, **kwargs):
        self.json_calls.append(messages)
        if self.json_replies:
            reply = self.json_replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return reply
        n = len(self.json_calls)
        return {"notes": [f"point {n}"], "rollingSummary": f"summary {n}"}

    async def chat(self, messages, **kwargs):
        self.chat_calls.append(messages)
        return self.final_summary


class FakeTranscriber:
    """Returns the audio payload decoded as text, so tests choose the transcript."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[str] = []

    async def transcribe(self, audio: bytes, filename: str) -> str:
        self.calls.append(filename)
        if self.error is not None:
            raise self.error
        return audio.decode("utf-8", errors="ignore")


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def db_path(tmp_path) -> str:
    path = str(tmp_path / "scribe-test.db")
    run(init_db(path))
    return path


@pytest.fixture
def store(db_path) -> SessionStore:
    return SessionStore(db_path)


@pytest.fixture
def fake_groq() -> FakeGroq:
    return FakeGroq()


@pytest.fixture
def transcriber() -> FakeTranscriber:
    return FakeTranscriber()


@pytest.fixture
def client(store, fake_groq, transcriber):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_transcriber] = lambda: transcriber
    app.dependency_overrides[get_notes_service] = lambda: NotesService(groq=fake_groq)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
