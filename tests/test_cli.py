import io
import json

import httpx
import numpy as np
import pytest
import soundfile as sf

from scribe import cli
from scribe.config import settings
from scribe.errors import PayloadTooLarge
from scribe.models import Profile


def _wav(seconds: float, rate: int = 16000) -> bytes:
    buf = io.BytesIO()
    sf.write(buf, np.zeros(int(seconds * rate)), rate, format="WAV", subtype="PCM_16")
    return buf.getvalue()


class Recorder:
    """MockTransport handler answering like the server and recording every request."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path, method = request.url.path, request.method
        if method == "POST" and path == "/api/uploads":
            return httpx.Response(200, json={"session_id": "s-whole", "pieces": 1})
        if method == "POST" and path == "/api/sessions":
            return httpx.Response(200, json={"session": {"id": "s-pieces"}})
        if method == "POST" and path.endswith("/chunks"):
            return httpx.Response(200, json={"transcript": "x"})
        if method == "PATCH":
            return httpx.Response(200, json={"session": {"id": "s-pieces", "status": "completed"}})
        return httpx.Response(404, json={"detail": "Not Found"})


def _client(handler) -> cli.UploadClient:
    http = httpx.Client(base_url="http://scribe.test", transport=httpx.MockTransport(handler))
    return cli.UploadClient(http, "alice")


def test_small_file_goes_up_whole() -> None:
    recorder = Recorder()
    session_id = _client(recorder).upload(b"audio-bytes", "call.mp3", Profile.INTERVIEW, "Call")

    assert session_id == "s-whole"
    assert [(r.method, r.url.path) for r in recorder.requests] == [("POST", "/api/uploads")]
    request = recorder.requests[0]
    assert request.headers["X-User-Id"] == "alice"
    assert b'name="profile"' in request.content
    assert b"interview" in request.content


def test_large_file_is_sent_in_pieces_then_finished(monkeypatch) -> None:
    monkeypatch.setattr(settings, "direct_upload_max_bytes", 100)
    monkeypatch.setattr(settings, "upload_piece_seconds", 1)
    recorder = Recorder()

    session_id = _client(recorder).upload(_wav(2.5), "lecture.wav", Profile.LECTURE, "Lecture")

    assert session_id == "s-pieces"
    calls = [(r.method, r.url.path) for r in recorder.requests]
    assert calls == [
        ("POST", "/api/sessions"),
        ("POST", "/api/sessions/s-pieces/chunks"),
        ("POST", "/api/sessions/s-pieces/chunks"),
        ("POST", "/api/sessions/s-pieces/chunks"),
        ("PATCH", "/api/sessions/s-pieces"),
    ]
    assert json.loads(recorder.requests[0].content) == {"name": "Lecture", "profile": "lecture"}
    assert json.loads(recorder.requests[-1].content) == {"action": "finish"}
    for seq, request in enumerate(recorder.requests[1:4]):
        assert f'name="seq"\r\n\r\n{seq}\r\n'.encode() in request.content


def test_server_error_raises_upload_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, json={"detail": "Transcription failed"})

    with pytest.raises(cli.UploadError, match="Transcription failed"):
        _client(handler).upload(b"audio", "a.webm", Profile.MEETING, "a")


def test_oversize_file_fails_before_any_request(monkeypatch) -> None:
    monkeypatch.setattr(settings, "max_file_bytes", 4)
    recorder = Recorder()

    with pytest.raises(PayloadTooLarge):
        _client(recorder).upload(b"12345", "a.webm", Profile.MEETING, "a")
    assert recorder.requests == []


def test_main_reports_oversize_with_exit_code_2(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.setattr(settings, "max_file_bytes", 4)
    path = tmp_path / "big.webm"
    path.write_bytes(b"12345")

    assert cli.main([str(path), "--user", "alice"]) == 2
    assert "too large" in capsys.readouterr().err
