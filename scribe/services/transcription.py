import asyncio
import io
import logging

from scribe.clients import GroqClient
from scribe.config import settings
from scribe.services.prompts import build_transcription_prompt

logger = logging.getLogger(__name__)


class WhisperService:
    """Lazy singleton around a faster-whisper model (``transcription_backend=local``).

    The model is downloaded and loaded on the first call to ``get()``,
    not at import time or server startup.
    """

    _instance: "WhisperService | None" = None

    def __init__(self) -> None:
        from faster_whisper import WhisperModel

        logger.info("Loading whisper model %s on %s", settings.whisper_model, settings.whisper_device)
        self.model = WhisperModel(
            settings.whisper_model,
            device=settings.whisper_device,
            compute_type=settings.whisper_compute_type,
        )

    @classmethod
    def get(cls) -> "WhisperService":
        """Return the singleton, creating it (and downloading the model) if needed."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def transcribe(self, audio: bytes, language: str | None, prompt: str | None) -> str:
        """Transcribe an encoded audio payload.  Blocking; call from a thread."""
        segments, _info = self.model.transcribe(
            io.BytesIO(audio),
            beam_size=5,
            language=language,
            initial_prompt=prompt,
        )
        # segments is a lazy generator; the join forces evaluation
        return " ".join(seg.text.strip() for seg in segments).strip()


class TranscriptionService:
    """``transcribe(audio, filename) -> text`` over the configured backend.

    Failures are raised, never returned as a sentinel; the chunk processor
    converts them to ``TranscriptionFailed``.
    """

    def __init__(self, groq: GroqClient | None = None, backend: str | None = None) -> None:
        self.backend = backend or settings.transcription_backend
        self._groq = groq

    @property
    def groq(self) -> GroqClient:
        if self._groq is None:
            self._groq = GroqClient()
        return self._groq

    async def transcribe(self, audio: bytes, filename: str) -> str:
        prompt = build_transcription_prompt()
        if self.backend == "local":
            whisper = await asyncio.to_thread(WhisperService.get)
            return await asyncio.to_thread(
                whisper.transcribe, audio, settings.language, prompt
            )
        return await self.groq.transcribe(
            audio, filename, language=settings.language, prompt=prompt
        )
