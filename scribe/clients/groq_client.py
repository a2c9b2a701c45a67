import json
import logging

from groq import AsyncGroq

from scribe.config import settings

logger = logging.getLogger(__name__)


class GroqClient:
    """Thin async facade over ``AsyncGroq`` for the three calls scribe makes.

    - ``chat``: free-text completion (final summaries)
    - ``chat_json``: strict JSON-schema completion (per-chunk notes)
    - ``transcribe``: speech-to-text for one audio piece

    SDK errors propagate unchanged; the services translate them.
    """

    def __init__(self, model: str | None = None, api_key: str | None = None) -> None:
        self.model = model or settings.default_model
        self._client = AsyncGroq(api_key=api_key or settings.groq_api_key)

    async def _complete(self, messages: list[dict], **options) -> str:
        request = {"model": options.pop("model", None) or self.model, "messages": messages}
        request.update({key: value for key, value in options.items() if value is not None})
        resp = await self._client.chat.completions.create(**request)
        usage = getattr(resp, "usage", None)
        if usage is not None:
            logger.debug(
                "%s: %s prompt / %s completion tokens",
                request["model"], usage.prompt_tokens, usage.completion_tokens,
            )
        return resp.choices[0].message.content or ""

    async def chat(
        self,
        messages: list[dict],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        return await self._complete(
            messages, model=model, temperature=temperature, max_tokens=max_tokens
        )

    async def chat_json(
        self,
        messages: list[dict],
        response_schema: dict,
        *,
        schema_name: str = "response",
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> dict:
        """Completion constrained to *response_schema* (Groq strict mode).

        Strict mode wants ``additionalProperties: false`` on every object and
        every property listed in ``required``.  Raises ``ValueError`` on an
        empty or unparseable reply.
        """
        content = await self._complete(
            messages,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            response_format={
                "type": "json_schema",
                "json_schema": {"name": schema_name, "strict": True, "schema": response_schema},
            },
        )
        if not content.strip():
            raise ValueError("Empty response from model")
        return json.loads(content)

    async def transcribe(
        self,
        audio: bytes,
        filename: str,
        *,
        language: str | None = None,
        prompt: str | None = None,
        model: str | None = None,
    ) -> str:
        """Speech-to-text.  The extension of *filename* names the container."""
        options = {"language": language, "prompt": prompt}
        resp = await self._client.audio.transcriptions.create(
            file=(filename, audio),
            model=model or settings.transcription_model,
            **{key: value for key, value in options.items() if value},
        )
        return (resp.text or "").strip()
