import logging
from dataclasses import dataclass

from scribe.clients import GroqClient
from scribe.config import settings
from scribe.errors import SummarizationFailed
from scribe.models import Profile
from scribe.services.prompts import (
    build_context_block,
    build_final_summary_system_prompt,
    build_notes_system_prompt,
    build_notes_user_message,
    sanitize_transcript_parts,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# JSON Schemas. Groq strict mode requires additionalProperties: false
# everywhere and all properties in "required".
# ---------------------------------------------------------------------------

CHUNK_NOTES_SCHEMA = {
    "type": "object",
    "properties": {
        "notes": {
            "type": "array",
            "items": {"type": "string"},
        },
        "rollingSummary": {"type": "string"},
    },
    "required": ["notes", "rollingSummary"],
    "additionalProperties": False,
}

BULLET = "•"


@dataclass
class GeneratedNotes:
    content: str
    rolling_summary: str


def format_note_items(notes) -> str:
    """Render the ``notes`` field as one bullet per line.

    Accepts a list of items or a string that is already joined.
    """
    if isinstance(notes, str):
        return notes.strip()
    if isinstance(notes, list):
        items = [str(item).strip() for item in notes if str(item).strip()]
        return "\n".join(f"{BULLET} {item}" for item in items)
    raise SummarizationFailed(f"'notes' must be a list or a string, got {type(notes).__name__}")


def parse_notes_response(result) -> tuple[str, str]:
    """Validate a structured reply and return ``(content, rolling_summary)``."""
    if not isinstance(result, dict):
        raise SummarizationFailed("Summarization reply is not a JSON object")
    missing = [key for key in ("notes", "rollingSummary") if key not in result]
    if missing:
        raise SummarizationFailed(f"Summarization reply is missing {', '.join(missing)}")
    rolling_summary = result["rollingSummary"]
    if not isinstance(rolling_summary, str):
        raise SummarizationFailed("'rollingSummary' must be a string")
    return format_note_items(result["notes"]), rolling_summary.strip()


class NotesService:
    """Generate per-chunk notes and final summaries via the Groq API."""

    def __init__(self, groq: GroqClient | None = None) -> None:
        self.groq = groq or GroqClient()

    async def generate_notes(
        self,
        transcript: str,
        profile: Profile,
        previous_transcripts: list[str],
    ) -> GeneratedNotes:
        """Notes for the latest segment plus the updated rolling summary.

        Only the last ``settings.context_window`` earlier transcripts are sent
        as context, however long the session is.
        """
        context = build_context_block(previous_transcripts, settings.context_window)
        messages = [
            {"role": "system", "content": build_notes_system_prompt(profile)},
            {"role": "user", "content": build_notes_user_message(transcript, context)},
        ]
        try:
            result = await self.groq.chat_json(
                messages, CHUNK_NOTES_SCHEMA, schema_name="chunk_notes", temperature=0.3
            )
        except Exception as e:
            raise SummarizationFailed(f"Note generation failed: {e}") from e

        content, rolling_summary = parse_notes_response(result)
        return GeneratedNotes(content=content, rolling_summary=rolling_summary)

    async def generate_final_summary(self, transcripts: list[str], profile: Profile) -> str:
        """One free-text summary over every transcript (not windowed)."""
        clean = sanitize_transcript_parts(transcripts)
        messages = [
            {"role": "system", "content": build_final_summary_system_prompt(profile)},
            {"role": "user", "content": "\n\n".join(clean)},
        ]
        try:
            summary = await self.groq.chat(messages, temperature=0.4)
        except Exception as e:
            raise SummarizationFailed(f"Final summary failed: {e}") from e
        return (summary or "").strip()
