"""Prompt text for transcription and summarization.

System prompts hold the fixed instructions (stable per profile, cacheable);
the user message carries the data that changes on every call.
"""

from scribe.config import settings
from scribe.models import Profile

CONTEXT_SEPARATOR = "\n\n---\n\n"
LATEST_SEGMENT_MARKER = "=== LATEST SEGMENT ==="


def _language_rules() -> str:
    return f"""
You are a careful note-taker and you answer only in {settings.output_language}.

Always write clear, natural, correctly spelled {settings.output_language}.
Keep proper names, product names and established technical terms as they are.

Ground rule:
Do not add information that is not in the input.
Do not guess.
If something is unclear, stick to what can actually be read from the text.
""".strip()


PROFILE_CONTEXT: dict[Profile, str] = {
    Profile.MEETING: """
These are meeting minutes or a meeting summary.

Prioritise:
1. Main topics discussed
2. Decisions that were made
3. Action items
4. Owners, if they are mentioned
5. Dates or deadlines, if they are mentioned
6. Items that need follow-up

Be concise, objective and clear.
""".strip(),
    Profile.LECTURE: """
These are lecture notes.

Prioritise:
1. Main ideas
2. Key concepts
3. Examples or explanations
4. Conclusions
5. Things worth remembering

Write in a structured, academically clear way.
""".strip(),
    Profile.INTERVIEW: """
This is an interview summary.

Prioritise:
1. The purpose of the interview, if stated
2. The main questions or topics
3. The main answers and information
4. Important facts, viewpoints and conclusions

Keep questions and answers clearly apart where that applies.
""".strip(),
    Profile.FREEFORM: """
This is a general summary.

Bring out:
1. The main points
2. Important facts
3. Conclusions or next steps, if they come up

Write in an organised, readable and concise way.
""".strip(),
}

FINAL_SUMMARY_SECTIONS: dict[Profile, list[str]] = {
    Profile.MEETING: [
        "Overview",
        "Main topics",
        "Key decisions",
        "Action items and next steps",
        "Follow-up items",
        "Open issues or questions",
    ],
    Profile.LECTURE: [
        "Overview",
        "Core material",
        "Key concepts",
        "Examples and explanations",
        "Main conclusions or lessons",
    ],
    Profile.INTERVIEW: [
        "Overview",
        "Purpose or context",
        "Main questions or topics",
        "Main answers and information",
        "Key insights or conclusions",
    ],
    Profile.FREEFORM: [
        "Overview",
        "Main points",
        "Important facts",
        "Conclusions or next steps",
    ],
}


def sanitize_transcript_parts(parts: list[str | None]) -> list[str]:
    """Trim every part and drop the empty ones, keeping order."""
    return [p.strip() for p in parts if p and p.strip()]


def build_context_block(previous_transcripts: list[str], count: int = 2) -> str:
    """The last *count* non-empty transcripts, oldest first, separated by ``---``."""
    clean = sanitize_transcript_parts(previous_transcripts)
    if not clean or count <= 0:
        return ""
    return CONTEXT_SEPARATOR.join(clean[-count:])


def build_notes_user_message(transcript: str, context: str) -> str:
    parts = [context] if context else []
    parts.append(f"{LATEST_SEGMENT_MARKER}\n{(transcript or '').strip()}")
    return CONTEXT_SEPARATOR.join(parts)


def build_transcription_prompt() -> str:
    return (
        f"This is spoken {settings.output_language}. Transcribe exactly what is said, "
        "with correct spelling and punctuation. Do not change meaning or word choice."
    )


def build_notes_system_prompt(profile: Profile) -> str:
    return f"""
{_language_rules()}

{PROFILE_CONTEXT[Profile(profile)]}

The user sends text containing:
1. Limited earlier context (if any), separated by "---"
2. The latest segment to take notes from, marked with "{LATEST_SEGMENT_MARKER}"

Task:
Write notes from the LATEST segment.
Use the earlier context only to resolve references, names and the thread of discussion.
Do not repeat material from the earlier context unless it is needed to explain the latest segment.

Return only valid JSON in exactly this shape:
{{
  "notes": ["Item 1", "Item 2"],
  "rollingSummary": "Short, objective summary of everything said so far."
}}

Strict rules:
1. "notes" is an array of short, clear items
2. Every item in "notes" is based on the text, not on guesswork
3. "rollingSummary" is short and objective
4. "rollingSummary" may merge the earlier context and the latest segment but must not add anything
5. If the latest segment contains very little, still return valid JSON
6. If nothing significant is said, "notes" may be an empty array
""".strip()


def build_final_summary_system_prompt(profile: Profile) -> str:
    sections = "\n".join(
        f"{i}. {name}" for i, name in enumerate(FINAL_SUMMARY_SECTIONS[Profile(profile)], 1)
    )
    return f"""
{_language_rules()}

{PROFILE_CONTEXT[Profile(profile)]}

The user sends a continuous transcript, or a collection of transcript parts.
Write a careful final summary based only on that material.

Use the following sections where the material supports them:
{sections}

Strict rules:
1. Do not add information that is not in the text
2. Do not guess names, dates, ownership or outcomes that are not clearly stated
3. Merge repetitions and write clearly without losing meaning
4. If information is missing, leave it out rather than filling gaps
5. Use clear headings
6. Call out action items, owners and deadlines when they appear

Return only the final summary, with no preamble and no explanation of how it was made.
""".strip()
