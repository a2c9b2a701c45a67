import asyncio
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from scribe.config import settings
from scribe.errors import StoreError
from scribe.services.store import SessionStore

logger = logging.getLogger(__name__)

NOTE_EVENT = "note"
SUMMARY_EVENT = "summary"


def format_sse(event: dict) -> str:
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


class LiveUpdateChannel:
    """Push newly persisted notes and rolling-summary changes for one session.

    One instance per connection.  Each poll re-reads every note, emits the
    ones past the delivered-count cursor in order, and emits the latest
    rolling summary when it differs from the last one delivered.  Delivery
    is at-least-once; clients de-duplicate by note id.

    Ownership is checked by the caller before the channel is opened.
    """

    def __init__(
        self,
        store: SessionStore,
        session_id: str,
        poll_seconds: float | None = None,
    ) -> None:
        self.store = store
        self.session_id = session_id
        self.poll_seconds = settings.stream_poll_seconds if poll_seconds is None else poll_seconds
        self.delivered_count = 0
        self.last_summary = ""

    async def poll(self) -> list[dict]:
        """Read the session's notes once and return the events to push."""
        notes = await self.store.list_notes(self.session_id)
        events: list[dict] = []

        if len(notes) > self.delivered_count:
            for note in notes[self.delivered_count:]:
                events.append({"type": NOTE_EVENT, "id": note.id, "content": note.content})
            self.delivered_count = len(notes)

        latest_summary = (notes[-1].rolling_summary or "") if notes else ""
        if latest_summary and latest_summary != self.last_summary:
            events.append({"type": SUMMARY_EVENT, "content": latest_summary})
            self.last_summary = latest_summary

        return events

    async def stream(
        self, is_disconnected: Callable[[], Awaitable[bool]] | None = None
    ) -> AsyncIterator[str]:
        """SSE frames: one poll immediately, then one every ``poll_seconds``.

        Ends when the client disconnects or the store fails; reconnecting is
        the client's job.
        """
        logger.info("Live stream opened for session %s", self.session_id)
        try:
            while True:
                try:
                    events = await self.poll()
                except StoreError as e:
                    logger.warning("Live stream for session %s closed: %s", self.session_id, e)
                    return
                for event in events:
                    yield format_sse(event)

                await asyncio.sleep(self.poll_seconds)
                if is_disconnected is not None and await is_disconnected():
                    return
        finally:
            logger.info("Live stream closed for session %s", self.session_id)
