import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import aiosqlite

from scribe.database import get_async_conn
from scribe.errors import Conflict, DuplicateChunk, NotFound, StoreError
from scribe.models import Chunk, Note, Profile, Session, SessionStatus

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


class SessionStore:
    """Data access for sessions, chunks and notes.

    Authorization is not checked here; callers verify ownership first.
    Every sqlite failure surfaces as ``StoreError``.
    """

    def __init__(self, db_path: str | None = None) -> None:
        self.db_path = db_path

    @asynccontextmanager
    async def _connection(self):
        try:
            conn = await get_async_conn(self.db_path)
        except aiosqlite.Error as e:
            raise StoreError(f"Could not open database: {e}") from e
        try:
            yield conn
        except aiosqlite.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicateChunk("A chunk with this sequence number already exists") from e
            raise StoreError(f"Integrity error: {e}") from e
        except aiosqlite.Error as e:
            raise StoreError(f"Database error: {e}") from e
        finally:
            await conn.close()

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def create_session(
        self, owner_id: str, name: str, profile: Profile = Profile.MEETING
    ) -> Session:
        session_id = _new_id()
        now = _now()
        async with self._connection() as conn:
            await conn.execute(
                "INSERT INTO sessions (id, owner_id, name, profile, status, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (session_id, owner_id, name, Profile(profile).value,
                 SessionStatus.ACTIVE.value, now, now),
            )
            await conn.commit()
            session = await self._fetch_session(conn, session_id)
        logger.info("Session %s created for %s (%s)", session_id, owner_id, session.profile.value)
        return session

    async def get_session(self, session_id: str) -> Session | None:
        async with self._connection() as conn:
            return await self._fetch_session(conn, session_id)

    async def require_session(self, session_id: str) -> Session:
        session = await self.get_session(session_id)
        if session is None:
            raise NotFound(f"Session {session_id} not found")
        return session

    async def list_sessions(self, owner_id: str) -> list[Session]:
        """Sessions of *owner_id*, newest first."""
        async with self._connection() as conn:
            rows = await conn.execute(
                "SELECT * FROM sessions WHERE owner_id = ? "
                "ORDER BY created_at DESC, rowid DESC",
                (owner_id,),
            )
            return [Session.from_row(row) for row in await rows.fetchall()]

    async def update_session(
        self,
        session_id: str,
        *,
        status: SessionStatus | None = None,
        name: str | None = None,
        final_summary: str | None = None,
    ) -> Session:
        """Update the given fields and touch ``updated_at``."""
        fields: dict = {}
        if status is not None:
            fields["status"] = SessionStatus(status).value
        if name is not None:
            fields["name"] = name
        if final_summary is not None:
            fields["final_summary"] = final_summary
        fields["updated_at"] = _now()

        assignments = ", ".join(f"{key} = ?" for key in fields)
        async with self._connection() as conn:
            cursor = await conn.execute(
                f"UPDATE sessions SET {assignments} WHERE id = ?",
                (*fields.values(), session_id),
            )
            await conn.commit()
            if cursor.rowcount == 0:
                raise NotFound(f"Session {session_id} not found")
            return await self._fetch_session(conn, session_id)

    async def complete_session(self, session_id: str, final_summary: str) -> Session:
        """Store the final summary and move to ``completed``.

        Only ``active`` and ``completed`` sessions qualify; a session that
        failed in the meantime stays failed and ``Conflict`` is raised.
        """
        async with self._connection() as conn:
            cursor = await conn.execute(
                "UPDATE sessions SET status = ?, final_summary = ?, updated_at = ? "
                "WHERE id = ? AND status IN (?, ?)",
                (SessionStatus.COMPLETED.value, final_summary, _now(), session_id,
                 SessionStatus.ACTIVE.value, SessionStatus.COMPLETED.value),
            )
            await conn.commit()
            session = await self._fetch_session(conn, session_id)
        if session is None:
            raise NotFound(f"Session {session_id} not found")
        if cursor.rowcount == 0:
            raise Conflict(f"Session {session_id} is {session.status.value} and cannot be completed")
        return session

    async def touch_session(self, session_id: str) -> None:
        async with self._connection() as conn:
            await conn.execute(
                "UPDATE sessions SET updated_at = ? WHERE id = ?", (_now(), session_id)
            )
            await conn.commit()

    async def mark_failed(self, session_id: str) -> bool:
        """Move an ``active`` session to ``failed``. Returns False if it was not active."""
        async with self._connection() as conn:
            cursor = await conn.execute(
                "UPDATE sessions SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
                (SessionStatus.FAILED.value, _now(), session_id, SessionStatus.ACTIVE.value),
            )
            await conn.commit()
            changed = cursor.rowcount > 0
        if changed:
            logger.info("Session %s marked failed", session_id)
        return changed

    async def get_session_detail(self, session_id: str) -> dict:
        """Session with its chunks (by seq) and notes (by creation)."""
        session = await self.require_session(session_id)
        chunks = await self.list_chunks(session_id)
        notes = await self.list_notes(session_id)
        return {
            **session.to_dict(),
            "chunks": [c.to_dict() for c in chunks],
            "notes": [n.to_dict() for n in notes],
        }

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    async def create_chunk(
        self, session_id: str, seq: int, transcript: str, duration_seconds: int = 0
    ) -> Chunk:
        chunk_id = _new_id()
        async with self._connection() as conn:
            await conn.execute(
                "INSERT INTO chunks (id, session_id, seq, transcript, duration_seconds, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (chunk_id, session_id, seq, transcript, duration_seconds, _now()),
            )
            await conn.commit()
            row = await conn.execute("SELECT * FROM chunks WHERE id = ?", (chunk_id,))
            return Chunk.from_row(await row.fetchone())

    async def list_chunks(self, session_id: str) -> list[Chunk]:
        async with self._connection() as conn:
            rows = await conn.execute(
                "SELECT * FROM chunks WHERE session_id = ? ORDER BY seq", (session_id,)
            )
            return [Chunk.from_row(row) for row in await rows.fetchall()]

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    async def create_note(
        self,
        session_id: str,
        content: str,
        rolling_summary: str = "",
        chunk_id: str | None = None,
    ) -> Note:
        note_id = _new_id()
        async with self._connection() as conn:
            await conn.execute(
                "INSERT INTO notes (id, session_id, chunk_id, content, rolling_summary, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (note_id, session_id, chunk_id, content, rolling_summary, _now()),
            )
            await conn.commit()
            row = await conn.execute("SELECT * FROM notes WHERE id = ?", (note_id,))
            return Note.from_row(await row.fetchone())

    async def list_notes(self, session_id: str) -> list[Note]:
        """Notes in creation order (rowid breaks timestamp ties)."""
        async with self._connection() as conn:
            rows = await conn.execute(
                "SELECT * FROM notes WHERE session_id = ? ORDER BY created_at, rowid",
                (session_id,),
            )
            return [Note.from_row(row) for row in await rows.fetchall()]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _fetch_session(conn, session_id: str) -> Session | None:
        row = await conn.execute("SELECT * FROM sessions WHERE id = ?", (session_id,))
        found = await row.fetchone()
        return Session.from_row(found) if found else None
