"""SQLite history backend.

Provides persistent conversation storage in a single embedded database
file, one row per title key holding the JSON record.
Uses aiosqlite for async access.
"""

import asyncio
import sqlite3
from pathlib import Path

import aiosqlite
from pydantic import ValidationError

from ..errors import ConflictError, PersistenceError
from .base import HistoryStore
from .models import Conversation


class SQLiteHistoryStore(HistoryStore):
    """SQLite-backed history store.

    Every mutation runs in a single transaction and the mirror is updated
    only after the commit succeeds. Mutations are serialized; one that
    fails or is cancelled part way is rolled back before the error
    propagates.
    """

    def __init__(self, path: str | Path = "./history.db"):
        super().__init__()
        self._db_path = Path(path)
        self._connection: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()

    async def connect(self) -> None:
        """Open the database, create the schema and load the mirror."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(self._db_path)
            await self._create_schema()
            records = await self.read_all()
        except PersistenceError:
            await self.close()
            raise
        except (sqlite3.Error, OSError) as e:
            await self.close()
            raise PersistenceError(f"cannot open {self._db_path}: {e}") from e

        # Mirror insertion order is write order, oldest first
        self._mirror = dict(reversed(records))
        self._debug("info", f"Loaded {len(self._mirror)} conversation(s) from {self._db_path}")

    async def _create_schema(self) -> None:
        """Create database tables."""
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS conversations (
                title TEXT PRIMARY KEY,
                time INTEGER NOT NULL,
                record TEXT NOT NULL
            )
        """)

        await self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_conversations_time
            ON conversations(time)
        """)

        await self._connection.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise PersistenceError("history store is not connected")
        return self._connection

    async def _rollback(self) -> None:
        try:
            await self._connection.rollback()
        except sqlite3.Error as e:
            self._debug("error", f"Rollback failed: {e}")

    async def _insert_row(self, conversation: Conversation, replace: bool) -> None:
        verb = "INSERT OR REPLACE" if replace else "INSERT"
        await self._connection.execute(
            f"{verb} INTO conversations (title, time, record) VALUES (?, ?, ?)",
            (conversation.title, conversation.created_at, conversation.to_json())
        )

    async def _delete_row(self, title: str) -> None:
        await self._connection.execute(
            "DELETE FROM conversations WHERE title = ?",
            (title,)
        )

    async def upsert(self, title: str, conversation: Conversation) -> Conversation:
        """Insert or replace a conversation."""
        self._require_connection()
        stored = conversation if conversation.title == title else conversation.retitled(title)

        async with self._write_lock:
            try:
                await self._insert_row(stored, replace=True)
                await self._connection.commit()
            except sqlite3.Error as e:
                await self._rollback()
                self._debug("error", f"Upsert of '{title}' failed: {e}")
                raise PersistenceError(f"cannot save '{title}': {e}") from e
            except BaseException:
                await self._rollback()
                raise

            self._mirror.pop(title, None)
            self._mirror[title] = stored
        self._debug("debug", f"Saved '{title}' ({len(stored.messages)} messages)")
        return stored

    async def delete(self, title: str) -> None:
        """Delete a conversation (no-op if absent)."""
        self._require_connection()

        async with self._write_lock:
            try:
                await self._delete_row(title)
                await self._connection.commit()
            except sqlite3.Error as e:
                await self._rollback()
                self._debug("error", f"Delete of '{title}' failed: {e}")
                raise PersistenceError(f"cannot delete '{title}': {e}") from e
            except BaseException:
                await self._rollback()
                raise

            self._mirror.pop(title, None)
        self._debug("debug", f"Deleted '{title}'")

    async def rename(self, old_title: str, new_title: str) -> Conversation:
        """Move a conversation to a new title in one transaction."""
        self._require_connection()
        async with self._write_lock:
            conversation = self.require(old_title)
            if new_title == old_title:
                return conversation
            if new_title in self._mirror:
                raise ConflictError(new_title)

            renamed = conversation.retitled(new_title)
            step = "insert"
            try:
                await self._insert_row(renamed, replace=False)
                step = "delete"
                await self._delete_row(old_title)
                await self._connection.commit()
            except sqlite3.Error as e:
                await self._rollback()
                # Only the primary key can reject the insert
                if step == "insert" and isinstance(e, sqlite3.IntegrityError):
                    raise ConflictError(new_title) from e
                self._debug("error", f"Rename of '{old_title}' failed: {e}")
                raise PersistenceError(f"cannot rename '{old_title}': {e}") from e
            except BaseException:
                await self._rollback()
                raise

            self._mirror[new_title] = renamed
            del self._mirror[old_title]
        self._debug("debug", f"Renamed '{old_title}' to '{new_title}'")
        return renamed

    async def read_all(self) -> list[tuple[str, Conversation]]:
        """Read every record from the database, most recent first.

        Records that no longer parse are skipped.
        """
        connection = self._require_connection()
        try:
            async with connection.execute(
                """
                SELECT title, record
                FROM conversations
                ORDER BY time DESC, rowid DESC
                """
            ) as cursor:
                rows = await cursor.fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"cannot read history: {e}") from e

        conversations = []
        for title, record in rows:
            try:
                conversations.append((title, Conversation.from_record(title, record)))
            except ValidationError as e:
                self._debug("warning", f"Skipping unreadable record '{title}': {e.error_count()} error(s)")
        return conversations

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path
