from abc import ABC, abstractmethod
from datetime import UTC, datetime

import aiosqlite
from pydantic import BaseModel

SCHEMA = """
CREATE TABLE IF NOT EXISTS session_state (
    namespace TEXT NOT NULL,
    key TEXT NOT NULL,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (namespace, key)
);
"""

SQL_UPSERT = """
INSERT OR REPLACE INTO session_state (namespace, key, value, updated_at)
VALUES (?, ?, ?, ?)
"""


class SessionStore[T: BaseModel](ABC):
    """Per-user state addressed only by user key.

    The conversation core never iterates across users, so get/set/delete is
    the whole contract; an implementation can sit on a dict, a cache or a
    database.
    """

    @abstractmethod
    async def get(self, key: str) -> T | None: ...

    @abstractmethod
    async def set(self, key: str, value: T) -> None: ...

    @abstractmethod
    async def delete(self, key: str) -> None: ...


class InMemoryStore[T: BaseModel](SessionStore[T]):
    def __init__(self) -> None:
        self._items: dict[str, T] = {}

    async def get(self, key: str) -> T | None:
        return self._items.get(key)

    async def set(self, key: str, value: T) -> None:
        self._items[key] = value

    async def delete(self, key: str) -> None:
        self._items.pop(key, None)

    def __len__(self) -> int:
        return len(self._items)


class SqliteStore[T: BaseModel](SessionStore[T]):
    """Stores pydantic models as JSON rows, one namespace per state type."""

    def __init__(self, conn: aiosqlite.Connection, namespace: str, model: type[T]):
        self.conn = conn
        self.namespace = namespace
        self.model = model

    async def get(self, key: str) -> T | None:
        rows = await self.conn.execute_fetchall(
            "SELECT value FROM session_state WHERE namespace = ? AND key = ?",
            (self.namespace, key),
        )
        if not rows:
            return None
        return self.model.model_validate_json(rows[0]["value"])

    async def set(self, key: str, value: T) -> None:
        await self.conn.execute(
            SQL_UPSERT,
            (self.namespace, key, value.model_dump_json(), datetime.now(UTC).isoformat()),
        )
        await self.conn.commit()

    async def delete(self, key: str) -> None:
        await self.conn.execute(
            "DELETE FROM session_state WHERE namespace = ? AND key = ?",
            (self.namespace, key),
        )
        await self.conn.commit()
