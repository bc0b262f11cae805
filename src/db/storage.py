from __future__ import annotations

import json
from typing import Any, Dict, Iterable, Optional

from db.database import connect
from utils.logger import get_logger

_logger = get_logger(__name__)


class CorruptValueError(ValueError):
    """Raised when a stored value is not valid JSON."""

    def __init__(self, key: str):
        super().__init__(f"Stored value for '{key}' is not valid JSON")
        self.key = key


class Storage:
    """
    Persistent key-value store for client-side session data.

    Values are plain JSON blobs without schema versioning. One instance is
    created by the app and handed to every state object that needs it.
    """

    async def get_raw(self, key: str) -> Optional[str]:
        async with connect() as conn:
            cur = await conn.execute("SELECT value FROM kv WHERE key = ?;", (key,))
            row = await cur.fetchone()
            await cur.close()
            return row["value"] if row else None

    async def get_item(self, key: str, default: Any = None) -> Any:
        """Decoded value for key, default if absent. Raises CorruptValueError."""
        raw = await self.get_raw(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptValueError(key) from e

    async def set_item(self, key: str, value: Any) -> None:
        async with connect() as conn:
            await conn.execute(
                """
                INSERT INTO kv (key, value, updated_at)
                VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at;
                """,
                (key, json.dumps(value)),
            )
            await conn.commit()

    async def set_many(self, items: Dict[str, Any]) -> None:
        async with connect() as conn:
            await conn.executemany(
                """
                INSERT INTO kv (key, value, updated_at)
                VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at;
                """,
                [(k, json.dumps(v)) for k, v in items.items()],
            )
            await conn.commit()

    async def remove_item(self, *keys: str) -> None:
        await self.remove_items(keys)

    async def remove_items(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        if not keys:
            return
        placeholders = ", ".join("?" for _ in keys)
        async with connect() as conn:
            await conn.execute(f"DELETE FROM kv WHERE key IN ({placeholders});", keys)
            await conn.commit()
        _logger.debug(f"Removed stored keys: {', '.join(keys)}")

    async def keys(self) -> list[str]:
        async with connect() as conn:
            cur = await conn.execute("SELECT key FROM kv ORDER BY key;")
            rows = await cur.fetchall()
            await cur.close()
            return [r["key"] for r in rows]

    async def clear(self) -> None:
        async with connect() as conn:
            await conn.execute("DELETE FROM kv;")
            await conn.commit()
