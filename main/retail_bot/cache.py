from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Optional

from .sqlite_utils import sqlite_conn


class SqlitePromptCache:
    """Stores final-answer completions keyed by a hash of model and prompts."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    @staticmethod
    def _hash(payload: str) -> str:
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    def get(self, payload: str) -> Optional[str]:
        key = self._hash(payload)
        with sqlite_conn(self.db_path) as conn:
            row = conn.execute(
                "SELECT response_text FROM llm_cache WHERE cache_key = ?", (key,)
            ).fetchone()
            if row is None:
                return None
            conn.execute("UPDATE llm_cache SET hits = hits + 1 WHERE cache_key = ?", (key,))
            conn.commit()
        return row["response_text"]

    def put(self, payload: str, response_text: str, model: str = "") -> None:
        key = self._hash(payload)
        now = datetime.now(timezone.utc).isoformat()
        with sqlite_conn(self.db_path) as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO llm_cache (cache_key, model, response_text, hits, created_at)
                VALUES (?, ?, ?, 0, ?)
                """,
                (key, model, response_text, now),
            )
            conn.commit()

    def clear(self) -> int:
        with sqlite_conn(self.db_path) as conn:
            deleted = conn.execute("DELETE FROM llm_cache").rowcount
            conn.commit()
        return deleted
