"""
Verified user storage.
Remembers the game profile each Discord member verified with.
"""

import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

RECORD_FIELDS = ("game_id", "clan_tag", "kingdom", "player_name")


def _ensure_verified_table(conn: sqlite3.Connection) -> None:
    """Create verified_users table if it doesn't exist."""
    conn.execute("""
        CREATE TABLE IF NOT EXISTS verified_users (
            user_id TEXT PRIMARY KEY,
            game_id TEXT,
            clan_tag TEXT,
            kingdom TEXT,
            player_name TEXT,
            first_seen TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """)
    conn.commit()


def _row_to_dict(row: sqlite3.Row) -> Dict[str, Any]:
    return {key: row[key] for key in row.keys()}


class VerifiedStore:
    """SQLite-backed key/value store keyed by Discord user id."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        if str(self.path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self._memory_conn: Optional[sqlite3.Connection] = None

    def _connect(self) -> sqlite3.Connection:
        if str(self.path) == ":memory:":
            # A fresh :memory: connection would be an empty database; reuse one
            if self._memory_conn is None:
                self._memory_conn = sqlite3.connect(":memory:", check_same_thread=False)
                self._memory_conn.row_factory = sqlite3.Row
            return self._memory_conn
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        return conn

    def _release(self, conn: sqlite3.Connection) -> None:
        if conn is not self._memory_conn:
            conn.close()

    def get_record(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a verified user.

        Returns:
            Dict with the stored fields or None if the user never verified
        """
        conn = self._connect()
        try:
            _ensure_verified_table(conn)
            with closing(conn.execute(
                "SELECT * FROM verified_users WHERE user_id = ?", (str(user_id),)
            )) as cursor:
                row = cursor.fetchone()
            return _row_to_dict(row) if row else None
        finally:
            self._release(conn)

    def upsert_record(self, user_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert or update a verified user.

        Keys present in ``payload`` replace the stored values; stored fields
        missing from ``payload`` are kept. ``updated_at`` is always refreshed.

        Args:
            user_id: Discord user ID
            payload: Any of game_id, clan_tag, kingdom, player_name

        Returns:
            The stored record after the merge
        """
        user_id = str(user_id)
        now = datetime.now(timezone.utc).isoformat()
        updates = {key: payload[key] for key in RECORD_FIELDS if key in payload}

        conn = self._connect()
        try:
            _ensure_verified_table(conn)
            with closing(conn.execute(
                "SELECT * FROM verified_users WHERE user_id = ?", (user_id,)
            )) as cursor:
                existing = cursor.fetchone()

            if existing:
                merged = {**_row_to_dict(existing), **updates, "updated_at": now}
                conn.execute("""
                    UPDATE verified_users
                    SET game_id = ?, clan_tag = ?, kingdom = ?, player_name = ?, updated_at = ?
                    WHERE user_id = ?
                """, (
                    merged["game_id"], merged["clan_tag"], merged["kingdom"],
                    merged["player_name"], now, user_id,
                ))
            else:
                merged = {
                    "user_id": user_id,
                    **{key: updates.get(key) for key in RECORD_FIELDS},
                    "first_seen": now,
                    "updated_at": now,
                }
                conn.execute("""
                    INSERT INTO verified_users
                    (user_id, game_id, clan_tag, kingdom, player_name, first_seen, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                """, (
                    user_id, merged["game_id"], merged["clan_tag"], merged["kingdom"],
                    merged["player_name"], now, now,
                ))
            conn.commit()
            return merged
        finally:
            self._release(conn)


__all__ = ["RECORD_FIELDS", "VerifiedStore"]
