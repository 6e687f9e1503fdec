"""
Database interface for Instantly Chef.

One SQLite file (instantly_chef.db) holds:
- profiles: account form fields per user (flat JSON)
- dashboard_state: the serialized AppState per user
- generation_requests: submitted correlation ids and their delivered menus
"""

import sqlite3
import json
import logging
from typing import Any, Dict, List, Optional
from pathlib import Path

from .models import GenerationResult
from instantly_chef.utils import timestamp_now

logger = logging.getLogger(__name__)


class DatabaseInterface:
    """Interface for interacting with the SQLite store."""

    def __init__(self, db_dir: str = "data"):
        """
        Initialize database interface.

        Args:
            db_dir: Directory containing the database file
        """
        self.db_dir = Path(db_dir)
        self.db_dir.mkdir(parents=True, exist_ok=True)

        self.user_db = self.db_dir / "instantly_chef.db"

        self._init_database()

    def _init_database(self):
        """Initialize database schema."""
        with sqlite3.connect(self.user_db) as conn:
            cursor = conn.cursor()

            # Account profile fields
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS profiles (
                    user_key TEXT PRIMARY KEY,
                    email TEXT,
                    fields_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            # Dashboard state (weekly plan, menus, cart, pantry, bar)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS dashboard_state (
                    user_key TEXT PRIMARY KEY,
                    state_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            # Generation requests; menus_json stays NULL until the callback arrives
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS generation_requests (
                    correlation_id TEXT PRIMARY KEY,
                    user_key TEXT,
                    status TEXT NOT NULL DEFAULT 'pending',
                    menus_json TEXT,
                    created_at TEXT NOT NULL,
                    received_at TEXT
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_generation_requests_user
                ON generation_requests(user_key)
            """)

            conn.commit()

        logger.info(f"Database initialized at {self.user_db}")

    # ==================== Profile Operations ====================

    def get_profile(self, user_key: str) -> Optional[Dict[str, Any]]:
        """
        Get the stored profile fields for a user.

        Args:
            user_key: User identifier from the session

        Returns:
            Flat dict of profile fields (including email) or None if not set
        """
        with sqlite3.connect(self.user_db) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()

            cursor.execute(
                "SELECT email, fields_json FROM profiles WHERE user_key = ?",
                (user_key,)
            )
            row = cursor.fetchone()

            if row:
                fields = json.loads(row["fields_json"])
                if row["email"] and not fields.get("email"):
                    fields["email"] = row["email"]
                return fields
            return None

    def upsert_profile(self, user_key: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Save profile fields, merged over any existing ones.

        Args:
            user_key: User identifier
            fields: Partial set of flat profile fields

        Returns:
            The merged field set
        """
        merged = dict(self.get_profile(user_key) or {})
        merged.update(fields)
        now = timestamp_now()

        with sqlite3.connect(self.user_db) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO profiles (user_key, email, fields_json, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_key) DO UPDATE SET
                    email = excluded.email,
                    fields_json = excluded.fields_json,
                    updated_at = excluded.updated_at
                """,
                (user_key, merged.get("email"), json.dumps(merged), now, now),
            )
            conn.commit()

        logger.info(f"Saved profile for user {user_key}")
        return merged

    # ==================== Dashboard State Operations ====================

    def get_state(self, user_key: str) -> Optional[Dict[str, Any]]:
        """Get the serialized dashboard state for a user, or None."""
        with sqlite3.connect(self.user_db) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()

            cursor.execute(
                "SELECT state_json FROM dashboard_state WHERE user_key = ?",
                (user_key,)
            )
            row = cursor.fetchone()

            if row:
                return json.loads(row["state_json"])
        return None

    def save_state(self, user_key: str, state: Dict[str, Any]):
        """Replace the dashboard state for a user (last write wins)."""
        with sqlite3.connect(self.user_db) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR REPLACE INTO dashboard_state (user_key, state_json, updated_at)
                VALUES (?, ?, ?)
                """,
                (user_key, json.dumps(state), timestamp_now()),
            )
            conn.commit()

        logger.debug(f"Saved dashboard state for user {user_key}")

    def clear_state(self, user_key: str):
        """Delete the dashboard state for a user."""
        with sqlite3.connect(self.user_db) as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM dashboard_state WHERE user_key = ?", (user_key,))
            conn.commit()

        logger.info(f"Cleared dashboard state for user {user_key}")

    # ==================== Generation Operations ====================

    def record_generation_request(self, correlation_id: str, user_key: Optional[str] = None):
        """Register a submitted correlation id so its callback will be accepted."""
        with sqlite3.connect(self.user_db) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR IGNORE INTO generation_requests (correlation_id, user_key, status, created_at)
                VALUES (?, ?, 'pending', ?)
                """,
                (correlation_id, user_key, timestamp_now()),
            )
            conn.commit()

    def save_generation_result(self, correlation_id: str, status: str, menus: List[Dict[str, Any]]) -> bool:
        """
        Store the delivered menus for a pending request.

        The update only matches a known id that has no result yet, so a
        stored result is never overwritten.

        Returns:
            True if stored, False for an unknown or already completed id
        """
        with sqlite3.connect(self.user_db) as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE generation_requests
                SET status = ?, menus_json = ?, received_at = ?
                WHERE correlation_id = ? AND menus_json IS NULL
                """,
                (status, json.dumps(menus), timestamp_now(), correlation_id),
            )
            conn.commit()
            return cursor.rowcount == 1

    def get_generation_result(self, correlation_id: str) -> Optional[GenerationResult]:
        """
        Get the delivered result for a correlation id.

        Returns:
            GenerationResult, or None if unknown or still pending
        """
        with sqlite3.connect(self.user_db) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()

            cursor.execute(
                """
                SELECT correlation_id, status, menus_json, received_at
                FROM generation_requests WHERE correlation_id = ?
                """,
                (correlation_id,)
            )
            row = cursor.fetchone()

            if row and row["menus_json"] is not None:
                return GenerationResult(
                    correlation_id=row["correlation_id"],
                    status=row["status"],
                    menus=json.loads(row["menus_json"]),
                    received_at=row["received_at"],
                )
        return None

    def get_generation_owner(self, correlation_id: str) -> Optional[str]:
        """User key that submitted a correlation id, or None."""
        with sqlite3.connect(self.user_db) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT user_key FROM generation_requests WHERE correlation_id = ?",
                (correlation_id,)
            )
            row = cursor.fetchone()
            return row[0] if row else None
