"""User profiles and the recipient candidate source."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from ..models import Candidate
from ..sources import CandidateSource
from .schema import ensure_schema

USER_ROLES: tuple[str, ...] = ("donor", "recipient")
FOOD_PREFERENCES: tuple[str, ...] = ("veg", "non-veg", "both")


class UserDB(CandidateSource):
    """Manages the users table."""

    def __init__(self, db_path: str | Path = "~/.config/foodshare/foodshare.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def add_user(
        self,
        uid: str,
        name: str,
        email: str,
        role: str,
        *,
        latitude: float | None = None,
        longitude: float | None = None,
        pickup_radius_km: float | None = None,
        food_preference: str = "both",
        capacity: float | None = None,
    ) -> bool:
        """Create a user profile unless one already exists for ``uid``.

        Returns:
            True if a new profile was created.

        Raises:
            ValueError: If a required field is empty, or the role or food
                preference is unknown.
        """
        if not uid or not name or not email or not role:
            raise ValueError("Missing required fields (uid, name, email, role)")
        if role not in USER_ROLES:
            raise ValueError(f"Unknown role: {role!r} (donor / recipient)")
        if food_preference not in FOOD_PREFERENCES:
            raise ValueError(
                f"Unknown food preference: {food_preference!r} (veg / non-veg / both)"
            )

        conn = self._get_conn()
        cur = conn.execute(
            """INSERT OR IGNORE INTO users
               (uid, name, email, role, latitude, longitude, pickup_radius_km,
                food_preference, capacity)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                uid,
                name,
                email,
                role,
                latitude,
                longitude,
                pickup_radius_km,
                food_preference,
                capacity,
            ),
        )
        conn.commit()
        return cur.rowcount == 1

    def get_user(self, uid: str) -> dict | None:
        conn = self._get_conn()
        row = conn.execute("SELECT * FROM users WHERE uid = ?", (uid,)).fetchone()
        return dict(row) if row else None

    def list_recipients(self) -> list[Candidate]:
        """Return all recipient-role users, in the order they signed up."""
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT * FROM users WHERE role = 'recipient' ORDER BY rowid"
        ).fetchall()
        return [Candidate.from_row(row) for row in rows]
