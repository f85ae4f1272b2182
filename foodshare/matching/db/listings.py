"""Food listing storage."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

from ..models import Listing, hours_until
from .schema import ensure_schema


def listing_from_row(row: dict, now: datetime | None = None) -> Listing:
    """Convert a stored listing into a matching ``Listing``.

    ``hours_to_expiry`` is measured from ``now``; a listing without an expiry
    time keeps it unset and is rejected by the engine.
    """
    hours_to_expiry: float | None = None
    if row.get("expiry_time"):
        hours_to_expiry = hours_until(
            datetime.fromisoformat(row["expiry_time"]), now
        )
    return Listing(
        food_name=row["food_name"],
        quantity=row["quantity"],
        hours_to_expiry=hours_to_expiry,
        latitude=row.get("latitude"),
        longitude=row.get("longitude"),
        food_type=row.get("food_type") or "",
    )


class ListingDB:
    """Manages the food_listings table."""

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

    def add_listing(
        self,
        donor_id: str,
        food_name: str,
        quantity: float,
        *,
        expiry_time: datetime | None = None,
        food_type: str = "",
        unit: str = "item",
        latitude: float | None = None,
        longitude: float | None = None,
        prepared_time: datetime | None = None,
        verified: bool = False,
    ) -> int:
        """Insert an available listing.

        Returns:
            The inserted row ID.
        """
        conn = self._get_conn()
        cur = conn.execute(
            """INSERT INTO food_listings
               (food_name, food_type, quantity, unit, donor_id,
                latitude, longitude, expiry_time, prepared_time, verified, status)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 'available')""",
            (
                food_name,
                food_type,
                quantity,
                unit,
                donor_id,
                latitude,
                longitude,
                expiry_time.isoformat(timespec="seconds") if expiry_time else None,
                prepared_time.isoformat(timespec="seconds") if prepared_time else None,
                int(verified),
            ),
        )
        conn.commit()
        return cur.lastrowid

    def get_listing(self, listing_id: int) -> dict | None:
        conn = self._get_conn()
        row = conn.execute(
            "SELECT * FROM food_listings WHERE id = ?", (listing_id,)
        ).fetchone()
        return dict(row) if row else None

    def get_available(self) -> list[dict]:
        """Return all listings with status='available', soonest expiry first."""
        conn = self._get_conn()
        rows = conn.execute(
            """SELECT * FROM food_listings
               WHERE status = 'available'
               ORDER BY expiry_time IS NULL, expiry_time"""
        ).fetchall()
        return [dict(r) for r in rows]

    def mark_expired(self, now: datetime | None = None) -> int:
        """Set status='expired' for available listings past their expiry_time.

        Returns:
            Number of rows updated.
        """
        conn = self._get_conn()
        cutoff = (now or datetime.now()).isoformat(timespec="seconds")
        cur = conn.execute(
            """UPDATE food_listings
               SET status = 'expired',
                   updated_at = datetime('now', 'localtime')
               WHERE status = 'available'
                 AND expiry_time IS NOT NULL
                 AND expiry_time < ?""",
            (cutoff,),
        )
        conn.commit()
        return cur.rowcount
