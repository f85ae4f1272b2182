"""Claim records and the per-recipient history source."""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path

from ..models import ClaimHistorySample
from ..sources import HistorySource
from .schema import ensure_schema

CLAIM_STATUSES: tuple[str, ...] = (
    "requested",
    "approved",
    "rejected",
    "fulfilled",
    "cancelled",
)


class ClaimDB(HistorySource):
    """Manages the claims table.

    ``recent_claims`` is called from worker threads during matching, so the
    connection is shared across threads and every use holds ``_lock``.
    """

    def __init__(self, db_path: str | Path = "~/.config/foodshare/foodshare.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def _get_conn(self) -> sqlite3.Connection:
        # caller holds _lock
        if self._conn is None:
            self._conn = ensure_schema(self._db_path, check_same_thread=False)
        return self._conn

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def add_claim(
        self,
        food_item_id: int,
        recipient_id: str,
        *,
        donor_id: str | None = None,
        quantity: float | None = None,
    ) -> int:
        """Record a new claim request.

        Returns:
            The inserted row ID.
        """
        with self._lock:
            conn = self._get_conn()
            cur = conn.execute(
                """INSERT INTO claims
                   (food_item_id, recipient_id, donor_id, quantity, status)
                   VALUES (?, ?, ?, ?, 'requested')""",
                (food_item_id, recipient_id, donor_id, quantity),
            )
            conn.commit()
            return cur.lastrowid

    def update_status(self, claim_id: int, status: str) -> bool:
        """Set a claim's status and stamp the matching ``<status>_at`` column.

        Returns:
            True if the claim exists.

        Raises:
            ValueError: If ``status`` is not a known claim status.
        """
        if status not in CLAIM_STATUSES or status == "requested":
            raise ValueError(f"Invalid claim status: {status!r}")

        with self._lock:
            conn = self._get_conn()
            # Column name comes from the fixed CLAIM_STATUSES whitelist
            cur = conn.execute(
                f"""UPDATE claims
                    SET status = ?,
                        {status}_at = datetime('now', 'localtime')
                    WHERE id = ?""",
                (status, claim_id),
            )
            conn.commit()
            return cur.rowcount == 1

    def get_claim(self, claim_id: int) -> dict | None:
        with self._lock:
            row = self._get_conn().execute(
                "SELECT * FROM claims WHERE id = ?", (claim_id,)
            ).fetchone()
        return dict(row) if row else None

    def recent_claims(
        self, recipient_id: str, limit: int = 20
    ) -> list[ClaimHistorySample]:
        """Return up to ``limit`` of the recipient's claims, newest first."""
        with self._lock:
            rows = self._get_conn().execute(
                """SELECT status FROM claims
                   WHERE recipient_id = ?
                   ORDER BY requested_at DESC, id DESC
                   LIMIT ?""",
                (recipient_id, limit),
            ).fetchall()
        return [ClaimHistorySample(status=row["status"]) for row in rows]
