"""
fieldsync/queue.py

SQLite store of vitals records captured while the device was offline.

Schema
------
pending_records: one row per captured record; ``status`` is
                 ``pending`` until the server accepts it (the row is
                 then deleted) or ``failed`` when the server rejected
                 it and a person has to look at it.
"""

import json
import logging
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_FAILED = "failed"

_DDL = """
CREATE TABLE IF NOT EXISTS pending_records (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    client_ref  TEXT    NOT NULL UNIQUE,
    payload     TEXT    NOT NULL,            -- JSON body for /api/records
    timestamp   TEXT    NOT NULL,            -- ISO-8601 UTC, capture time
    status      TEXT    NOT NULL DEFAULT 'pending'
                    CHECK(status IN ('pending', 'failed')),
    error       TEXT
);
"""


def _now() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(tz=timezone.utc).isoformat()


@dataclass
class QueuedRecord:
    id: int
    record: dict[str, Any]
    timestamp: str
    status: str = STATUS_PENDING
    error: Optional[str] = None

    @property
    def client_ref(self) -> str:
        return self.record["clientRef"]


class OfflineQueue:
    """Pending vitals records kept on the device.

    Args:
        path: SQLite file to use; parent directories are created.
              ``":memory:"`` keeps the queue for the life of the object.
    """

    def __init__(self, path: "str | Path") -> None:
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        with self._conn:
            self._conn.executescript(_DDL)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "OfflineQueue":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------

    def save(self, record: dict[str, Any]) -> int:
        """
        Queue *record* and return its local id.

        A ``clientRef`` is generated when the record has none, and
        ``recordedAt`` defaults to the capture timestamp so the server
        keeps the time of the visit rather than the time of the sync.
        Saving a record whose ``clientRef`` is already queued returns
        the existing id.
        """
        data = dict(record)
        data.setdefault("clientRef", str(uuid.uuid4()))
        now = _now()
        data.setdefault("recordedAt", now)

        existing = self._conn.execute(
            "SELECT id FROM pending_records WHERE client_ref = ?", (data["clientRef"],)
        ).fetchone()
        if existing:
            return existing["id"]

        with self._conn:
            cur = self._conn.execute(
                "INSERT INTO pending_records (client_ref, payload, timestamp) VALUES (?, ?, ?)",
                (data["clientRef"], json.dumps(data), now),
            )
        logger.info("Queued record id=%d clientRef=%s", cur.lastrowid, data["clientRef"])
        return cur.lastrowid

    def pending(self, limit: Optional[int] = None) -> list[QueuedRecord]:
        """Pending records, oldest first."""
        return self._select(STATUS_PENDING, limit)

    def failed(self) -> list[QueuedRecord]:
        return self._select(STATUS_FAILED, None)

    def clear(self, record_id: int) -> None:
        """Remove a record once the server has it."""
        with self._conn:
            self._conn.execute("DELETE FROM pending_records WHERE id = ?", (record_id,))

    def mark_failed(self, record_id: int, error: Any) -> None:
        if not isinstance(error, str):
            error = json.dumps(error)
        with self._conn:
            self._conn.execute(
                "UPDATE pending_records SET status = ?, error = ? WHERE id = ?",
                (STATUS_FAILED, error, record_id),
            )
        logger.warning("Record id=%d rejected by server: %s", record_id, error)

    def retry_failed(self) -> int:
        """Put failed records back in the pending queue; returns how many."""
        with self._conn:
            cur = self._conn.execute(
                "UPDATE pending_records SET status = ?, error = NULL WHERE status = ?",
                (STATUS_PENDING, STATUS_FAILED),
            )
        return cur.rowcount

    def __len__(self) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) AS n FROM pending_records WHERE status = ?", (STATUS_PENDING,)
        ).fetchone()
        return row["n"]

    # ------------------------------------------------------------------

    def _select(self, status: str, limit: Optional[int]) -> list[QueuedRecord]:
        sql = "SELECT * FROM pending_records WHERE status = ? ORDER BY id"
        params: tuple = (status,)
        if limit:
            sql += " LIMIT ?"
            params += (limit,)
        rows = self._conn.execute(sql, params).fetchall()
        return [
            QueuedRecord(
                id=r["id"],
                record=json.loads(r["payload"]),
                timestamp=r["timestamp"],
                status=r["status"],
                error=r["error"],
            )
            for r in rows
        ]
