"""
Online/offline submission and replay of queued vitals records.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from fieldsync.client import ApiError, CaresoraClient, OfflineError
from fieldsync.queue import OfflineQueue

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50


@dataclass
class SyncReport:
    created: int = 0
    duplicate: int = 0
    rejected: int = 0
    remaining: int = 0
    offline: bool = False
    error: Optional[str] = None

    @property
    def synced(self) -> int:
        return self.created + self.duplicate


def submit_or_queue(client: CaresoraClient, queue: OfflineQueue, record: dict) -> dict:
    """Send *record* now, or keep it in *queue* when the server is unreachable.

    The ``clientRef`` is fixed before the first attempt: if the request
    reached the server but the answer was lost, the later replay is
    reported as a duplicate instead of storing the visit twice.
    """
    record = dict(record)
    record.setdefault("clientRef", str(uuid.uuid4()))
    try:
        data = client.submit_record(record)
    except OfflineError:
        queue_id = queue.save(record)
        return {"status": "queued", "queueId": queue_id, "clientRef": record["clientRef"]}
    return {"status": "sent", "record": data.get("record"), "clientRef": record["clientRef"]}


def replay(client: CaresoraClient, queue: OfflineQueue, batch_size: int = DEFAULT_BATCH_SIZE) -> SyncReport:
    """Push pending records to ``/api/records/sync`` in batches.

    Accepted (created or duplicate) records leave the queue; rejected
    ones are marked failed with the server's errors.  Losing the
    connection, or an error for the whole batch, stops the replay and
    leaves everything not yet acknowledged pending.
    """
    report = SyncReport()
    while True:
        batch = queue.pending(limit=batch_size)
        if not batch:
            break
        try:
            resp = client.sync_records([q.record for q in batch])
        except OfflineError:
            report.offline = True
            break
        except ApiError as e:
            report.error = str(e)
            break

        by_ref = {str(r.get("clientRef")): r for r in resp.get("results", [])}
        progressed = False
        for queued in batch:
            result = by_ref.get(queued.client_ref)
            if result is None:
                continue
            progressed = True
            status = result.get("status")
            if status in ("created", "duplicate"):
                queue.clear(queued.id)
                setattr(report, status, getattr(report, status) + 1)
            else:
                queue.mark_failed(queued.id, result.get("errors") or status)
                report.rejected += 1
        if not progressed:
            report.error = "server acknowledged none of the batch"
            break

    report.remaining = len(queue)
    logger.info("replay: %s", report)
    return report


def merge_messages(current: Iterable[dict], incoming: Iterable[dict], peer_id: Optional[int] = None) -> list[dict]:
    """Merge realtime or catch-up messages into the open conversation.

    With *peer_id*, incoming messages that do not involve that peer are
    dropped.  Messages are de-duplicated by id and ordered by
    ``(createdAt, id)``.
    """
    merged = {m["id"]: m for m in current}
    for m in incoming:
        if peer_id is not None and peer_id not in (m.get("senderId"), m.get("recipientId")):
            continue
        merged[m["id"]] = m
    return sorted(merged.values(), key=lambda m: (m.get("createdAt") or "", m["id"]))
