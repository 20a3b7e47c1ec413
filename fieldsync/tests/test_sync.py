import pytest

from fieldsync.client import ApiError, OfflineError
from fieldsync.queue import OfflineQueue
from fieldsync.sync import merge_messages, replay, submit_or_queue


class FakeClient:
    """Stands in for CaresoraClient; answers like /api/records/sync."""

    def __init__(self, online=True, reject=(), fail_after=None, known=()):
        self.online = online
        self.reject = set(reject)
        self.known = set(known)
        self.fail_after = fail_after
        self.batches = []
        self.submitted = []

    def submit_record(self, record):
        if not self.online:
            raise OfflineError("no route to host")
        self.submitted.append(record)
        return {"ok": True, "created": True, "record": {"id": len(self.submitted), **record}}

    def sync_records(self, records):
        if not self.online or (self.fail_after is not None and len(self.batches) >= self.fail_after):
            raise OfflineError("connection dropped")
        self.batches.append(records)
        results = []
        for r in records:
            ref = r["clientRef"]
            if r.get("patientId") in self.reject:
                results.append({"clientRef": ref, "status": "rejected", "errors": {"patientId": ["patient not found"]}})
            elif ref in self.known:
                results.append({"clientRef": ref, "status": "duplicate", "id": 1})
            else:
                self.known.add(ref)
                results.append({"clientRef": ref, "status": "created", "id": 2})
        return {"ok": True, "results": results}


@pytest.fixture
def queue(tmp_path):
    with OfflineQueue(tmp_path / "queue.db") as q:
        yield q


def test_submit_online_does_not_queue(queue):
    client = FakeClient()
    out = submit_or_queue(client, queue, {"patientId": 1, "bp": "120/80"})
    assert out["status"] == "sent"
    assert client.submitted[0]["clientRef"] == out["clientRef"]
    assert len(queue) == 0


def test_submit_offline_queues_with_same_client_ref(queue):
    out = submit_or_queue(FakeClient(online=False), queue, {"patientId": 1})
    assert out["status"] == "queued"
    assert queue.pending()[0].client_ref == out["clientRef"]


def test_replay_clears_accepted_and_marks_rejected(queue):
    for pid in (1, 2, 99, 3):
        queue.save({"patientId": pid})
    already = queue.pending()[1].client_ref
    client = FakeClient(reject={99}, known={already})

    report = replay(client, queue, batch_size=3)
    assert (report.created, report.duplicate, report.rejected) == (2, 1, 1)
    assert report.synced == 3
    assert report.remaining == 0
    assert [len(b) for b in client.batches] == [3, 1]
    [failed] = queue.failed()
    assert failed.record["patientId"] == 99


def test_replay_stops_when_connection_drops(queue):
    for pid in range(5):
        queue.save({"patientId": pid})
    report = replay(FakeClient(fail_after=1), queue, batch_size=2)
    assert report.offline is True
    assert report.created == 2
    assert report.remaining == 3
    assert [p.record["patientId"] for p in queue.pending()] == [2, 3, 4]


def test_replay_twice_is_safe(queue):
    for pid in range(3):
        queue.save({"patientId": pid})
    client = FakeClient()
    replay(client, queue)
    for p in client.batches[0]:
        queue.save(p)  # the device lost its bookkeeping and queued them again
    report = replay(client, queue)
    assert (report.created, report.duplicate) == (0, 3)
    assert len(queue) == 0


def test_replay_stops_on_batch_error(queue):
    queue.save({"patientId": 1})

    class Throttled(FakeClient):
        def sync_records(self, records):
            raise ApiError(429, "Request was throttled.")

    report = replay(Throttled(), queue)
    assert "429" in report.error
    assert report.remaining == 1


def test_replay_with_empty_queue(queue):
    client = FakeClient()
    report = replay(client, queue)
    assert report.synced == 0
    assert client.batches == []


def msg(id, created, sender=1, recipient=2, content="hi"):
    return {"id": id, "createdAt": created, "senderId": sender, "recipientId": recipient, "content": content}


def test_merge_messages_dedups_and_orders():
    current = [msg(1, "2024-05-01T10:00:00"), msg(3, "2024-05-01T10:02:00")]
    incoming = [msg(2, "2024-05-01T10:01:00"), msg(3, "2024-05-01T10:02:00", content="edited")]
    merged = merge_messages(current, incoming)
    assert [m["id"] for m in merged] == [1, 2, 3]
    assert merged[-1]["content"] == "edited"


def test_merge_messages_ties_break_on_id():
    merged = merge_messages([msg(5, "2024-05-01T10:00:00")], [msg(4, "2024-05-01T10:00:00")])
    assert [m["id"] for m in merged] == [4, 5]


def test_merge_messages_filters_other_conversations():
    current = [msg(1, "2024-05-01T10:00:00", sender=1, recipient=2)]
    incoming = [
        msg(2, "2024-05-01T10:01:00", sender=2, recipient=1),
        msg(3, "2024-05-01T10:01:30", sender=7, recipient=1),
    ]
    assert [m["id"] for m in merge_messages(current, incoming, peer_id=2)] == [1, 2]
