import uuid

from fieldsync.queue import OfflineQueue


def test_save_stamps_client_ref_and_timestamp(tmp_path):
    q = OfflineQueue(tmp_path / "device" / "queue.db")
    qid = q.save({"patientId": 3, "bp": "120/80"})
    [item] = q.pending()
    assert item.id == qid
    assert uuid.UUID(item.client_ref)
    assert item.record["recordedAt"] == item.timestamp
    assert item.record["bp"] == "120/80"
    assert len(q) == 1


def test_save_keeps_given_client_ref_and_is_idempotent(tmp_path):
    q = OfflineQueue(tmp_path / "q.db")
    ref = str(uuid.uuid4())
    first = q.save({"patientId": 1, "clientRef": ref, "recordedAt": "2024-01-01T08:00:00+00:00"})
    second = q.save({"patientId": 1, "clientRef": ref})
    assert first == second
    assert len(q) == 1
    assert q.pending()[0].record["recordedAt"] == "2024-01-01T08:00:00+00:00"


def test_queue_survives_reopen(tmp_path):
    path = tmp_path / "q.db"
    with OfflineQueue(path) as q:
        q.save({"patientId": 1})
        q.save({"patientId": 2})
    with OfflineQueue(path) as q:
        assert [p.record["patientId"] for p in q.pending()] == [1, 2]


def test_clear_fail_and_retry(tmp_path):
    q = OfflineQueue(":memory:")
    a = q.save({"patientId": 1})
    b = q.save({"patientId": 2})
    c = q.save({"patientId": 3})

    q.clear(a)
    q.mark_failed(b, {"bp": ["blood pressure must look like 120/80"]})
    assert [p.id for p in q.pending()] == [c]
    assert len(q) == 1
    [failed] = q.failed()
    assert failed.id == b
    assert "blood pressure" in failed.error

    assert q.retry_failed() == 1
    assert [p.id for p in q.pending()] == [b, c]
    assert q.failed() == []


def test_pending_limit(tmp_path):
    q = OfflineQueue(tmp_path / "q.db")
    ids = [q.save({"patientId": i}) for i in range(5)]
    assert [p.id for p in q.pending(limit=2)] == ids[:2]
