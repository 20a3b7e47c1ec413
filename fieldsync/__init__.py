"""
Client-side helpers for field devices.

A worker's device keeps vitals it could not send in an
:class:`OfflineQueue` and replays them through ``/api/records/sync``
once the network is back.  Each queued record carries the ``clientRef``
it was created with, so a replay that is interrupted halfway can simply
be run again.
"""
from fieldsync.client import ApiError, CaresoraClient, OfflineError
from fieldsync.queue import OfflineQueue, QueuedRecord
from fieldsync.sync import SyncReport, merge_messages, replay, submit_or_queue

__all__ = [
    "ApiError",
    "CaresoraClient",
    "OfflineError",
    "OfflineQueue",
    "QueuedRecord",
    "SyncReport",
    "merge_messages",
    "replay",
    "submit_or_queue",
]
