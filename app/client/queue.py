"""Durable FIFO queue of writes that could not reach the server.

Entries are replayed verbatim, oldest first, once connectivity returns. Replay
outcome per entry:

- 2xx: synced, removed.
- 5xx, OFFLINE, NETWORK: stop; this entry and everything behind it stay queued.
- 401: stop; the session is gone and replay waits for a new login.
- any other 4xx: the write is no longer valid (target deleted, slot taken);
  dropped and counted, replay continues.

Delivery is at-least-once-attempt and best effort. A replayed write that
succeeds may no longer match what the user meant; drops are reported rather
than merged.
"""

import json
import logging
import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from app.client.api import ApiClient, Body, serialize_body
from app.client.connectivity import ConnectivityMonitor
from app.client.errors import ApiError
from app.client.storage import Storage

logger = logging.getLogger(__name__)

QUEUE_KEY = "slotbook.offlineMutationQueue.v1"

_BASE36 = string.digits + string.ascii_lowercase

STOP_BUSY = "busy"
STOP_OFFLINE = "offline"
STOP_CONNECTIVITY = "connectivity"
STOP_SERVER_ERROR = "server-error"
STOP_UNAUTHORIZED = "unauthorized"


def new_entry_id() -> str:
    """<epoch-ms>-<6 base36 chars>, unique enough for one client."""
    suffix = "".join(random.choice(_BASE36) for _ in range(6))
    return f"{int(time.time() * 1000)}-{suffix}"


@dataclass
class QueueEntry:
    id: str
    created_at: str
    path: str
    method: str = "POST"
    body: Optional[str] = None
    description: str = "Pending update"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "path": self.path,
            "method": self.method,
            "body": self.body,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "QueueEntry":
        body = raw.get("body")
        return cls(
            id=str(raw.get("id") or new_entry_id()),
            created_at=str(raw.get("createdAt") or ""),
            path=raw["path"],
            method=str(raw.get("method") or "POST").upper(),
            body=body if isinstance(body, str) else serialize_body(body),
            description=str(raw.get("description") or "Pending update"),
        )


@dataclass
class FlushResult:
    synced: int = 0
    dropped: int = 0
    stopped_reason: Optional[str] = None

    def as_dict(self) -> dict:
        return {"synced": self.synced, "dropped": self.dropped}


class MutationQueue:
    def __init__(
        self,
        storage: Storage,
        monitor: Optional[ConnectivityMonitor] = None,
        key: str = QUEUE_KEY,
    ):
        self.storage = storage
        self.monitor = monitor
        self.key = key
        self.on_change: list[Callable[[int], None]] = []
        self._flushing = False

    @property
    def flushing(self) -> bool:
        return self._flushing

    def load(self) -> list[QueueEntry]:
        """Stored entries; missing, corrupt or non-list content reads as empty."""
        raw = self.storage.get_item(self.key)
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.warning("Offline queue under %s is corrupt; treating as empty", self.key)
            return []
        if not isinstance(parsed, list):
            return []
        entries = []
        missing_ids = False
        for item in parsed:
            if isinstance(item, dict) and isinstance(item.get("path"), str):
                missing_ids = missing_ids or not item.get("id")
                entries.append(QueueEntry.from_dict(item))
        if missing_ids:
            # Pin generated ids so a replayed entry can be removed by id
            self.storage.set_item(self.key, json.dumps([e.to_dict() for e in entries]))
        return entries

    def save(self, entries: list[QueueEntry]) -> None:
        self.storage.set_item(self.key, json.dumps([e.to_dict() for e in entries]))
        for listener in list(self.on_change):
            listener(len(entries))

    @property
    def pending_count(self) -> int:
        return len(self.load())

    def enqueue(self, path: str, method: str = "POST", body: Body = None, description: Optional[str] = None) -> int:
        """Append a write; returns the new queue length."""
        entries = self.load()
        entry = QueueEntry(
            id=new_entry_id(),
            created_at=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            path=path,
            method=str(method or "POST").upper(),
            body=serialize_body(body),
            description=description or "Pending update",
        )
        entries.append(entry)
        self.save(entries)
        logger.info("Queued offline %s %s (%s); %d pending", entry.method, path, entry.description, len(entries))
        return len(entries)

    def _remove(self, entry_id: str) -> None:
        # Re-read so entries enqueued while a replay was in flight survive
        self.save([e for e in self.load() if e.id != entry_id])

    async def flush(self, api: ApiClient) -> FlushResult:
        """Replay the current snapshot in order. Re-entrant calls are no-ops."""
        if self._flushing:
            return FlushResult(stopped_reason=STOP_BUSY)
        if self.monitor is not None and not self.monitor.online:
            return FlushResult(stopped_reason=STOP_OFFLINE)
        snapshot = self.load()
        if not snapshot:
            return FlushResult()

        self._flushing = True
        result = FlushResult()
        try:
            for entry in snapshot:
                try:
                    response = await api.request(entry.path, entry.method, entry.body)
                except ApiError as e:
                    if e.is_connectivity:
                        result.stopped_reason = STOP_CONNECTIVITY
                        break
                    logger.warning("Dropping queued %s %s: %s", entry.method, entry.path, e.message)
                    result.dropped += 1
                    self._remove(entry.id)
                    continue
                except Exception as e:
                    logger.warning("Dropping queued %s %s after client error: %s", entry.method, entry.path, e)
                    result.dropped += 1
                    self._remove(entry.id)
                    continue

                status = response.status_code
                if response.is_success:
                    result.synced += 1
                    self._remove(entry.id)
                    logger.info("Synced queued %s %s", entry.method, entry.path)
                elif status >= 500:
                    result.stopped_reason = STOP_SERVER_ERROR
                    logger.info("Replay of %s %s got %d; stopping flush", entry.method, entry.path, status)
                    break
                elif status == 401:
                    result.stopped_reason = STOP_UNAUTHORIZED
                    logger.info("Replay unauthorized; stopping flush until the owner logs in again")
                    break
                else:
                    result.dropped += 1
                    self._remove(entry.id)
                    logger.warning("Dropped queued %s %s: server answered %d", entry.method, entry.path, status)
        finally:
            self._flushing = False

        logger.info(
            "Flush finished: synced=%d dropped=%d stopped=%s pending=%d",
            result.synced, result.dropped, result.stopped_reason, self.pending_count,
        )
        return result
