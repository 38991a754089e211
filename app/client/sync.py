"""Sync coordinator: decides what gets queued and reconciles after a flush.

Only OFFLINE/NETWORK failures of call sites that opted in are queued. HTTP
failures mean the server saw and rejected the write, so they surface at once.
After a flush that synced anything, canonical state is reloaded from the
server; local state is never merged.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from app.client.api import ApiClient, Body
from app.client.errors import ApiError, is_connectivity_error
from app.client.queue import STOP_UNAUTHORIZED, FlushResult, MutationQueue

logger = logging.getLogger(__name__)

Notify = Callable[[str, str], None]
Refresher = Callable[[], Awaitable[Any]]


def plural(n: int, word: str) -> str:
    return f"{n} {word}{'' if n == 1 else 's'}"


def log_notice(message: str, level: str = "info") -> None:
    logger.log(logging.WARNING if level == "error" else logging.INFO, "%s", message)


@dataclass
class MutationResult:
    queued: bool
    body: Any = None


class SyncCoordinator:
    def __init__(
        self,
        api: ApiClient,
        queue: MutationQueue,
        refreshers: Optional[list[Refresher]] = None,
        notify: Optional[Notify] = None,
        on_unauthorized: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.api = api
        self.queue = queue
        self.monitor = api.monitor
        if self.queue.monitor is None:
            self.queue.monitor = self.monitor
        # settings, dashboard, appointments, types: whatever the UI shows
        self.refreshers = list(refreshers or [])
        self.notify = notify or log_notice
        self.on_unauthorized = on_unauthorized

    def bind(self) -> None:
        self.monitor.add_listener(self.on_connectivity_change)

    def unbind(self) -> None:
        self.monitor.remove_listener(self.on_connectivity_change)

    async def mutate(
        self,
        path: str,
        method: str = "POST",
        body: Body = None,
        allow_offline_queue: bool = False,
        description: Optional[str] = None,
    ) -> MutationResult:
        try:
            return MutationResult(queued=False, body=await self.api.call(path, method, body))
        except ApiError as e:
            if not (allow_offline_queue and e.is_connectivity):
                raise
            pending = self.queue.enqueue(path, method, body, description)
            self.notify(f"{description or 'Change'} queued offline ({pending} pending).", "info")
            return MutationResult(queued=True, body=None)

    async def on_connectivity_change(self, online: bool) -> None:
        if not online:
            self.notify("You are offline. Changes you make will sync when the connection returns.", "info")
            return
        self.notify("Connection restored. Syncing latest data.", "success")
        await self.flush()

    async def flush(self) -> FlushResult:
        result = await self.queue.flush(self.api)
        if result.synced > 0:
            self.notify(f"Synced {plural(result.synced, 'offline change')}.", "success")
            await self.refresh()
        if result.dropped > 0:
            self.notify(f"{plural(result.dropped, 'offline change')} could not be applied.", "error")
        if result.stopped_reason == STOP_UNAUTHORIZED:
            self.notify("Session expired. Log in again to sync pending changes.", "error")
            if self.on_unauthorized is not None:
                await self.on_unauthorized()
        return result

    async def refresh(self) -> None:
        """Reload canonical server state; losing the connection mid-reload is not an error."""
        for refresher in self.refreshers:
            try:
                await refresher()
            except ApiError as e:
                if is_connectivity_error(e):
                    logger.info("Refresh interrupted by connectivity loss: %s", e.message)
                    return
                logger.warning("Refresh after sync failed: %s", e.message)
