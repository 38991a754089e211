"""Connectivity signal: the online/offline events a browser would fire."""

import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

Listener = Callable[[bool], Awaitable[None]]


class ConnectivityMonitor:
    def __init__(self, online: bool = True):
        self.online = online
        self._listeners: list[Listener] = []

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def set_online(self, online: bool) -> None:
        """Record the new state; listeners run only on an actual transition."""
        online = bool(online)
        if online == self.online:
            return
        self.online = online
        logger.info("Connectivity changed: %s", "online" if online else "offline")
        for listener in list(self._listeners):
            await listener(online)
