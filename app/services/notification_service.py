"""Post-commit notification hooks.

Booking writes commit first; notification attempts run afterwards, concurrently,
and their outcome is reported to the caller. A failed or raising hook never
unwinds the committed booking.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from app.services.email_service import EmailResult

logger = logging.getLogger(__name__)

Hook = Callable[[], Awaitable[Optional[EmailResult]]]


@dataclass
class NotificationSummary:
    mode: str = "none"
    sent: int = 0

    def as_dict(self) -> dict:
        return {"mode": self.mode, "sent": self.sent}


class PostCommitHooks:
    """Notification callbacks queued during a transaction, run after commit."""

    def __init__(self):
        self._hooks: list[tuple[str, Hook]] = []

    def add(self, name: str, hook: Hook) -> None:
        self._hooks.append((name, hook))

    def __len__(self) -> int:
        return len(self._hooks)

    async def run(self) -> NotificationSummary:
        if not self._hooks:
            return NotificationSummary()

        names = [name for name, _ in self._hooks]
        results = await asyncio.gather(*(hook() for _, hook in self._hooks), return_exceptions=True)
        self._hooks.clear()

        summary = NotificationSummary()
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                logger.error("Notification hook %s raised: %s", name, result)
                continue
            if result is None:
                continue
            if summary.mode == "none" and result.provider not in ("none", None):
                summary.mode = result.provider
            if result.ok:
                summary.sent += 1
            else:
                logger.warning("Notification %s not delivered via %s: %s", name, result.provider, result.reason)
        return summary
