"""Deferred, cancelable participant removal.

A disconnect is not treated as a departure straight away. The room schedules
a removal after a grace window; a reconnect with the same participant id
inside the window cancels it. At most one removal is pending per participant:
scheduling again replaces the earlier task.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

RemovalCallback = Callable[[str], Awaitable[None]]


class PresenceScheduler:
    """Pending removal tasks keyed by participant id."""

    def __init__(self, delay_seconds: float) -> None:
        self.delay_seconds = delay_seconds
        self._pending: dict[str, asyncio.Task[None]] = {}

    def schedule(self, user_id: str, callback: RemovalCallback) -> None:
        """Run ``callback(user_id)`` once the grace window elapses.

        Must be called from within a running event loop. Any removal already
        pending for ``user_id`` is cancelled first.
        """
        self.cancel(user_id)
        task = asyncio.create_task(
            self._run(user_id, callback), name=f"presence-removal:{user_id}"
        )
        self._pending[user_id] = task
        logger.debug(
            "Scheduled removal of %s in %.1fs", user_id, self.delay_seconds
        )

    async def _run(self, user_id: str, callback: RemovalCallback) -> None:
        await asyncio.sleep(self.delay_seconds)

        # Past this point the removal is committed and can no longer be cancelled
        if self._pending.get(user_id) is asyncio.current_task():
            del self._pending[user_id]

        try:
            await callback(user_id)
        except Exception:
            logger.exception("Deferred removal of %s failed", user_id)

    def cancel(self, user_id: str) -> bool:
        """Cancel the pending removal for a participant.

        Returns:
            True if a removal was pending and has been cancelled
        """
        task = self._pending.pop(user_id, None)
        if task is None:
            return False
        task.cancel()
        return True

    def cancel_all(self) -> int:
        """Cancel every pending removal. Returns how many were cancelled."""
        count = len(self._pending)
        for task in self._pending.values():
            task.cancel()
        self._pending.clear()
        return count

    def is_pending(self, user_id: str) -> bool:
        return user_id in self._pending

    @property
    def pending_ids(self) -> list[str]:
        return list(self._pending)
