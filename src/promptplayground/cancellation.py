"""Per-run cancellation scope."""

from __future__ import annotations

from typing import Awaitable, Optional, TypeVar
import asyncio


T = TypeVar("T")


class OperationCancelledError(Exception):
    """Raised when an operation observes a cancelled token."""


class CancellationToken:
    """Irreversible cancellation signal owned by a single run.

    ``cancel()`` is non-blocking and idempotent. Once set, the token stays
    cancelled for its whole lifetime. All methods must be called from the
    thread running the event loop.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def cancel_after(self, delay_seconds: float) -> None:
        """Schedule cancellation after a deadline on the running loop."""

        if delay_seconds <= 0:
            raise ValueError("delay_seconds must be > 0.")
        if self.cancelled:
            return
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay_seconds, self.cancel, "timeout")

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelledError(f"Operation {self._reason}.")

    async def wait(self) -> None:
        await self._event.wait()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        When the token wins the race the wrapped task is cancelled and
        ``OperationCancelledError`` is raised. Work running in a worker
        thread cannot be interrupted; its result is abandoned.
        """

        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            self.raise_if_cancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        raise OperationCancelledError(f"Operation {self._reason}.")
