"""Deadline / cancellation token threaded through every chain read.

A chat command with a user-facing timeout creates a Deadline and passes it
down; every network attempt and every retry wait is bounded by it, so an
abandoned quote never leaves a retry loop running.

Example:
    deadline = Deadline.after(20)
    quote = await engine.quote_exact_input("ETH", "USDC", "1", deadline=deadline)
"""

import asyncio
import logging
import time
from typing import Awaitable, Optional, TypeVar

from basewallet.errors import DeadlineExceededError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Deadline:
    """Optional time budget plus explicit cancellation."""

    def __init__(self, timeout: Optional[float] = None, operation: str = "operation"):
        """Initialize the deadline.

        Args:
            timeout: Seconds from now until expiry (None = no time limit)
            operation: Description used in error messages and logs
        """
        self.operation = operation
        self._expires_at = time.monotonic() + timeout if timeout is not None else None
        self._cancelled = asyncio.Event()

    @classmethod
    def after(cls, seconds: float, operation: str = "operation") -> "Deadline":
        return cls(timeout=seconds, operation=operation)

    def remaining(self) -> Optional[float]:
        """Seconds left, None when unbounded. Never negative."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        if self.cancelled:
            return True
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def cancel(self) -> None:
        """Abandon the operation; pending waits wake up immediately."""
        if not self._cancelled.is_set():
            logger.debug(f"Deadline cancelled: {self.operation}")
        self._cancelled.set()

    def check(self) -> None:
        """Raise DeadlineExceededError if cancelled or out of time."""
        if self.cancelled:
            raise DeadlineExceededError(f"{self.operation} was cancelled")
        if self.expired:
            raise DeadlineExceededError(f"{self.operation} exceeded its deadline")

    async def bound(self, awaitable: Awaitable[T]) -> T:
        """Await under the remaining time budget."""
        try:
            self.check()
        except DeadlineExceededError:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise
        try:
            return await asyncio.wait_for(awaitable, timeout=self.remaining())
        except asyncio.TimeoutError:
            raise DeadlineExceededError(f"{self.operation} exceeded its deadline")

    async def sleep(self, delay: float) -> None:
        """Wait ``delay`` seconds unless cancelled or expired first."""
        self.check()
        remaining = self.remaining()
        if remaining is not None and remaining < delay:
            delay = remaining
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass
        self.check()
