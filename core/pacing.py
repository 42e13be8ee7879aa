# core/pacing.py
"""Pacing strategies applied between sequential provider calls."""

from __future__ import annotations

import asyncio
import time
from typing import Protocol

import structlog

logger = structlog.get_logger(__name__)


class Pacer(Protocol):
    """Waits between two consecutive units of work."""

    async def wait(self) -> None: ...


class NoDelayPacer:
    """Never waits."""

    async def wait(self) -> None:
        return None


class FixedDelayPacer:
    """Sleeps a fixed number of seconds on every call."""

    def __init__(self, delay_seconds: float) -> None:
        if delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")
        self.delay_seconds = delay_seconds

    async def wait(self) -> None:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

    def __repr__(self) -> str:
        return f"FixedDelayPacer({self.delay_seconds})"


class TokenBucketPacer:
    """Allows ``capacity`` immediate calls, then refills at ``rate`` per second."""

    def __init__(self, rate: float, capacity: int = 1) -> None:
        if rate <= 0:
            raise ValueError("rate must be positive")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.rate = rate
        self.capacity = capacity
        self._tokens = float(capacity)
        self._last = time.monotonic()

    def _refill(self) -> None:
        now = time.monotonic()
        self._tokens = min(self.capacity, self._tokens + (now - self._last) * self.rate)
        self._last = now

    async def wait(self) -> None:
        self._refill()
        if self._tokens < 1:
            shortfall = (1 - self._tokens) / self.rate
            logger.debug("Token bucket empty; waiting %.2fs.", shortfall)
            await asyncio.sleep(shortfall)
            self._refill()
        self._tokens = max(0.0, self._tokens - 1)
