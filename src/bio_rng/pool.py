"""Shared FIFO of extracted entropy values.

One producer appends at the tail, any number of consumers remove from the
head. Every mutation happens under a single lock and no removal spans a
suspension point, so each value is delivered to exactly one consumer
whether the consumers are threads, coroutines, or both.

Waiting consumers re-check the pool at a fixed poll interval. Thread
consumers are additionally woken by a condition variable when a value
arrives or the pool closes; coroutine consumers only poll, because the
producer may live on a different event loop.
"""

from __future__ import annotations

import asyncio
import math
import threading
import time
from collections import deque

from bio_rng.exceptions import DegenerateBatchError, EntropyCancelledError, PoolStarvationError

DEFAULT_POLL_INTERVAL_S = 0.010


class EntropyPool:
    """Thread-safe FIFO of floats in [0, 1].

    Waiting without a timeout is unbounded: if the producer stalls and
    nobody closes the pool, ``get()``/``aget()`` wait forever. Callers that
    cannot afford that must pass ``timeout``.

    Args:
        poll_interval: Seconds between re-checks of an empty pool.
    """

    def __init__(self, poll_interval: float = DEFAULT_POLL_INTERVAL_S) -> None:
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval}")
        self._poll_interval = poll_interval
        self._values: deque[float] = deque()
        self._cond = threading.Condition(threading.Lock())
        self._closed = False
        self._close_reason: BaseException | None = None

    def __len__(self) -> int:
        with self._cond:
            return len(self._values)

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, value: float) -> None:
        """Append *value* at the tail of the pool.

        Raises:
            DegenerateBatchError: If *value* is not a finite float in [0, 1].
            EntropyCancelledError: If the pool has been closed.
        """
        value = float(value)
        if not (math.isfinite(value) and 0.0 <= value <= 1.0):
            raise DegenerateBatchError(f"Pool values must lie in [0, 1], got {value!r}")
        with self._cond:
            if self._closed:
                raise EntropyCancelledError("Cannot add entropy to a closed pool")
            self._values.append(value)
            self._cond.notify()

    def try_get(self) -> float | None:
        """Remove and return the head value, or ``None`` if the pool is empty.

        Raises:
            EntropyCancelledError: If the pool is closed and drained.
        """
        with self._cond:
            return self._pop_locked()

    def get(self, timeout: float | None = None) -> float:
        """Remove and return the head value, waiting while the pool is empty.

        Args:
            timeout: Maximum seconds to wait. ``None`` waits indefinitely.

        Raises:
            PoolStarvationError: If *timeout* expires before a value arrives.
            EntropyCancelledError: If the pool is closed while waiting.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while True:
                value = self._pop_locked()
                if value is not None:
                    return value
                wait = self._poll_interval
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise PoolStarvationError(f"No entropy available after {timeout}s")
                    wait = min(wait, remaining)
                self._cond.wait(wait)

    async def aget(self, timeout: float | None = None) -> float:
        """Coroutine flavour of :meth:`get`, polling with ``asyncio.sleep``.

        Raises:
            PoolStarvationError: If *timeout* expires before a value arrives.
            EntropyCancelledError: If the pool is closed while waiting.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            value = self.try_get()
            if value is not None:
                return value
            wait = self._poll_interval
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise PoolStarvationError(f"No entropy available after {timeout}s")
                wait = min(wait, remaining)
            await asyncio.sleep(wait)

    def close(self, reason: BaseException | None = None) -> None:
        """Stop accepting values and release every waiting consumer.

        Values already in the pool stay deliverable; once drained, consumers
        get ``EntropyCancelledError`` chained to *reason* (if given).
        Idempotent; the first reason wins.
        """
        with self._cond:
            if self._closed:
                return
            self._closed = True
            self._close_reason = reason
            self._cond.notify_all()

    def _pop_locked(self) -> float | None:
        if self._values:
            return self._values.popleft()
        if self._closed:
            raise EntropyCancelledError("Entropy pool closed") from self._close_reason
        return None
