"""Thread-affine local metrics layered over prometheus_client children.

A local metric coalesces many small increments/observations in plain Python
attributes and applies them to its shared prometheus_client child on
flush(). Instances are not synchronized: each one must only be touched by the
thread that owns it. The shared child does its own locking when the delta is
merged.

MayFlush is the flush-gating contract used by generated thread-local roots:
a root remembers when it last flushed and only flushes again once
FLUSH_INTERVAL seconds have elapsed.
"""
from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

# Monotonic clock used for flush gating (tests may monkeypatch it)
clock = time.monotonic


class LocalCounter:
    """Float counter delta, merged with `shared.inc(delta)`."""

    __slots__ = ("_shared", "_pending")

    def __init__(self, shared: Any):
        self._shared = shared
        self._pending = 0.0

    def inc(self, amount: float = 1.0) -> None:
        if amount < 0:
            raise ValueError("Counters can only be incremented by non-negative amounts.")
        self._pending += amount

    def get(self) -> float:
        """Value accumulated locally since the last flush."""
        return self._pending

    def reset(self) -> None:
        self._pending = 0.0

    def flush(self) -> None:
        if not self._pending:
            return
        delta = self._pending
        self._pending = 0.0
        self._shared.inc(delta)

    @property
    def shared(self) -> Any:
        return self._shared


class LocalIntCounter(LocalCounter):
    """Counter that only accepts whole, non-negative increments."""

    __slots__ = ()

    def __init__(self, shared: Any):
        super().__init__(shared)
        self._pending = 0

    def inc(self, amount: int = 1) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValueError(f"LocalIntCounter increments must be integers, got {amount!r}")
        if amount < 0:
            raise ValueError("Counters can only be incremented by non-negative amounts.")
        self._pending += amount

    def reset(self) -> None:
        self._pending = 0

    def flush(self) -> None:
        if not self._pending:
            return
        delta = self._pending
        self._pending = 0
        self._shared.inc(delta)


class LocalHistogram:
    """Buffers observations and replays them into `shared.observe` on flush."""

    __slots__ = ("_shared", "_samples", "_sum")

    def __init__(self, shared: Any):
        self._shared = shared
        self._samples: list[float] = []
        self._sum = 0.0

    def observe(self, amount: float) -> None:
        self._samples.append(amount)
        self._sum += amount

    @contextmanager
    def time(self) -> Iterator[None]:
        """Observe the wall-clock duration of the with-block in seconds."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.observe(max(time.perf_counter() - start, 0.0))

    def get_sample_count(self) -> int:
        return len(self._samples)

    def get_sample_sum(self) -> float:
        return self._sum

    def clear(self) -> None:
        self._samples = []
        self._sum = 0.0

    def flush(self) -> None:
        if not self._samples:
            return
        samples = self._samples
        self.clear()
        for v in samples:
            self._shared.observe(v)

    @property
    def shared(self) -> Any:
        return self._shared


class MayFlush:
    """Flush gating for generated roots.

    Subclasses declare the `_sm_last_flush` slot and implement flush_leaves().
    """

    __slots__ = ()

    FLUSH_INTERVAL: float = 1.0

    def flush_leaves(self) -> None:  # pragma: no cover - provided by generated code
        raise NotImplementedError

    def reset_flush_timer(self) -> None:
        self._sm_last_flush = clock()

    def since_last_flush(self) -> float:
        return clock() - self._sm_last_flush

    def flush(self) -> None:
        """Merge every pending delta into the shared metrics now."""
        self.flush_leaves()
        self.reset_flush_timer()

    def try_flush(self, interval: float) -> bool:
        if self.since_last_flush() < interval:
            return False
        self.flush()
        return True

    def may_flush(self) -> bool:
        return self.try_flush(self.FLUSH_INTERVAL)


__all__ = ["clock", "LocalCounter", "LocalIntCounter", "LocalHistogram", "MayFlush"]
