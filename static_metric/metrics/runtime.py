"""Runtime support imported by generated metric modules.

  * lookup(vec, pairs)   -> labeled child of a shared prometheus_client metric
  * ThreadLocalSlot      -> lazily built per-thread root of a generated tree
  * Local*Delegator      -> leaf handle resolving the calling thread's leaf by
                            its flat arena index (sum of its offset chain)

Delegators never lock: the resolved leaf belongs to the calling thread only.
"""
from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from ..utils.exceptions import LayoutAssumptionViolation

logger = logging.getLogger(__name__)


def lookup(vec: Any, pairs: Iterable[tuple[str, str]]) -> Any:
    """Lookup-or-create the child of `vec` for the full label mapping.

    Values go to labels() positionally, in the vec's declared label order, so
    a key such as `self` cannot collide with the method's own parameters.
    """
    mapping = dict(pairs)
    names = tuple(getattr(vec, '_labelnames', ()))
    if set(names) != set(mapping):
        raise ValueError(f"label keys {sorted(mapping)} do not match metric labels {list(names)}")
    return vec.labels(*(mapping[n] for n in names))


def check_layout(root: Any, expected: int) -> None:
    """Fail fast if a freshly built root does not match its planned arena size."""
    got = len(root._sm_leaves)
    if got != expected:
        raise LayoutAssumptionViolation(
            f"{type(root).__name__} built {got} leaves but its layout plans {expected}"
        )


class ThreadLocalSlot:
    """Holds one root per thread, created on first access by `factory()`."""

    def __init__(self, factory: Callable[[], Any]):
        self._factory = factory
        self._local = threading.local()

    def get(self) -> Any:
        root = getattr(self._local, 'root', None)
        if root is None:
            root = self._factory()
            self._local.root = root
            logger.debug("runtime.slot.init thread=%s root=%s",
                          threading.current_thread().name, type(root).__name__)
        return root

    def peek(self) -> Any | None:
        """Calling thread's root, or None if it never touched this slot."""
        return getattr(self._local, 'root', None)

    def flush(self) -> None:
        root = self.peek()
        if root is not None:
            root.flush()

    def may_flush(self) -> bool:
        root = self.peek()
        if root is None:
            return False
        return root.may_flush()


class _LeafDelegator:
    __slots__ = ("_slot", "_offsets", "_index")

    def __init__(self, slot: ThreadLocalSlot, offsets: tuple[int, ...]):
        self._slot = slot
        self._offsets = tuple(offsets)
        self._index = sum(self._offsets)

    @property
    def offsets(self) -> tuple[int, ...]:
        return self._offsets

    @property
    def index(self) -> int:
        return self._index

    def resolve(self) -> Any:
        """The calling thread's leaf metric."""
        return self._slot.get()._sm_leaves[self._index]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(offsets={self._offsets})"


class LocalCounterDelegator(_LeafDelegator):
    __slots__ = ()

    def inc(self, amount: float = 1.0) -> None:
        root = self._slot.get()
        root._sm_leaves[self._index].inc(amount)
        root.may_flush()

    def get(self) -> float:
        return self.resolve().get()


class LocalIntCounterDelegator(LocalCounterDelegator):
    __slots__ = ()

    def inc(self, amount: int = 1) -> None:
        super().inc(amount)


class LocalHistogramDelegator(_LeafDelegator):
    __slots__ = ()

    def observe(self, amount: float) -> None:
        root = self._slot.get()
        root._sm_leaves[self._index].observe(amount)
        root.may_flush()

    @contextmanager
    def time(self) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            self.observe(max(time.perf_counter() - start, 0.0))

    def get_sample_count(self) -> int:
        return self.resolve().get_sample_count()

    def get_sample_sum(self) -> float:
        return self.resolve().get_sample_sum()


__all__ = [
    "lookup",
    "check_layout",
    "ThreadLocalSlot",
    "LocalCounterDelegator",
    "LocalIntCounterDelegator",
    "LocalHistogramDelegator",
]
