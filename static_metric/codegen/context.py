"""Generation context.

Carries the monotonically increasing scope counter that numbers the private
namespace wrapping each generated metric, so that two metrics whose struct
names share a prefix never produce colliding class names. A process-wide
DEFAULT_CONTEXT exists for convenience; pass an explicit context to get
deterministic numbering in tests or parallel builds.
"""
from __future__ import annotations

import threading

SCOPE_PREFIX = "_static_scope_"


class GeneratorContext:
    """Thread-safe scope counter."""

    def __init__(self, start: int = 0):
        self._next = start
        self._lock = threading.Lock()

    def next_scope_id(self) -> int:
        with self._lock:
            scope_id = self._next
            self._next += 1
        return scope_id

    @property
    def issued(self) -> int:
        """Next id that will be handed out."""
        with self._lock:
            return self._next

    def __repr__(self) -> str:
        return f"GeneratorContext(next={self.issued})"


DEFAULT_CONTEXT = GeneratorContext()


def scope_name(scope_id: int) -> str:
    return f"{SCOPE_PREFIX}{scope_id}"


__all__ = ["SCOPE_PREFIX", "GeneratorContext", "DEFAULT_CONTEXT", "scope_name"]
