"""Runtime support for generated static metrics.

Generated modules import from here; application code normally only touches
the generated types plus the prometheus_client collectors they wrap.
"""
from .local import LocalCounter, LocalHistogram, LocalIntCounter, MayFlush
from .runtime import (
    LocalCounterDelegator,
    LocalHistogramDelegator,
    LocalIntCounterDelegator,
    ThreadLocalSlot,
    check_layout,
    lookup,
)

__all__ = [
    "LocalCounter",
    "LocalIntCounter",
    "LocalHistogram",
    "MayFlush",
    "ThreadLocalSlot",
    "LocalCounterDelegator",
    "LocalIntCounterDelegator",
    "LocalHistogramDelegator",
    "check_layout",
    "lookup",
]
