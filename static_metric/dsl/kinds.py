"""Metric kinds accepted after the `:` of a struct declaration.

Shared kinds store the labeled prometheus_client child directly; local kinds
wrap it in a thread-affine accumulator from the runtime package and are the
only kinds the auto-flush mode accepts.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MetricKind:
    name: str
    is_local: bool
    local_class: str | None = None       # runtime wrapper around the shared child
    delegator_class: str | None = None   # runtime leaf delegator (auto-flush only)
    prometheus_type: str = "Counter"     # prometheus_client collector the vec must be


METRIC_KINDS: dict[str, MetricKind] = {
    k.name: k for k in (
        MetricKind("Counter", False, prometheus_type="Counter"),
        MetricKind("IntCounter", False, prometheus_type="Counter"),
        MetricKind("Gauge", False, prometheus_type="Gauge"),
        MetricKind("IntGauge", False, prometheus_type="Gauge"),
        MetricKind("Histogram", False, prometheus_type="Histogram"),
        MetricKind("LocalCounter", True, "LocalCounter", "LocalCounterDelegator", "Counter"),
        MetricKind("LocalIntCounter", True, "LocalIntCounter", "LocalIntCounterDelegator", "Counter"),
        MetricKind("LocalHistogram", True, "LocalHistogram", "LocalHistogramDelegator", "Histogram"),
    )
}


def get_kind(name: str) -> MetricKind | None:
    return METRIC_KINDS.get(name)


def local_kind_names() -> list[str]:
    return sorted(k.name for k in METRIC_KINDS.values() if k.is_local)


__all__ = ["MetricKind", "METRIC_KINDS", "get_kind", "local_kind_names"]
