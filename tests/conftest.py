"""Pytest configuration & shared fixtures for static-metric.

Responsibilities:
1. Environment isolation: STATIC_METRIC_* variables never leak into a test.
2. A fresh prometheus_client CollectorRegistry per test.
3. A controllable flush clock so auto-flush thresholds are deterministic.
4. Helpers that generate + compile a DSL body with a private scope counter.
"""
from __future__ import annotations

import os

import pytest
from prometheus_client import CollectorRegistry

import static_metric.metrics.local as local_mod
from static_metric.codegen.context import GeneratorContext
from static_metric.codegen.pipeline import load_metrics
from static_metric.config import GeneratorConfig


@pytest.fixture(autouse=True)
def _env_isolation(monkeypatch):
    for name in list(os.environ):
        if name.startswith('STATIC_METRIC_'):
            monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock(monkeypatch) -> FakeClock:
    clk = FakeClock()
    monkeypatch.setattr(local_mod, 'clock', clk)
    return clk


@pytest.fixture
def load():
    """Generate + compile DSL text with a fresh GeneratorContext per call."""
    def _load(text: str, *, auto_flush: bool = False, flush_interval: float = 1.0, **config):
        cfg = GeneratorConfig(flush_interval=flush_interval, **config)
        return load_metrics(text, auto_flush=auto_flush, config=cfg, context=GeneratorContext())
    return _load
