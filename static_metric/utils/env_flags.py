"""Environment flag helpers.

Interprets environment variables as boolean flags using the canonical truthy
set {"1","true","yes","on"} (case-insensitive), plus typed readers used by the
generator configuration layer.

Usage examples:
    from static_metric.utils.env_flags import is_truthy_env
    if is_truthy_env('STATIC_METRIC_VERBOSE_CONSOLE'):
        ...
"""
from __future__ import annotations

import os

TRUTHY_SET: set[str] = {"1","true","yes","on"}
FALSY_SET: set[str] = {"0","false","no","off"}

ENV_PREFIX = "STATIC_METRIC_"

def is_truthy(value: str | None) -> bool:
    if not value:
        return False
    return value.strip().lower() in TRUTHY_SET

def is_truthy_env(name: str, default: str | None = None) -> bool:
    return is_truthy(os.getenv(name, default or ''))

def env_bool(name: str) -> bool | None:
    """Tri-state read: None when unset/blank, otherwise the parsed flag.

    Raises ValueError for values outside both the truthy and falsy sets.
    """
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    val = raw.strip().lower()
    if val in TRUTHY_SET:
        return True
    if val in FALSY_SET:
        return False
    raise ValueError(f"{name}={raw!r} is not a boolean flag")

def env_float(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return float(raw)

def env_str(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()

__all__ = [
    'TRUTHY_SET',
    'FALSY_SET',
    'ENV_PREFIX',
    'is_truthy',
    'is_truthy_env',
    'env_bool',
    'env_float',
    'env_str',
]
