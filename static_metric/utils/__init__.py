"""Shared helpers: exceptions, environment flags, logging setup."""
from .exceptions import (
    ConfigError,
    DuplicateDefinitionError,
    GenerationError,
    LabelNameError,
    LayoutAssumptionViolation,
    MetricKindError,
    ParseError,
    StaticMetricException,
    UndefinedEnumError,
    VisibilityError,
)

__all__ = [
    "StaticMetricException",
    "ConfigError",
    "GenerationError",
    "ParseError",
    "UndefinedEnumError",
    "VisibilityError",
    "DuplicateDefinitionError",
    "MetricKindError",
    "LabelNameError",
    "LayoutAssumptionViolation",
]
