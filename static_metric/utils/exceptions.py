"""static-metric exception hierarchy.

Every failure of a generator run is fatal and surfaces as a subclass of
GenerationError; nothing is written when one is raised. Errors carry the
source location of the offending construct when it is known.
"""
from __future__ import annotations


class StaticMetricException(Exception):
    """Base class for all static-metric exceptions."""


class ConfigError(StaticMetricException):
    """Generator configuration issues (bad YAML, schema violations, bad env values)."""


class GenerationError(StaticMetricException):
    """Base class for errors that abort a generator run."""

    def __init__(self, message: str, *, line: int | None = None, column: int | None = None,
                 source: str | None = None):
        self.message = message
        self.line = line
        self.column = column
        self.source = source
        super().__init__(self._format_message())

    def location(self) -> str | None:
        if self.line is None:
            return None
        loc = f"{self.line}:{self.column or 0}"
        if self.source:
            loc = f"{self.source}:{loc}"
        return loc

    def _format_message(self) -> str:
        loc = self.location()
        if loc:
            return f"{loc}: {self.message}"
        return self.message


class ParseError(GenerationError):
    """Malformed DSL syntax; the message names the offending token."""


class UndefinedEnumError(GenerationError):
    """A label references a label_enum that is not declared before it."""

    def __init__(self, name: str, **kwargs):
        self.name = name
        super().__init__(f"Label enum `{name}` is undefined.", **kwargs)


class VisibilityError(GenerationError):
    """A pub metric uses a label_enum that is not pub."""

    def __init__(self, enum: str, metric: str, **kwargs):
        self.enum = enum
        self.metric = metric
        super().__init__(
            f"Label enum `{enum}` does not have enough visibility because it is used "
            f"in metric `{metric}` which has `pub` visibility.",
            **kwargs,
        )


class DuplicateDefinitionError(GenerationError):
    """A name is defined twice where it must be unique (enums, metrics, fields)."""


class MetricKindError(GenerationError):
    """Unknown metric kind, or a kind that cannot be used in the requested mode."""


class LabelNameError(GenerationError):
    """A label key that prometheus_client would reject as a label name."""


class LayoutAssumptionViolation(GenerationError):
    """A metric cannot be laid out (no labels, a depth without values), or a built root does not match its plan."""


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
