"""AST for the static metric DSL.

Nodes are frozen dataclasses built once by the parser and never mutated.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Visibility(str, Enum):
    PRIVATE = "private"
    PUBLIC = "pub"
    RESTRICTED = "restricted"  # pub(crate) and friends

    @property
    def is_public(self) -> bool:
        return self is Visibility.PUBLIC


@dataclass(frozen=True)
class ValueDef:
    """One label value: the generated field name and the label string it reports."""

    name: str
    label: str
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class EnumDef:
    name: str
    visibility: Visibility
    values: tuple[ValueDef, ...]
    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class LabelDef:
    """One label dimension; exactly one of values / enum_name is set."""

    key: str
    values: tuple[ValueDef, ...] | None = None
    enum_name: str | None = None
    line: int = 0
    column: int = 0

    @property
    def is_enum(self) -> bool:
        return self.enum_name is not None

    def resolve_values(self, enums: dict[str, EnumDef]) -> tuple[ValueDef, ...]:
        if self.enum_name is not None:
            return enums[self.enum_name].values
        return self.values or ()


@dataclass(frozen=True)
class MetricDef:
    struct_name: str
    visibility: Visibility
    kind: str
    labels: tuple[LabelDef, ...]
    line: int = 0
    column: int = 0
    kind_line: int = 0
    kind_column: int = 0

    @property
    def label_keys(self) -> tuple[str, ...]:
        return tuple(label.key for label in self.labels)


Item = EnumDef | MetricDef


@dataclass(frozen=True)
class MacroBody:
    """The ordered items of one DSL compilation unit."""

    items: tuple[Item, ...]
    source: str | None = None

    @property
    def enums(self) -> tuple[EnumDef, ...]:
        return tuple(i for i in self.items if isinstance(i, EnumDef))

    @property
    def metrics(self) -> tuple[MetricDef, ...]:
        return tuple(i for i in self.items if isinstance(i, MetricDef))


__all__ = ["Visibility", "ValueDef", "EnumDef", "LabelDef", "MetricDef", "Item", "MacroBody"]
