"""Semantic validation of a parsed DSL body.

Single forward pass in declaration order; the first violation aborts the run:

  * a label_enum must be declared before the first struct that uses it;
  * a `pub` struct may only use `pub` label_enums (inline value lists have no
    identity of their own and are exempt);
  * label keys are legal prometheus label names;
  * enum and struct names are unique within one body, and do not shadow the
    globals every generated module defines (imports, per-enum tables);
  * the metric kind must be known, and local in auto-flush mode.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from ..utils.exceptions import (
    DuplicateDefinitionError,
    LabelNameError,
    MetricKindError,
    UndefinedEnumError,
    VisibilityError,
)
from .ast import EnumDef, MacroBody, MetricDef
from .kinds import MetricKind, get_kind, local_kind_names

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidatedBody:
    body: MacroBody
    enums: dict[str, EnumDef]
    kinds: dict[str, MetricKind]  # struct name -> resolved kind
    auto_flush: bool = False

    @property
    def items(self):
        return self.body.items


# Module-level names every generated module defines itself.
RESERVED_NAMES = frozenset({"DSL_HASH", "annotations", "_enum"})
RESERVED_PREFIXES = ("_sm", "_static_scope_")

LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def labels_table(enum_name: str) -> str:
    return f"_{enum_name}_LABELS"


def fields_table(enum_name: str) -> str:
    return f"_{enum_name}_FIELDS"


def by_label_table(enum_name: str) -> str:
    return f"_{enum_name}_BY_LABEL"


def validate(body: MacroBody, *, auto_flush: bool = False) -> ValidatedBody:
    enums: dict[str, EnumDef] = {}
    kinds: dict[str, MetricKind] = {}
    taken: dict[str, str] = {name: "the generated module" for name in RESERVED_NAMES}
    src = body.source
    for item in body.items:
        if isinstance(item, EnumDef):
            _claim(taken, item.name, f"label_enum `{item.name}`", item, src)
            for table in (labels_table(item.name), fields_table(item.name), by_label_table(item.name)):
                _claim(taken, table, f"the tables of label_enum `{item.name}`", item, src)
            enums[item.name] = item
            logger.debug("dsl.validate.enum name=%s values=%d", item.name, len(item.values))
            continue
        _check_metric(item, enums, src)
        owner = f"struct `{item.struct_name}`"
        _claim(taken, item.struct_name, owner, item, src)
        _claim(taken, f"{item.struct_name}Inner", owner, item, src)
        kinds[item.struct_name] = _resolve_kind(item, auto_flush, src)
        logger.debug("dsl.validate.metric name=%s kind=%s labels=%s",
                     item.struct_name, item.kind, list(item.label_keys))
    return ValidatedBody(body=body, enums=enums, kinds=kinds, auto_flush=auto_flush)


def _claim(taken: dict[str, str], name: str, owner: str, item: EnumDef | MetricDef,
           src: str | None) -> None:
    if name.startswith(RESERVED_PREFIXES):
        raise DuplicateDefinitionError(f"`{name}` of {owner} uses a prefix reserved for generated code",
                                       line=item.line, column=item.column, source=src)
    if name in taken:
        raise DuplicateDefinitionError(f"`{name}` of {owner} is already defined by {taken[name]}",
                                       line=item.line, column=item.column, source=src)
    taken[name] = owner


def _check_metric(metric: MetricDef, enums: dict[str, EnumDef], src: str | None) -> None:
    for label in metric.labels:
        if not LABEL_NAME_RE.match(label.key) or label.key.startswith("__"):
            raise LabelNameError(f"Label key {label.key!r} of struct `{metric.struct_name}` is not a valid label name",
                                 line=label.line, column=label.column, source=src)
        if label.enum_name is None:
            continue
        enum_def = enums.get(label.enum_name)
        if enum_def is None:
            raise UndefinedEnumError(label.enum_name, line=label.line, column=label.column, source=src)
        # Only plain `pub` is checked; pub(...) counts as not public.
        if metric.visibility.is_public and not enum_def.visibility.is_public:
            raise VisibilityError(enum_def.name, metric.struct_name,
                                  line=label.line, column=label.column, source=src)


def _resolve_kind(metric: MetricDef, auto_flush: bool, src: str | None) -> MetricKind:
    kind = get_kind(metric.kind)
    if kind is None:
        raise MetricKindError(f"Unknown metric kind `{metric.kind}` for struct `{metric.struct_name}`",
                              line=metric.kind_line, column=metric.kind_column, source=src)
    if auto_flush and not kind.is_local:
        raise MetricKindError(
            f"Metric kind `{metric.kind}` of struct `{metric.struct_name}` cannot auto-flush; "
            f"use one of {', '.join(local_kind_names())}",
            line=metric.kind_line, column=metric.kind_column, source=src,
        )
    return kind


__all__ = ["ValidatedBody", "validate"]
