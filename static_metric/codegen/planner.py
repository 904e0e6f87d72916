"""Structure planner.

Turns each validated MetricDef into a MetricPlan: one DepthPlan per label
(class names, attribute names, member type) plus the OffsetTable used by the
auto-flush delegators.

Offsets are computed symbolically. Every thread-local root appends its leaves
to a flat arena in the same depth-first declaration order, so a leaf's
position is fully determined by the label widths:

    stride[leaf] = 1
    stride[d]    = stride[d + 1] * width[d + 1]
    offset(d, i) = i * stride[d]
    index(path)  = sum(offset(d, i_d) for each depth d)
"""
from __future__ import annotations

import itertools
import keyword
import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from ..dsl.ast import LabelDef, MetricDef, ValueDef
from ..dsl.kinds import MetricKind
from ..dsl.validator import ValidatedBody
from ..utils.exceptions import DuplicateDefinitionError, LayoutAssumptionViolation
from .context import DEFAULT_CONTEXT, GeneratorContext, scope_name

logger = logging.getLogger(__name__)

# Members generated on Inner / Delegator / Outer classes; fields may not shadow them.
RESERVED_MEMBERS = frozenset({
    "get", "try_get", "flush", "flush_leaves", "may_flush", "try_flush",
    "from_vec", "reset_flush_timer", "since_last_flush",
    "FLUSH_INTERVAL", "LEAF_COUNT",
})
# Members of generated label enums.
RESERVED_ENUM_MEMBERS = frozenset({"name", "value", "mro", "get_str", "from_label"})


def member_attr(name: str) -> str:
    """Python attribute for a label value field."""
    if keyword.iskeyword(name) or name in RESERVED_MEMBERS or name.startswith("_sm_"):
        return name + "_"
    return name


def enum_member_attr(name: str) -> str:
    """Python member name for a label_enum variant."""
    if keyword.iskeyword(name) or name in RESERVED_ENUM_MEMBERS or _is_sunder(name):
        return name + "_"
    return name


def _is_sunder(name: str) -> bool:
    return len(name) > 2 and name[0] == "_" and name[1] != "_" and name[-1] == "_" and name[-2] != "_"


def struct_name_at(struct_name: str, depth: int) -> str:
    return struct_name if depth == 0 else f"{struct_name}{depth}"


@dataclass(frozen=True)
class DepthPlan:
    depth: int
    is_leaf: bool
    label: LabelDef
    values: tuple[ValueDef, ...]
    attrs: tuple[str, ...]
    struct_name: str
    inner_name: str
    delegator_name: str
    outer_name: str | None
    member_type: str
    stride: int

    @property
    def key(self) -> str:
        return self.label.key

    @property
    def enum_name(self) -> str | None:
        return self.label.enum_name

    @property
    def width(self) -> int:
        return len(self.values)

    @property
    def offsets(self) -> tuple[int, ...]:
        return tuple(i * self.stride for i in range(len(self.values)))

    def fields(self) -> Iterator[tuple[ValueDef, str, int]]:
        """(value, attribute, offset) triples in declaration order."""
        return zip(self.values, self.attrs, self.offsets)


@dataclass(frozen=True)
class OffsetTable:
    value_names: tuple[tuple[str, ...], ...]
    strides: tuple[int, ...]

    @property
    def widths(self) -> tuple[int, ...]:
        return tuple(len(names) for names in self.value_names)

    @property
    def leaf_count(self) -> int:
        return self.strides[0] * len(self.value_names[0])

    def offset(self, depth: int, name: str) -> int:
        try:
            return self.value_names[depth].index(name) * self.strides[depth]
        except ValueError:
            raise KeyError(f"no label value `{name}` at depth {depth}") from None

    def chain(self, path: Sequence[str]) -> tuple[int, ...]:
        """Offset chain for a (possibly partial) path of value field names."""
        if len(path) > len(self.value_names):
            raise KeyError(f"path {tuple(path)} is deeper than {len(self.value_names)} labels")
        return tuple(self.offset(d, name) for d, name in enumerate(path))

    def index(self, path: Sequence[str]) -> int:
        if len(path) != len(self.value_names):
            raise KeyError(f"path {tuple(path)} does not reach the leaf depth")
        return sum(self.chain(path))

    def paths(self) -> Iterator[tuple[str, ...]]:
        """Leaf paths in arena order."""
        return itertools.product(*self.value_names)


@dataclass(frozen=True)
class MetricPlan:
    metric: MetricDef
    kind: MetricKind
    scope_id: int
    scope_name: str
    depths: tuple[DepthPlan, ...]
    offsets: OffsetTable

    @property
    def outer_name(self) -> str:
        return self.metric.struct_name

    @property
    def root(self) -> DepthPlan:
        return self.depths[0]

    @property
    def leaf(self) -> DepthPlan:
        return self.depths[-1]

    def qualified(self, class_name: str) -> str:
        return f"{self.scope_name}.{class_name}"


def plan_metric(metric: MetricDef, validated: ValidatedBody, scope_id: int) -> MetricPlan:
    src = validated.body.source
    if not metric.labels:
        raise LayoutAssumptionViolation(f"struct `{metric.struct_name}` declares no labels",
                                        line=metric.line, column=metric.column, source=src)
    kind = validated.kinds[metric.struct_name]
    last = len(metric.labels) - 1
    value_lists = [label.resolve_values(validated.enums) for label in metric.labels]
    for label, values in zip(metric.labels, value_lists):
        if not values:
            raise LayoutAssumptionViolation(
                f"label `{label.key}` of struct `{metric.struct_name}` has no values",
                line=label.line, column=label.column, source=src,
            )

    strides = [1] * len(value_lists)
    for d in range(last - 1, -1, -1):
        strides[d] = strides[d + 1] * len(value_lists[d + 1])

    depths: list[DepthPlan] = []
    for d, (label, values) in enumerate(zip(metric.labels, value_lists)):
        is_leaf = d == last
        struct = struct_name_at(metric.struct_name, d)
        attrs = _field_attrs(metric, label, values, src)
        member_type = kind.name if is_leaf else f"{struct_name_at(metric.struct_name, d + 1)}Inner"
        depths.append(DepthPlan(
            depth=d,
            is_leaf=is_leaf,
            label=label,
            values=values,
            attrs=attrs,
            struct_name=struct,
            inner_name=f"{struct}Inner",
            delegator_name=f"{struct}Delegator",
            outer_name=metric.struct_name if d == 0 else None,
            member_type=member_type,
            stride=strides[d],
        ))

    offsets = OffsetTable(
        value_names=tuple(tuple(v.name for v in values) for values in value_lists),
        strides=tuple(strides),
    )
    plan = MetricPlan(
        metric=metric,
        kind=kind,
        scope_id=scope_id,
        scope_name=scope_name(scope_id),
        depths=tuple(depths),
        offsets=offsets,
    )
    logger.debug("codegen.plan.metric name=%s scope=%s depths=%d leaves=%d",
                 metric.struct_name, plan.scope_name, len(depths), offsets.leaf_count)
    return plan


def _field_attrs(metric: MetricDef, label: LabelDef, values: tuple[ValueDef, ...],
                 src: str | None) -> tuple[str, ...]:
    attrs: list[str] = []
    owners: dict[str, str] = {}
    for v in values:
        attr = member_attr(v.name)
        if attr in owners:
            raise DuplicateDefinitionError(
                f"label value `{v.name}` of `{label.key}` in struct `{metric.struct_name}` "
                f"maps to attribute `{attr}`, already used by `{owners[attr]}`",
                line=label.line, column=label.column, source=src,
            )
        owners[attr] = v.name
        attrs.append(attr)
    return tuple(attrs)


def plan(validated: ValidatedBody, context: GeneratorContext | None = None) -> list[MetricPlan]:
    """Plan every metric in declaration order, drawing one scope id per metric."""
    ctx = context or DEFAULT_CONTEXT
    return [plan_metric(m, validated, ctx.next_scope_id()) for m in validated.body.metrics]


__all__ = [
    "RESERVED_MEMBERS",
    "RESERVED_ENUM_MEMBERS",
    "member_attr",
    "enum_member_attr",
    "struct_name_at",
    "DepthPlan",
    "OffsetTable",
    "MetricPlan",
    "plan_metric",
    "plan",
]
