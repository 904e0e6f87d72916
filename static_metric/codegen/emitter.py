"""Baseline code emitter.

For every label depth of a metric this emits one `<Struct><d>Inner` class
whose attributes are the label value fields. Non-leaf fields hold the next
depth's Inner; leaf fields hold the child collector returned by
`vec.labels(...)` (wrapped in a Local* accumulator for local kinds). All
children are resolved once, when the root is built from a vec, so hot-path
access is a plain attribute read.

The root Inner also records its leaves in a flat arena (`_sm_leaves`) in
depth-first declaration order. The auto-flush delegators index into that
arena; see planner for the offset arithmetic.
"""
from __future__ import annotations

from ..config.loader import GeneratorConfig
from .enums import member_ref
from .planner import DepthPlan, MetricPlan
from .source_builder import SourceBuilder


def label_pairs(dp: DepthPlan, label: str) -> str:
    """Expression for the label pairs accumulated down to this field."""
    pair = f"(({dp.key!r}, {label!r}),)"
    return pair if dp.depth == 0 else f"labels + {pair}"


def emit_accessors(b: SourceBuilder, dp: DepthPlan) -> None:
    """Class-level lookup tables plus get()/try_get().

    get() is only generated for label_enum depths and takes an enum member;
    try_get() takes a label string and returns None when nothing matches.
    """
    if dp.enum_name:
        b.begin("_sm_variants = {")
        for value, attr, _ in dp.fields():
            b.line(f"{member_ref(dp.enum_name, value.name)}: {attr!r},")
        b.end()
        b.line("}")
    b.begin("_sm_by_label = {")
    seen: set[str] = set()
    for value, attr, _ in dp.fields():
        if value.label in seen:
            continue
        seen.add(value.label)
        b.line(f"{value.label!r}: {attr!r},")
    b.end()
    b.line("}")
    b.blank()
    if dp.enum_name:
        b.begin(f"def get(self, variant: {dp.enum_name}):")
        b.line("return getattr(self, self._sm_variants[variant])")
        b.end()
        b.blank()
    b.begin("def try_get(self, label: str):")
    b.line("attr = self._sm_by_label.get(label)")
    b.line("return None if attr is None else getattr(self, attr)")
    b.end()


def slots_line(attrs: tuple[str, ...] | list[str]) -> str:
    inner = ", ".join(repr(a) for a in attrs)
    if len(attrs) == 1:
        inner += ","
    return f"__slots__ = ({inner})"


def _emit_field_inits(b: SourceBuilder, plan: MetricPlan, dp: DepthPlan) -> None:
    kind = plan.kind
    for value, attr, _ in dp.fields():
        pairs = label_pairs(dp, value.label)
        if not dp.is_leaf:
            child = plan.qualified(plan.depths[dp.depth + 1].inner_name)
            b.line(f"self.{attr} = {child}(vec, {pairs}, leaves)")
            continue
        child = f"_sm.lookup(vec, {pairs})"
        if kind.is_local:
            child = f"_sm.{kind.local_class}({child})"
        b.line(f"self.{attr} = {child}")
        b.line(f"leaves.append(self.{attr})")


def _emit_flush(b: SourceBuilder, plan: MetricPlan, dp: DepthPlan) -> None:
    b.begin("def flush(self) -> None:")
    if dp.is_leaf and not plan.kind.is_local:
        b.line("pass")
    else:
        for attr in dp.attrs:
            b.line(f"self.{attr}.flush()")
    b.end()


def emit_inner(plan: MetricPlan, dp: DepthPlan) -> SourceBuilder:
    """Inner class for a non-root depth."""
    b = SourceBuilder()
    b.begin(f"class {dp.inner_name}:")
    # label keys are arbitrary strings; repr() keeps the docstring a valid literal
    b.line(repr(f"{dp.key} level of {plan.outer_name}; members are {dp.member_type}."))
    b.blank()
    b.line(slots_line(dp.attrs))
    b.blank()
    emit_accessors(b, dp)
    b.blank()
    b.begin("def __init__(self, vec, labels, leaves):")
    _emit_field_inits(b, plan, dp)
    b.end()
    b.blank()
    _emit_flush(b, plan, dp)
    b.end()
    return b


def emit_root(plan: MetricPlan, config: GeneratorConfig, auto_flush: bool = False) -> SourceBuilder:
    """Root Inner: built from the metric vec, owns the leaf arena.

    In auto-flush mode the root also carries the flush timer (via
    _sm.MayFlush) and is what each thread-local slot holds.
    """
    dp = plan.root
    b = SourceBuilder()
    attrs = list(dp.attrs) + ["_sm_leaves"]
    if auto_flush:
        attrs.append("_sm_last_flush")
        b.begin(f"class {dp.inner_name}(_sm.MayFlush):")
    else:
        b.begin(f"class {dp.inner_name}:")
    b.line(repr(f"{plan.metric.kind} vec resolved by {dp.key}; members are {dp.member_type}."))
    b.blank()
    b.line(slots_line(attrs))
    b.blank()
    b.line(f"LEAF_COUNT = {plan.offsets.leaf_count}")
    if auto_flush:
        b.line(f"FLUSH_INTERVAL = {float(config.flush_interval)!r}")
    b.blank()
    emit_accessors(b, dp)
    b.blank()
    b.begin("def __init__(self, vec):")
    b.line("leaves = []")
    _emit_field_inits(b, plan, dp)
    b.line("self._sm_leaves = leaves")
    b.line("_sm.check_layout(self, self.LEAF_COUNT)")
    if auto_flush:
        b.line("self.reset_flush_timer()")
    b.end()
    b.blank()
    b.line("@classmethod")
    b.begin(f"def from_vec(cls, vec) -> {plan.qualified(dp.inner_name)}:")
    b.line("return cls(vec)")
    b.end()
    b.blank()
    if auto_flush:
        b.begin("def flush_leaves(self) -> None:")
        b.begin("for leaf in self._sm_leaves:")
        b.line("leaf.flush()")
        b.end()
        b.end()
    else:
        _emit_flush(b, plan, dp)
    b.end()
    return b


def emit_inners(plan: MetricPlan, config: GeneratorConfig, auto_flush: bool = False) -> list[SourceBuilder]:
    """Every Inner class of a metric, deepest first."""
    out = [emit_inner(plan, dp) for dp in reversed(plan.depths[1:])]
    out.append(emit_root(plan, config, auto_flush))
    return out


__all__ = ["label_pairs", "slots_line", "emit_accessors", "emit_inner", "emit_root", "emit_inners"]
