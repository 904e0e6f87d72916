"""Auto-flush delegator builder.

The auto-flush surface is a chain of stateless Delegator objects, shared by
all threads. Each one only knows its offset chain into the per-thread leaf
arena; the runtime leaf delegators at the bottom resolve the calling thread's
root through a ThreadLocalSlot and index `_sm_leaves` with the chain sum.

    Lhrs (Outer, holds the slot)
      .foo -> LhrsDelegator ... -> LocalCounterDelegator(slot, (0, ...))

The Outer is constructed once per vec (`Name.from_vec(vec)`); the root
Inner it lazily builds per thread is the one emitted by `emitter.emit_root`
with auto_flush=True.
"""
from __future__ import annotations

from ..config.loader import GeneratorConfig
from .emitter import emit_accessors, emit_inners, slots_line
from .planner import DepthPlan, MetricPlan
from .source_builder import SourceBuilder


def emit_delegator(plan: MetricPlan, dp: DepthPlan) -> SourceBuilder:
    b = SourceBuilder()
    b.begin(f"class {dp.delegator_name}:")
    b.line(repr(f"{dp.key} level of {plan.outer_name}, routed to the calling thread's leaves."))
    b.blank()
    b.line(slots_line(dp.attrs))
    b.blank()
    emit_accessors(b, dp)
    b.blank()
    b.begin("def __init__(self, slot, offsets):")
    for _, attr, offset in dp.fields():
        chain = f"offsets + ({offset},)"
        if dp.is_leaf:
            b.line(f"self.{attr} = _sm.{plan.kind.delegator_class}(slot, {chain})")
        else:
            child = plan.qualified(plan.depths[dp.depth + 1].delegator_name)
            b.line(f"self.{attr} = {child}(slot, {chain})")
    b.end()
    b.end()
    return b


def emit_outer(plan: MetricPlan) -> SourceBuilder:
    root = plan.root
    b = SourceBuilder()
    # the base is resolved while the scope class body runs, so it stays unqualified
    b.begin(f"class {plan.outer_name}({root.delegator_name}):")
    b.line(repr(f"Thread-local {plan.metric.kind} vec by {root.key}; build once with from_vec()."))
    b.blank()
    b.line("__slots__ = ('_sm_slot',)")
    b.blank()
    b.begin("def __init__(self, slot):")
    b.line("super().__init__(slot, ())")
    b.line("self._sm_slot = slot")
    b.end()
    b.blank()
    b.line("@classmethod")
    b.begin(f"def from_vec(cls, vec) -> {plan.qualified(plan.outer_name)}:")
    b.line(f"return cls(_sm.ThreadLocalSlot(lambda: {plan.qualified(root.inner_name)}.from_vec(vec)))")
    b.end()
    b.blank()
    b.begin("def flush(self) -> None:")
    b.line('"""Merge the calling thread\'s pending deltas now."""')
    b.line("self._sm_slot.flush()")
    b.end()
    b.blank()
    b.begin("def may_flush(self) -> bool:")
    b.line("return self._sm_slot.may_flush()")
    b.end()
    b.end()
    return b


def emit_auto_flush(plan: MetricPlan, config: GeneratorConfig) -> list[SourceBuilder]:
    """Inner classes (root with flush gating), Delegators deepest first, then the Outer."""
    out = emit_inners(plan, config, auto_flush=True)
    out.extend(emit_delegator(plan, dp) for dp in reversed(plan.depths))
    out.append(emit_outer(plan))
    return out


__all__ = ["emit_delegator", "emit_outer", "emit_auto_flush"]
