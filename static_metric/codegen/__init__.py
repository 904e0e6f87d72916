"""Code generation: planner, emitters and the module assembly pipeline."""
from .context import DEFAULT_CONTEXT, GeneratorContext
from .pipeline import (
    compile_module,
    compute_dsl_hash,
    generate_source,
    is_up_to_date,
    load_metrics,
    render_catalog,
    write_module,
)
from .planner import MetricPlan, OffsetTable, plan

__all__ = [
    "DEFAULT_CONTEXT",
    "GeneratorContext",
    "MetricPlan",
    "OffsetTable",
    "plan",
    "compute_dsl_hash",
    "generate_source",
    "write_module",
    "compile_module",
    "load_metrics",
    "render_catalog",
    "is_up_to_date",
]
