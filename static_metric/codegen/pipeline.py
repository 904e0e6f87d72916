"""Generation pipeline: DSL text -> Python module source.

    parse -> validate -> plan -> emit -> assemble

Every stage raises a GenerationError subclass on the first problem, and
nothing is written to disk unless the whole run succeeds. The assembled
module looks like:

    # Auto-generated file ... header
    imports
    DSL_HASH = '<16 hex chars>'
    label enums (+ tables)
    one `_static_scope_<n>` namespace class per metric
    exports + __all__
"""
from __future__ import annotations

import datetime as dt
import hashlib
import importlib.util
import logging
import os
import re
import tempfile
import types
from pathlib import Path

from ..config.loader import GeneratorConfig
from ..dsl.ast import MacroBody, MetricDef
from ..dsl.parser import parse
from ..dsl.validator import ValidatedBody, validate
from .auto_flush import emit_auto_flush
from .context import GeneratorContext
from .emitter import emit_inners
from .enums import emit_label_enum
from .planner import MetricPlan, plan
from .source_builder import SourceBuilder

logger = logging.getLogger(__name__)

HEADER = """# Auto-generated file\n# SOURCE OF TRUTH: {source} (static metric DSL)\n# DO NOT EDIT MANUALLY - run static-metric-gen after modifying the DSL.\n# Mode: {mode}\n"""

_HASH_RE = re.compile(r"^DSL_HASH = '([0-9a-f]{16})'", re.MULTILINE)


def compute_dsl_hash(text: str) -> str:
    return hashlib.sha256(text.encode('utf-8')).hexdigest()[:16]


def _scope_block(p: MetricPlan, config: GeneratorConfig, auto_flush: bool) -> str:
    classes = emit_auto_flush(p, config) if auto_flush else emit_inners(p, config)
    b = SourceBuilder()
    b.begin(f"class {p.scope_name}:")
    b.line(f'"""Private namespace of struct {p.outer_name}."""')
    for cls in classes:
        b.blank()
        b.extend(cls)
    b.end()
    return b.build()


def _exports(validated: ValidatedBody, plans: list[MetricPlan], config: GeneratorConfig) -> str:
    lines: list[str] = []
    public = [enum.name for enum in validated.body.enums if enum.visibility.is_public]
    for p in plans:
        outer = p.root.inner_name if not validated.auto_flush else p.outer_name
        lines.append(f"{p.outer_name} = {p.qualified(outer)}")
        names = [p.outer_name]
        if config.export_inner:
            lines.append(f"{p.root.inner_name} = {p.qualified(p.root.inner_name)}")
            names.append(p.root.inner_name)
        if p.metric.visibility.is_public:
            public.extend(names)
    lines.append("")
    lines.append("__all__ = [")
    lines.extend(f"    {name!r}," for name in ["DSL_HASH", *public])
    lines.append("]")
    return "\n".join(lines) + "\n"


def assemble(validated: ValidatedBody, plans: list[MetricPlan], config: GeneratorConfig,
             dsl_hash: str, source_name: str | None = None) -> str:
    mode = (f"auto-flush (flush_interval={float(config.flush_interval)!r})"
            if validated.auto_flush else "baseline")
    sections = [
        HEADER.format(source=source_name or '<string>', mode=mode)
        + "from __future__ import annotations\n\nimport enum as _enum\n\n"
        + f"import {config.runtime_package} as _sm\n\n"
        + f"DSL_HASH = '{dsl_hash}'  # short sha256 of the DSL text\n",
    ]
    sections.extend(emit_label_enum(e).build() for e in validated.body.enums)
    sections.extend(_scope_block(p, config, validated.auto_flush) for p in plans)
    sections.append(_exports(validated, plans, config))
    return "\n\n".join(s.rstrip("\n") + "\n" for s in sections)


def generate_source(text: str, *, auto_flush: bool = False, config: GeneratorConfig | None = None,
                    context: GeneratorContext | None = None, source_name: str | None = None) -> str:
    """Generate the Python module for a DSL body."""
    config = config or GeneratorConfig()
    body = parse(text, source_name, case_fold_labels=config.case_fold_labels)
    validated = validate(body, auto_flush=auto_flush)
    plans = plan(validated, context)
    dsl_hash = compute_dsl_hash(text)
    source = assemble(validated, plans, config, dsl_hash, source_name)
    logger.info("codegen.generate.done source=%s enums=%d metrics=%d auto_flush=%s hash=%s",
                source_name or '<string>', len(validated.enums), len(plans), auto_flush, dsl_hash)
    return source


def write_module(text: str, out_path: str | os.PathLike[str], **kwargs) -> str:
    """Generate and write the module; returns the DSL hash. Nothing is written on failure."""
    source = generate_source(text, **kwargs)
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(source, encoding='utf-8')
    dsl_hash = compute_dsl_hash(text)
    logger.info("codegen.write path=%s hash=%s", out, dsl_hash)
    return dsl_hash


def compile_module(source: str, name: str = "static_metric_generated") -> types.ModuleType:
    """Import generated source as a fresh module object (not added to sys.modules)."""
    with tempfile.TemporaryDirectory(prefix="static_metric_") as tmp:
        path = Path(tmp) / f"{name}.py"
        path.write_text(source, encoding="utf-8")
        spec = importlib.util.spec_from_file_location(name, path)
        assert spec and spec.loader
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
    logger.debug("codegen.compile name=%s", name)
    return module


def load_metrics(text: str, *, name: str = "static_metric_generated", **kwargs) -> types.ModuleType:
    """generate_source() + compile_module() in one step."""
    return compile_module(generate_source(text, **kwargs), name)


def _metric_leaves(metric: MetricDef, body: MacroBody) -> int:
    enums = {e.name: e for e in body.enums}
    total = 1
    for label in metric.labels:
        total *= len(label.resolve_values(enums))
    return total


def render_catalog(body: MacroBody) -> str:
    """Markdown catalog of the label enums and metrics declared in a body."""
    ts = dt.datetime.now(dt.UTC).isoformat(timespec='seconds').replace('+00:00', 'Z')
    enums = {e.name: e for e in body.enums}
    out = [f"# Metrics Catalog\n\nGenerated: {ts}  \nSource: {body.source or '<string>'}\n"]
    if body.enums:
        out.append("## Label enums\n")
        for e in body.enums:
            out.append(f"### {e.name}\nVisibility: {e.visibility.value}  ")
            out.append(f"Values: {', '.join(f'{v.name}=`{v.label}`' for v in e.values) or '(none)'}\n")
    out.append("## Metrics\n")
    for m in body.metrics:
        out.append(f"### {m.struct_name}\nKind: {m.kind}  ")
        out.append(f"Visibility: {m.visibility.value}  ")
        for label in m.labels:
            values = ', '.join(f"`{v.label}`" for v in label.resolve_values(enums))
            via = f" (label_enum {label.enum_name})" if label.enum_name else ""
            out.append(f"Label `{label.key}`{via}: {values}  ")
        out.append(f"Leaves: {_metric_leaves(m, body)}\n")
    return '\n'.join(out) + '\n'


def read_module_hash(module_path: str | os.PathLike[str]) -> str | None:
    try:
        text = Path(module_path).read_text(encoding='utf-8')
    except FileNotFoundError:
        return None
    match = _HASH_RE.search(text)
    return match.group(1) if match else None


def is_up_to_date(dsl_text: str, module_path: str | os.PathLike[str]) -> bool:
    """True when the module at `module_path` was generated from exactly this DSL text."""
    return read_module_hash(module_path) == compute_dsl_hash(dsl_text)


__all__ = [
    "HEADER",
    "compute_dsl_hash",
    "assemble",
    "generate_source",
    "write_module",
    "compile_module",
    "load_metrics",
    "render_catalog",
    "read_module_hash",
    "is_up_to_date",
]
