"""Label enum emitter.

One enum.Enum subclass per `label_enum` block, followed by its module-level
tables:

    _<Name>_LABELS    variant -> label string
    _<Name>_FIELDS    variant -> declared field name
    _<Name>_BY_LABEL  label string -> variant (first declaration wins)

Metric classes use the enum members as keys of their O(1) get() tables.
"""
from __future__ import annotations

from ..dsl.ast import EnumDef
from ..dsl.validator import by_label_table, fields_table, labels_table
from .planner import enum_member_attr
from .source_builder import SourceBuilder


def member_ref(enum_name: str, variant: str) -> str:
    return f"{enum_name}.{enum_member_attr(variant)}"


def emit_label_enum(enum_def: EnumDef) -> SourceBuilder:
    name = enum_def.name
    b = SourceBuilder()
    b.begin(f"class {name}(_enum.Enum):")
    b.line(f'"""label_enum {name}."""')
    b.blank()
    for i, v in enumerate(enum_def.values):
        b.line(f"{enum_member_attr(v.name)} = {i}")
    if enum_def.values:
        b.blank()
    b.begin("def get_str(self) -> str:")
    b.line(f"return {labels_table(name)}[self]")
    b.end()
    b.blank()
    b.begin("def __str__(self) -> str:")
    b.line(f"return {labels_table(name)}[self]")
    b.end()
    b.blank()
    b.line("@classmethod")
    b.begin(f"def from_label(cls, label: str) -> {name}:")
    b.line(f"return {by_label_table(name)}[label]")
    b.end()
    b.end()
    b.blank()

    b.lines(_table(labels_table(name), [(member_ref(name, v.name), repr(v.label)) for v in enum_def.values]))
    b.lines(_table(fields_table(name), [(member_ref(name, v.name), repr(v.name)) for v in enum_def.values]))
    first: dict[str, str] = {}
    for v in enum_def.values:
        first.setdefault(v.label, v.name)
    b.lines(_table(by_label_table(name), [(repr(label), member_ref(name, field)) for label, field in first.items()]))
    return b


def _table(target: str, pairs: list[tuple[str, str]]) -> list[str]:
    if not pairs:
        return [f"{target}: dict = {{}}"]
    out = [f"{target} = {{"]
    out.extend(f"    {k}: {v}," for k, v in pairs)
    out.append("}")
    return out


__all__ = ["emit_label_enum", "labels_table", "fields_table", "by_label_table", "member_ref"]
