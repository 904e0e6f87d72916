"""Fluent builder for generated Python source."""
from __future__ import annotations

INDENT = "    "


class SourceBuilder:
    """Accumulates lines of Python source at a tracked indentation level."""

    def __init__(self, level: int = 0):
        self._lines: list[str] = []
        self._indent_level = level

    def line(self, text: str = "") -> SourceBuilder:
        if text:
            self._lines.append(INDENT * self._indent_level + text)
        else:
            self._lines.append("")
        return self

    def lines(self, texts: list[str]) -> SourceBuilder:
        for t in texts:
            self.line(t)
        return self

    def blank(self) -> SourceBuilder:
        if self._lines and self._lines[-1] != "":
            self._lines.append("")
        return self

    def begin(self, header: str) -> SourceBuilder:
        """Open a block (`class ...:` / `def ...:`)."""
        self.line(header)
        self._indent_level += 1
        return self

    def end(self) -> SourceBuilder:
        if self._indent_level == 0:
            raise RuntimeError("SourceBuilder.end() without matching begin()")
        self._indent_level -= 1
        return self

    def extend(self, other: SourceBuilder) -> SourceBuilder:
        prefix = INDENT * self._indent_level
        for text in other._lines:
            self._lines.append(prefix + text if text else "")
        return self

    def build(self) -> str:
        return "\n".join(self._lines).rstrip() + "\n"


__all__ = ["INDENT", "SourceBuilder"]
