"""Recursive descent parser for the static metric DSL.

Grammar:

    body       := item*
    item       := enum_def | metric_def
    enum_def   := vis? "label_enum" IDENT "{" values? "}"
    metric_def := vis? "struct" IDENT ":" IDENT "{" label ("," label)* ","? "}"
    label      := STRING "=>" ( "{" values? "}" | IDENT )
    values     := value ("," value)* ","?
    value      := IDENT ( ":" STRING )?
    vis        := "pub" ( "(" IDENT ")" )?

Parsing is all-or-nothing: the first malformed token raises ParseError and
no partial body is returned.
"""
from __future__ import annotations

import logging

from ..utils.exceptions import ParseError
from .ast import EnumDef, Item, LabelDef, MacroBody, MetricDef, ValueDef, Visibility
from .lexer import Token, TokenType, tokenize

logger = logging.getLogger(__name__)


class Parser:
    """Token navigation plus one parse_* method per grammar rule."""

    def __init__(self, tokens: list[Token], source: str | None = None, case_fold_labels: bool = True):
        self.tokens = tokens
        self.source = source
        self.case_fold_labels = case_fold_labels
        self.pos = 0

    # --- token navigation ---
    def current_token(self) -> Token:
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def peek_token(self, offset: int = 1) -> Token:
        pos = self.pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[pos]

    def advance(self) -> Token:
        token = self.current_token()
        if token.type is not TokenType.EOF:
            self.pos += 1
        return token

    def match(self, *token_types: TokenType) -> bool:
        return self.current_token().type in token_types

    def error(self, message: str, token: Token | None = None) -> ParseError:
        token = token or self.current_token()
        return ParseError(message, line=token.line, column=token.column, source=self.source)

    def expect(self, token_type: TokenType, what: str | None = None) -> Token:
        token = self.current_token()
        if token.type is not token_type:
            wanted = what or f"`{token_type.value}`"
            raise self.error(f"Expected {wanted}, found {token.describe()}", token)
        return self.advance()

    # --- grammar rules ---
    def parse(self) -> MacroBody:
        items: list[Item] = []
        while not self.match(TokenType.EOF):
            items.append(self.parse_item())
        logger.debug("dsl.parse.done source=%s items=%d", self.source, len(items))
        return MacroBody(items=tuple(items), source=self.source)

    def parse_item(self) -> Item:
        start = self.current_token()
        visibility = self.parse_visibility()
        token = self.current_token()
        if token.type is TokenType.LABEL_ENUM:
            return self.parse_enum(visibility, start)
        if token.type is TokenType.STRUCT:
            return self.parse_metric(visibility, start)
        raise self.error(f"Expected `label_enum` or `struct`, found {token.describe()}", token)

    def parse_visibility(self) -> Visibility:
        if not self.match(TokenType.PUB):
            return Visibility.PRIVATE
        self.advance()
        if not self.match(TokenType.LPAREN):
            return Visibility.PUBLIC
        self.advance()
        self.expect(TokenType.IDENTIFIER, "a visibility scope")
        self.expect(TokenType.RPAREN)
        return Visibility.RESTRICTED

    def parse_enum(self, visibility: Visibility, start: Token) -> EnumDef:
        self.expect(TokenType.LABEL_ENUM)
        name = self.expect(TokenType.IDENTIFIER, "a label_enum name")
        self._check_name(name)
        self.expect(TokenType.LBRACE)
        values = self.parse_values()
        self.expect(TokenType.RBRACE)
        return EnumDef(name=name.value, visibility=visibility, values=values,
                       line=start.line, column=start.column)

    def parse_metric(self, visibility: Visibility, start: Token) -> MetricDef:
        self.expect(TokenType.STRUCT)
        name = self.expect(TokenType.IDENTIFIER, "a struct name")
        self._check_name(name)
        self.expect(TokenType.COLON)
        kind = self.expect(TokenType.IDENTIFIER, "a metric kind")
        self.expect(TokenType.LBRACE)
        labels: list[LabelDef] = []
        seen: set[str] = set()
        while not self.match(TokenType.RBRACE):
            key_token = self.current_token()
            label = self.parse_label()
            if label.key in seen:
                raise self.error(f"Duplicate label key {key_token.describe()} in struct `{name.value}`", key_token)
            seen.add(label.key)
            labels.append(label)
            if not self.match(TokenType.COMMA):
                break
            self.advance()
        self.expect(TokenType.RBRACE, "`,` or `}`")
        return MetricDef(
            struct_name=name.value,
            visibility=visibility,
            kind=kind.value,
            labels=tuple(labels),
            line=start.line,
            column=start.column,
            kind_line=kind.line,
            kind_column=kind.column,
        )

    def parse_label(self) -> LabelDef:
        key = self.expect(TokenType.STRING, "a label key string")
        self.expect(TokenType.FAT_ARROW)
        if self.match(TokenType.LBRACE):
            self.advance()
            values = self.parse_values()
            self.expect(TokenType.RBRACE)
            return LabelDef(key=key.value, values=values, line=key.line, column=key.column)
        enum_name = self.expect(TokenType.IDENTIFIER, "`{` or a label_enum name")
        return LabelDef(key=key.value, enum_name=enum_name.value,
                        line=enum_name.line, column=enum_name.column)

    def parse_values(self) -> tuple[ValueDef, ...]:
        values: list[ValueDef] = []
        seen: set[str] = set()
        while self.match(TokenType.IDENTIFIER):
            value = self.parse_value()
            if value.name in seen:
                raise ParseError(f"Duplicate label value identifier `{value.name}`",
                                 line=value.line, column=value.column, source=self.source)
            seen.add(value.name)
            values.append(value)
            if not self.match(TokenType.COMMA):
                break
            self.advance()
        return tuple(values)

    def parse_value(self) -> ValueDef:
        name = self.expect(TokenType.IDENTIFIER, "a label value name")
        self._check_name(name)
        if self.match(TokenType.COLON):
            self.advance()
            label = self.expect(TokenType.STRING, "a label value string").value
        else:
            label = self._default_label(name.value)
        return ValueDef(name=name.value, label=label, line=name.line, column=name.column)

    def _check_name(self, token: Token) -> None:
        # Double-underscore names would be mangled inside generated classes
        if token.value.startswith("__"):
            raise self.error(f"Names may not start with `__`, found {token.describe()}", token)

    def _default_label(self, name: str) -> str:
        return name.casefold() if self.case_fold_labels else name


def parse(text: str, source: str | None = None, *, case_fold_labels: bool = True) -> MacroBody:
    """Parse DSL text into a MacroBody; raises ParseError on malformed input."""
    return Parser(tokenize(text, source), source, case_fold_labels=case_fold_labels).parse()


__all__ = ["Parser", "parse"]
