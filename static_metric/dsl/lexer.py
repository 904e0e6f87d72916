"""Lexer/Tokenizer for the static metric DSL.

Converts raw DSL text into a stream of tokens with source location tracking.
Whitespace is insignificant; `//` and `#` start comments that run to the end
of the line.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..utils.exceptions import ParseError


class TokenType(Enum):
    """Token types in the static metric DSL."""

    # Literals
    IDENTIFIER = "identifier"
    STRING = "string"

    # Keywords
    PUB = "pub"
    LABEL_ENUM = "label_enum"
    STRUCT = "struct"

    # Punctuation
    LBRACE = "{"
    RBRACE = "}"
    LPAREN = "("
    RPAREN = ")"
    COLON = ":"
    COMMA = ","
    FAT_ARROW = "=>"

    EOF = "end of input"


KEYWORDS = {
    "pub": TokenType.PUB,
    "label_enum": TokenType.LABEL_ENUM,
    "struct": TokenType.STRUCT,
}

_PUNCTUATION = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
}

_ESCAPES = {'"': '"', '\\': '\\', 'n': '\n', 't': '\t'}


@dataclass(frozen=True)
class Token:
    """A single token with its 1-indexed source position."""

    type: TokenType
    value: str
    line: int
    column: int

    def describe(self) -> str:
        if self.type is TokenType.EOF:
            return "end of input"
        if self.type is TokenType.STRING:
            return f'string "{self.value}"'
        if self.type is TokenType.IDENTIFIER:
            return f"identifier `{self.value}`"
        return f"`{self.value}`"


class Lexer:
    """Tokenizer for DSL source text."""

    def __init__(self, text: str, source: str | None = None):
        self.text = text
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: list[Token] = []

    def error(self, message: str, line: int | None = None, column: int | None = None) -> ParseError:
        return ParseError(
            message,
            line=self.line if line is None else line,
            column=self.column if column is None else column,
            source=self.source,
        )

    def current_char(self) -> str | None:
        if self.pos >= len(self.text):
            return None
        return self.text[self.pos]

    def peek_char(self, offset: int = 1) -> str | None:
        pos = self.pos + offset
        if pos >= len(self.text):
            return None
        return self.text[pos]

    def advance(self) -> str | None:
        char = self.current_char()
        if char is None:
            return None
        self.pos += 1
        if char == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return char

    def skip_whitespace_and_comments(self) -> None:
        while True:
            char = self.current_char()
            if char is None:
                return
            if char.isspace():
                self.advance()
            elif char == '#' or (char == '/' and self.peek_char() == '/'):
                while self.current_char() not in (None, '\n'):
                    self.advance()
            else:
                return

    def read_string(self) -> str:
        start_line, start_col = self.line, self.column
        self.advance()  # opening quote
        chars: list[str] = []
        while True:
            char = self.current_char()
            if char is None or char == '\n':
                raise self.error("Unterminated string literal", start_line, start_col)
            if char == '"':
                self.advance()
                return ''.join(chars)
            if char == '\\':
                esc = self.peek_char()
                if esc not in _ESCAPES:
                    raise self.error(f"Invalid escape sequence `\\{esc or ''}` in string literal")
                self.advance()
                self.advance()
                chars.append(_ESCAPES[esc])
                continue
            chars.append(char)
            self.advance()

    def read_identifier(self) -> str:
        start = self.pos
        while True:
            char = self.current_char()
            if char is None or not (char.isalnum() or char == '_') or not char.isascii():
                break
            self.advance()
        return self.text[start:self.pos]

    def tokenize(self) -> list[Token]:
        while True:
            self.skip_whitespace_and_comments()
            char = self.current_char()
            line, col = self.line, self.column
            if char is None:
                self.tokens.append(Token(TokenType.EOF, "", line, col))
                return self.tokens
            if char == '"':
                value = self.read_string()
                self.tokens.append(Token(TokenType.STRING, value, line, col))
            elif char.isascii() and (char.isalpha() or char == '_'):
                ident = self.read_identifier()
                ttype = KEYWORDS.get(ident, TokenType.IDENTIFIER)
                self.tokens.append(Token(ttype, ident, line, col))
            elif char == '=' and self.peek_char() == '>':
                self.advance()
                self.advance()
                self.tokens.append(Token(TokenType.FAT_ARROW, "=>", line, col))
            elif char in _PUNCTUATION:
                self.advance()
                self.tokens.append(Token(_PUNCTUATION[char], char, line, col))
            else:
                raise self.error(f"Unexpected character {char!r}")


def tokenize(text: str, source: str | None = None) -> list[Token]:
    """Tokenize DSL text; the last token is always EOF."""
    return Lexer(text, source).tokenize()


__all__ = ["TokenType", "Token", "Lexer", "KEYWORDS", "tokenize"]
