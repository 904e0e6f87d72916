"""DSL front end: lexer, AST, parser and semantic validator."""
from .ast import EnumDef, LabelDef, MacroBody, MetricDef, ValueDef, Visibility
from .lexer import Token, TokenType, tokenize
from .parser import Parser, parse
from .validator import ValidatedBody, validate

__all__ = [
    "EnumDef",
    "LabelDef",
    "MacroBody",
    "MetricDef",
    "ValueDef",
    "Visibility",
    "Token",
    "TokenType",
    "tokenize",
    "Parser",
    "parse",
    "ValidatedBody",
    "validate",
]
