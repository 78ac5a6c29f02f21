"""PLC parser and analyzer — public API."""

from __future__ import annotations

from .ast import Source
from .check import Analysis, analyze as analyze
from .environment import Function, Registry, SemanticError as SemanticError
from .parse import ParseError as ParseError, parse_source as parse_source
from .tokens import LexError as LexError, Token as Token, tokenize as tokenize


def parse(source: str) -> Source:
    """Tokenize and parse PLC source text into a Source AST."""
    return parse_source(tokenize(source))


def check(
    source: str,
    registry: Registry | None = None,
    intrinsics: list[Function] | None = None,
) -> Analysis:
    """Parse and analyze PLC source text. Raises on the first error."""
    return analyze(parse(source), registry, intrinsics)
