"""PLC tokenizer — lexes source into a flat token list."""

from __future__ import annotations

from dataclasses import dataclass


# Token kind constants
TK_IDENTIFIER = "IDENTIFIER"
TK_INTEGER = "INTEGER"
TK_DECIMAL = "DECIMAL"
TK_CHARACTER = "CHARACTER"
TK_STRING = "STRING"
TK_OPERATOR = "OPERATOR"

KEYWORDS: set[str] = {
    "AND",
    "DEF",
    "DO",
    "ELSE",
    "END",
    "FALSE",
    "FOR",
    "IF",
    "IN",
    "LET",
    "NIL",
    "OR",
    "RETURN",
    "TRUE",
    "WHILE",
}

# Two-character operators; everything else is a single character
MULTI_OPS: list[str] = ["<=", ">=", "!=", "=="]

WHITESPACE: set[str] = {" ", "\b", "\n", "\r", "\t"}

ESCAPABLE: set[str] = {"b", "n", "r", "t", "'", '"', "\\"}

# Tokens after which a sign begins an operator, not a number
_VALUE_KINDS: set[str] = {
    TK_IDENTIFIER,
    TK_INTEGER,
    TK_DECIMAL,
    TK_CHARACTER,
    TK_STRING,
}

# Keywords that are themselves values
_VALUE_KEYWORDS: set[str] = {"FALSE", "NIL", "TRUE"}


class LexError(Exception):
    """Error during tokenization."""

    def __init__(self, msg: str, index: int):
        self.msg: str = msg
        self.index: int = index
        super().__init__(msg + " at index " + str(index))


@dataclass(frozen=True)
class Token:
    """A classified lexeme with its raw text and zero-based source offset."""

    kind: str
    literal: str
    index: int


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_ident_char(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c) or c == "-"


def _sign_starts_number(tokens: list[Token]) -> bool:
    if not tokens:
        return True
    prev = tokens[-1]
    if prev.literal in KEYWORDS:
        return prev.literal not in _VALUE_KEYWORDS
    if prev.kind in _VALUE_KINDS:
        return False
    return prev.literal != ")"


def _scan_escape(src: str, pos: int) -> int:
    """Validate the escape whose backslash is at pos. Returns position after it."""
    if pos + 1 >= len(src) or src[pos + 1] not in ESCAPABLE:
        raise LexError("invalid escape sequence", pos)
    return pos + 2


def _scan_quoted(src: str, start: int, quote: str) -> int:
    """Scan a quoted literal opening at start. Returns position after the closing quote."""
    pos = start + 1
    length = len(src)
    while pos < length and src[pos] != quote:
        c = src[pos]
        if c == "\n" or c == "\r":
            break
        if c == "\\":
            pos = _scan_escape(src, pos)
        else:
            pos += 1
    if pos >= length or src[pos] != quote:
        kind = "string" if quote == '"' else "character"
        raise LexError("unterminated " + kind + " literal", pos)
    return pos + 1


def tokenize(source: str) -> list[Token]:
    """Tokenize PLC source into a flat list of tokens."""
    tokens: list[Token] = []
    pos = 0
    length = len(source)

    while pos < length:
        c = source[pos]

        if c in WHITESPACE:
            pos += 1
            continue

        start = pos

        # Identifier or keyword; keywords stay identifiers and match by text
        if _is_alpha(c):
            while pos < length and _is_ident_char(source[pos]):
                pos += 1
            tokens.append(Token(TK_IDENTIFIER, source[start:pos], start))
            continue

        # Number, optionally signed
        signed = (
            (c == "+" or c == "-")
            and pos + 1 < length
            and _is_digit(source[pos + 1])
            and _sign_starts_number(tokens)
        )
        if _is_digit(c) or signed:
            pos += 1
            while pos < length and _is_digit(source[pos]):
                pos += 1
            kind = TK_INTEGER
            if pos + 1 < length and source[pos] == "." and _is_digit(source[pos + 1]):
                kind = TK_DECIMAL
                pos += 1
                while pos < length and _is_digit(source[pos]):
                    pos += 1
            tokens.append(Token(kind, source[start:pos], start))
            continue

        # Character literal: '...'
        if c == "'":
            if pos + 1 < length and source[pos + 1] == "'":
                raise LexError("empty character literal", pos)
            pos = _scan_quoted(source, start, "'")
            if pos - start != 3 and not (pos - start == 4 and source[start + 1] == "\\"):
                raise LexError("character literal must hold one character", start)
            tokens.append(Token(TK_CHARACTER, source[start:pos], start))
            continue

        # String literal: "..."
        if c == '"':
            pos = _scan_quoted(source, start, '"')
            tokens.append(Token(TK_STRING, source[start:pos], start))
            continue

        # Operators
        matched = False
        for op in MULTI_OPS:
            if source.startswith(op, pos):
                tokens.append(Token(TK_OPERATOR, op, start))
                pos += len(op)
                matched = True
                break
        if matched:
            continue

        tokens.append(Token(TK_OPERATOR, c, start))
        pos += 1

    return tokens
