"""PLC AST — parse-time node definitions.

Nodes are immutable. Resolved types and bindings are not stored on the
nodes; the analyzer records them in a side-table (see check.Analysis).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


# ============================================================
# LITERAL KINDS
# ============================================================

LIT_BOOLEAN = "boolean"
LIT_CHARACTER = "character"
LIT_STRING = "string"
LIT_INTEGER = "integer"
LIT_DECIMAL = "decimal"
LIT_NIL = "nil"

LiteralValue = bool | str | int | Decimal | None


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass(frozen=True)
class Expr:
    """Base for all expressions."""


@dataclass(frozen=True)
class Literal(Expr):
    """NIL, TRUE/FALSE, number, character, or string.

    kind is one of the LIT_* constants; a character value is a one-char str.
    """

    kind: str
    value: LiteralValue


@dataclass(frozen=True)
class Group(Expr):
    """( expression )."""

    expression: Expr


@dataclass(frozen=True)
class Binary(Expr):
    """left op right."""

    operator: str
    left: Expr
    right: Expr


@dataclass(frozen=True)
class Access(Expr):
    """name or receiver.name."""

    receiver: Expr | None
    name: str


@dataclass(frozen=True)
class Call(Expr):
    """name(args) or receiver.name(args)."""

    receiver: Expr | None
    name: str
    arguments: list[Expr]


# ============================================================
# STATEMENTS
# ============================================================


@dataclass(frozen=True)
class Stmt:
    """Base for all statements."""


@dataclass(frozen=True)
class ExprStmt(Stmt):
    """Bare expression as statement."""

    expression: Expr


@dataclass(frozen=True)
class DeclStmt(Stmt):
    """LET name: Type = value;"""

    name: str
    type_name: str | None
    value: Expr | None


@dataclass(frozen=True)
class AssignStmt(Stmt):
    """receiver = value;"""

    receiver: Expr
    value: Expr


@dataclass(frozen=True)
class IfStmt(Stmt):
    """IF cond DO ... ELSE ... END."""

    condition: Expr
    then_statements: list[Stmt]
    else_statements: list[Stmt]


@dataclass(frozen=True)
class ForStmt(Stmt):
    """FOR name IN value DO ... END."""

    name: str
    value: Expr
    statements: list[Stmt]


@dataclass(frozen=True)
class WhileStmt(Stmt):
    """WHILE cond DO ... END."""

    condition: Expr
    statements: list[Stmt]


@dataclass(frozen=True)
class ReturnStmt(Stmt):
    """RETURN value;"""

    value: Expr


# ============================================================
# DECLARATIONS
# ============================================================


@dataclass(frozen=True)
class Field:
    """Top-level LET name: Type = value;"""

    name: str
    type_name: str | None
    value: Expr | None


@dataclass(frozen=True)
class Method:
    """DEF name(params): Type DO ... END."""

    name: str
    parameters: list[str]
    parameter_type_names: list[str]
    return_type_name: str | None
    statements: list[Stmt]


@dataclass(frozen=True)
class Source:
    """Top-level program — fields, then methods."""

    fields: list[Field]
    methods: list[Method]
