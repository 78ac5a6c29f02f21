"""Serialization of tokens, AST nodes, and analysis results to JSON-compatible dicts."""

from __future__ import annotations

from decimal import Decimal

from .ast import (
    Access,
    AssignStmt,
    Binary,
    Call,
    DeclStmt,
    Expr,
    ExprStmt,
    Field,
    ForStmt,
    Group,
    IfStmt,
    Literal,
    Method,
    ReturnStmt,
    Source,
    Stmt,
    WhileStmt,
)
from .check import Analysis
from .environment import Function, Variable
from .tokens import Token


def tokens_to_list(tokens: list[Token]) -> list[dict[str, object]]:
    return [{"kind": t.kind, "literal": t.literal, "index": t.index} for t in tokens]


def _variable(v: Variable) -> dict[str, object]:
    return {"name": v.name, "type": v.type.name}


def _function(f: Function) -> dict[str, object]:
    return {
        "name": f.name,
        "params": [t.name for t in f.param_types],
        "returns": f.return_type.name,
    }


def _literal_value(value: object) -> object:
    if isinstance(value, Decimal):
        return str(value)
    return value


class _Serializer:
    def __init__(self, analysis: Analysis | None) -> None:
        self.analysis: Analysis | None = analysis

    def expr(self, e: Expr) -> dict[str, object]:
        d: dict[str, object]
        if isinstance(e, Literal):
            d = {"kind": "Literal", "literal": e.kind, "value": _literal_value(e.value)}
        elif isinstance(e, Group):
            d = {"kind": "Group", "expression": self.expr(e.expression)}
        elif isinstance(e, Binary):
            d = {
                "kind": "Binary",
                "operator": e.operator,
                "left": self.expr(e.left),
                "right": self.expr(e.right),
            }
        elif isinstance(e, Access):
            d = {
                "kind": "Access",
                "receiver": self.expr(e.receiver) if e.receiver is not None else None,
                "name": e.name,
            }
            if self.analysis is not None:
                d["binding"] = _variable(self.analysis.variable_of(e))
        elif isinstance(e, Call):
            d = {
                "kind": "Call",
                "receiver": self.expr(e.receiver) if e.receiver is not None else None,
                "name": e.name,
                "arguments": [self.expr(a) for a in e.arguments],
            }
            if self.analysis is not None:
                d["binding"] = _function(self.analysis.function_of(e))
        else:
            raise TypeError("cannot serialize " + type(e).__name__)
        if self.analysis is not None:
            d["type"] = self.analysis.type_of(e).name
        return d

    def stmts(self, stmts: list[Stmt]) -> list[dict[str, object]]:
        return [self.stmt(s) for s in stmts]

    def stmt(self, s: Stmt) -> dict[str, object]:
        if isinstance(s, ExprStmt):
            return {"kind": "ExprStmt", "expression": self.expr(s.expression)}
        if isinstance(s, DeclStmt):
            d: dict[str, object] = {
                "kind": "DeclStmt",
                "name": s.name,
                "type_name": s.type_name,
                "value": self.expr(s.value) if s.value is not None else None,
            }
            if self.analysis is not None:
                d["binding"] = _variable(self.analysis.variable_of(s))
            return d
        if isinstance(s, AssignStmt):
            return {
                "kind": "AssignStmt",
                "receiver": self.expr(s.receiver),
                "value": self.expr(s.value),
            }
        if isinstance(s, IfStmt):
            return {
                "kind": "IfStmt",
                "condition": self.expr(s.condition),
                "then": self.stmts(s.then_statements),
                "else": self.stmts(s.else_statements),
            }
        if isinstance(s, ForStmt):
            return {
                "kind": "ForStmt",
                "name": s.name,
                "value": self.expr(s.value),
                "statements": self.stmts(s.statements),
            }
        if isinstance(s, WhileStmt):
            return {
                "kind": "WhileStmt",
                "condition": self.expr(s.condition),
                "statements": self.stmts(s.statements),
            }
        if isinstance(s, ReturnStmt):
            return {"kind": "ReturnStmt", "value": self.expr(s.value)}
        raise TypeError("cannot serialize " + type(s).__name__)

    def field(self, f: Field) -> dict[str, object]:
        d: dict[str, object] = {
            "kind": "Field",
            "name": f.name,
            "type_name": f.type_name,
            "value": self.expr(f.value) if f.value is not None else None,
        }
        if self.analysis is not None:
            d["binding"] = _variable(self.analysis.variable_of(f))
        return d

    def method(self, m: Method) -> dict[str, object]:
        d: dict[str, object] = {
            "kind": "Method",
            "name": m.name,
            "parameters": list(m.parameters),
            "parameter_types": list(m.parameter_type_names),
            "return_type": m.return_type_name,
            "statements": self.stmts(m.statements),
        }
        if self.analysis is not None:
            d["binding"] = _function(self.analysis.function_of(m))
        return d


def source_to_dict(source: Source, analysis: Analysis | None = None) -> dict[str, object]:
    """Serialize a Source, adding resolved types and bindings when analysis is given."""
    ser = _Serializer(analysis)
    return {
        "fields": [ser.field(f) for f in source.fields],
        "methods": [ser.method(m) for m in source.methods],
    }
