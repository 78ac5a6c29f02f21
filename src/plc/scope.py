"""Lexical scopes — an arena of environments linked by parent index."""

from __future__ import annotations

from dataclasses import dataclass, field

from .environment import Function, NameNotFoundError, SemanticError, Type, Variable


@dataclass
class Frame:
    """One lexical environment. parent is None for the root."""

    parent: int | None
    variables: dict[str, Variable] = field(default_factory=dict)
    functions: dict[tuple[str, int], Function] = field(default_factory=dict)


class SymbolTable:
    """Owns every frame created during one analysis."""

    def __init__(self) -> None:
        self.frames: list[Frame] = []

    def new_frame(self, parent: int | None) -> int:
        self.frames.append(Frame(parent))
        return len(self.frames) - 1

    def root(self) -> Scope:
        return Scope(self, self.new_frame(None))


@dataclass(frozen=True)
class Scope:
    """Handle on one frame of a SymbolTable."""

    table: SymbolTable
    index: int

    @property
    def frame(self) -> Frame:
        return self.table.frames[self.index]

    @property
    def parent(self) -> Scope | None:
        parent = self.frame.parent
        if parent is None:
            return None
        return Scope(self.table, parent)

    def child(self) -> Scope:
        return Scope(self.table, self.table.new_frame(self.index))

    # ── Definitions ──────────────────────────────────────────

    def define_variable(self, name: str, typ: Type) -> Variable:
        frame = self.frame
        if name in frame.variables:
            raise SemanticError("variable '" + name + "' already declared in this scope")
        variable = Variable(name, typ)
        frame.variables[name] = variable
        return variable

    def define_function(
        self, name: str, arity: int, param_types: list[Type], return_type: Type
    ) -> Function:
        if arity != len(param_types):
            raise ValueError(
                "arity " + str(arity) + " does not match " + str(len(param_types)) + " parameter types"
            )
        frame = self.frame
        key = (name, arity)
        if key in frame.functions:
            raise SemanticError(
                "function '" + name + "/" + str(arity) + "' already declared in this scope"
            )
        function = Function(name, list(param_types), return_type)
        frame.functions[key] = function
        return function

    def add_function(self, function: Function) -> Function:
        """Define a prebuilt Function binding, keeping its identity."""
        frame = self.frame
        key = (function.name, function.arity)
        if key in frame.functions:
            raise SemanticError(
                "function '" + function.name + "/" + str(function.arity) + "' already declared in this scope"
            )
        frame.functions[key] = function
        return function

    # ── Lookups ──────────────────────────────────────────────

    def lookup_variable(self, name: str) -> Variable:
        idx: int | None = self.index
        while idx is not None:
            frame = self.table.frames[idx]
            if name in frame.variables:
                return frame.variables[name]
            idx = frame.parent
        raise NameNotFoundError("undefined variable '" + name + "'")

    def lookup_function(self, name: str, arity: int) -> Function:
        key = (name, arity)
        idx: int | None = self.index
        while idx is not None:
            frame = self.table.frames[idx]
            if key in frame.functions:
                return frame.functions[key]
            idx = frame.parent
        raise NameNotFoundError(
            "undefined function '" + name + "' taking " + str(arity) + " argument(s)"
        )
