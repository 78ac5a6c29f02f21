"""PLC type registry — built-in types, bindings, and assignability."""

from __future__ import annotations

from dataclasses import dataclass, field


# ============================================================
# SEMANTIC ERRORS
# ============================================================


class SemanticError(Exception):
    """Fatal analysis error."""

    def __init__(self, msg: str):
        self.msg: str = msg
        super().__init__(msg)


class NameNotFoundError(SemanticError):
    """No variable, or no function of the requested arity, is in scope."""


class UnknownTypeError(SemanticError):
    """A type name is not in the registry."""


class NoSuchFieldError(SemanticError):
    """A type has no field with the requested name."""


class NoSuchMethodError(SemanticError):
    """A type has no method with the requested name and arity."""


# ============================================================
# TYPES AND BINDINGS
# ============================================================


@dataclass(frozen=True)
class Type:
    """A named type with its field and method catalogs.

    Types compare and hash by name only.
    """

    name: str
    fields: dict[str, Variable] = field(default_factory=dict, compare=False, hash=False)
    methods: dict[tuple[str, int], Function] = field(
        default_factory=dict, compare=False, hash=False
    )

    def __repr__(self) -> str:
        return "Type(" + self.name + ")"


@dataclass(eq=False)
class Variable:
    """A resolved variable or field declaration."""

    name: str
    type: Type


@dataclass(eq=False)
class Function:
    """A resolved function or method declaration."""

    name: str
    param_types: list[Type]
    return_type: Type

    @property
    def arity(self) -> int:
        return len(self.param_types)


def make_type(
    name: str,
    fields: list[Variable] | None = None,
    methods: list[Function] | None = None,
) -> Type:
    """Build a type whose catalogs hold the given fields and methods."""
    field_map: dict[str, Variable] = {}
    for f in fields or []:
        field_map[f.name] = f
    method_map: dict[tuple[str, int], Function] = {}
    for m in methods or []:
        method_map[(m.name, m.arity)] = m
    return Type(name, field_map, method_map)


# Built-in singletons
ANY_T: Type = Type("Any")
NIL_T: Type = Type("Nil")
COMPARABLE_T: Type = Type("Comparable")
BOOLEAN_T: Type = Type("Boolean")
INTEGER_T: Type = Type("Integer")
DECIMAL_T: Type = Type("Decimal")
CHARACTER_T: Type = Type("Character")
STRING_T: Type = Type("String")
INTEGER_ITERABLE_T: Type = Type("IntegerIterable")

BUILTIN_TYPES: list[Type] = [
    ANY_T,
    NIL_T,
    COMPARABLE_T,
    BOOLEAN_T,
    INTEGER_T,
    DECIMAL_T,
    CHARACTER_T,
    STRING_T,
    INTEGER_ITERABLE_T,
]

COMPARABLE_TYPES: tuple[Type, ...] = (INTEGER_T, DECIMAL_T, CHARACTER_T, STRING_T)

NUMERIC_TYPES: tuple[Type, ...] = (INTEGER_T, DECIMAL_T)


# ============================================================
# REGISTRY
# ============================================================


class Registry:
    """Name → Type catalog, seeded with the built-ins.

    A host may register further types (with field and method catalogs)
    before handing the registry to the analyzer.
    """

    def __init__(self) -> None:
        self.types: dict[str, Type] = {}
        for t in BUILTIN_TYPES:
            self.types[t.name] = t

    def register(self, typ: Type) -> Type:
        if typ.name in self.types:
            raise SemanticError("type '" + typ.name + "' is already registered")
        self.types[typ.name] = typ
        return typ

    def type_by_name(self, name: str) -> Type:
        typ = self.types.get(name)
        if typ is None:
            raise UnknownTypeError("unknown type '" + name + "'")
        return typ


def field_of(typ: Type, name: str) -> Variable:
    variable = typ.fields.get(name)
    if variable is None:
        raise NoSuchFieldError("type " + typ.name + " has no field '" + name + "'")
    return variable


def method_of(typ: Type, name: str, arity: int) -> Function:
    function = typ.methods.get((name, arity))
    if function is None:
        raise NoSuchMethodError(
            "type "
            + typ.name
            + " has no method '"
            + name
            + "' taking "
            + str(arity)
            + " argument(s)"
        )
    return function


# ============================================================
# ASSIGNABILITY
# ============================================================


def is_comparable(t: Type) -> bool:
    return t in COMPARABLE_TYPES


def is_assignable(source: Type, target: Type) -> bool:
    """Can a value of type `source` flow into a slot of type `target`?"""
    if target == ANY_T:
        return True
    if target == COMPARABLE_T:
        return is_comparable(source)
    return source == target


def require_assignable(source: Type, target: Type) -> None:
    if not is_assignable(source, target):
        raise SemanticError("cannot assign " + source.name + " to " + target.name)
