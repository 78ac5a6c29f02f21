"""PLC analyzer — resolves names and types over a parsed Source."""

from __future__ import annotations

from dataclasses import dataclass, replace

from .ast import (
    LIT_BOOLEAN,
    LIT_CHARACTER,
    LIT_DECIMAL,
    LIT_INTEGER,
    LIT_NIL,
    LIT_STRING,
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
from .environment import (
    ANY_T,
    BOOLEAN_T,
    CHARACTER_T,
    DECIMAL_T,
    INTEGER_ITERABLE_T,
    INTEGER_T,
    NIL_T,
    NUMERIC_TYPES,
    STRING_T,
    Function,
    Registry,
    SemanticError,
    Type,
    Variable,
    field_of,
    is_comparable,
    method_of,
    require_assignable,
)
from .scope import Scope, SymbolTable

ENTRY_POINT = "main"

INT_MIN = -(2**31)
INT_MAX = 2**31 - 1

LOGICAL_OPS: tuple[str, ...] = ("AND", "OR")
COMPARE_OPS: tuple[str, ...] = ("<", "<=", ">", ">=", "==", "!=")
ARITHMETIC_OPS: tuple[str, ...] = ("-", "*", "/")

_LITERAL_TYPES: dict[str, Type] = {
    LIT_BOOLEAN: BOOLEAN_T,
    LIT_CHARACTER: CHARACTER_T,
    LIT_STRING: STRING_T,
    LIT_INTEGER: INTEGER_T,
    LIT_DECIMAL: DECIMAL_T,
    LIT_NIL: NIL_T,
}


def default_intrinsics() -> list[Function]:
    """Host functions visible to every program: print(Any) -> Nil."""
    return [Function("print", [ANY_T], NIL_T)]


# ============================================================
# ANALYSIS RESULT
# ============================================================


class Analysis:
    """Side-table of resolved types and bindings, keyed by node identity.

    Each slot is written at most once. Entries keep a reference to their
    node so the identity key stays valid for the table's lifetime.
    """

    def __init__(self, root: Scope, source_scope: Scope) -> None:
        self.root: Scope = root
        self.source_scope: Scope = source_scope
        self._types: dict[int, tuple[Expr, Type]] = {}
        self._variables: dict[int, tuple[object, Variable]] = {}
        self._functions: dict[int, tuple[object, Function]] = {}

    def set_type(self, expr: Expr, typ: Type) -> Type:
        key = id(expr)
        if key in self._types:
            raise RuntimeError("type already resolved for " + type(expr).__name__)
        self._types[key] = (expr, typ)
        return typ

    def set_variable(self, node: object, variable: Variable) -> Variable:
        key = id(node)
        if key in self._variables:
            raise RuntimeError("variable already resolved for " + type(node).__name__)
        self._variables[key] = (node, variable)
        return variable

    def set_function(self, node: object, function: Function) -> Function:
        key = id(node)
        if key in self._functions:
            raise RuntimeError("function already resolved for " + type(node).__name__)
        self._functions[key] = (node, function)
        return function

    def type_of(self, expr: Expr) -> Type:
        return self._types[id(expr)][1]

    def variable_of(self, node: Field | DeclStmt | Access) -> Variable:
        return self._variables[id(node)][1]

    def function_of(self, node: Method | Call) -> Function:
        return self._functions[id(node)][1]

    def has_type(self, expr: Expr) -> bool:
        return id(expr) in self._types


# ============================================================
# CONTEXT
# ============================================================


@dataclass(frozen=True)
class Context:
    """What the traversal knows at a node: its scope and the enclosing return type."""

    scope: Scope
    return_type: Type | None = None

    def child(self) -> Context:
        return replace(self, scope=self.scope.child())


# ============================================================
# ANALYZER
# ============================================================


class Analyzer:
    def __init__(
        self,
        registry: Registry | None = None,
        intrinsics: list[Function] | None = None,
    ) -> None:
        self.registry: Registry = registry if registry is not None else Registry()
        self.intrinsics: list[Function] = (
            intrinsics if intrinsics is not None else default_intrinsics()
        )
        self.table: SymbolTable = SymbolTable()
        self.analysis: Analysis = self.new_analysis()

    def new_analysis(self) -> Analysis:
        """Fresh root scope holding the intrinsics, and an empty side-table."""
        self.table = SymbolTable()
        root = self.table.root()
        for fn in self.intrinsics:
            root.add_function(fn)
        return Analysis(root, root.child())

    def resolve_type(self, name: str) -> Type:
        return self.registry.type_by_name(name)

    # ── Source ────────────────────────────────────────────────

    def check_source(self, source: Source) -> Analysis:
        self.analysis = self.new_analysis()
        entries = [m for m in source.methods if m.name == ENTRY_POINT and not m.parameters]
        if not entries:
            raise SemanticError("missing entry point: no zero-parameter method '" + ENTRY_POINT + "'")
        if len(entries) > 1:
            raise SemanticError("duplicate entry point '" + ENTRY_POINT + "'")
        entry_ret = entries[0].return_type_name or INTEGER_T.name
        if self.resolve_type(entry_ret) != INTEGER_T:
            raise SemanticError("entry point '" + ENTRY_POINT + "' must return Integer, not " + entry_ret)
        ctx = Context(self.analysis.source_scope)
        for f in source.fields:
            self.check_field(f, ctx)
        for m in source.methods:
            self.check_method(m, ctx)
        return self.analysis

    def check_field(self, decl: Field, ctx: Context) -> None:
        variable = self.declare_variable(decl.name, decl.type_name, decl.value, ctx)
        self.analysis.set_variable(decl, variable)

    def check_method(self, decl: Method, ctx: Context) -> None:
        if len(decl.parameters) != len(decl.parameter_type_names):
            raise SemanticError(
                "method '" + decl.name + "' has " + str(len(decl.parameters)) + " parameters but "
                + str(len(decl.parameter_type_names)) + " parameter types"
            )
        param_types = [self.resolve_type(n) for n in decl.parameter_type_names]
        if decl.return_type_name is not None:
            ret = self.resolve_type(decl.return_type_name)
        elif decl.name == ENTRY_POINT and not decl.parameters:
            ret = INTEGER_T
        else:
            ret = NIL_T
        # Defined before the body so the method can call itself
        function = ctx.scope.define_function(decl.name, len(param_types), param_types, ret)
        self.analysis.set_function(decl, function)
        body_ctx = Context(ctx.scope.child(), ret)
        for name, typ in zip(decl.parameters, param_types):
            body_ctx.scope.define_variable(name, typ)
        self.check_stmts(decl.statements, body_ctx)

    def declare_variable(
        self, name: str, type_name: str | None, value: Expr | None, ctx: Context
    ) -> Variable:
        """Shared rule for fields and LET statements."""
        declared: Type | None = None
        if type_name is not None:
            declared = self.resolve_type(type_name)
        if value is not None:
            val_type = self.check_expr(value, ctx)
            if declared is None:
                declared = val_type
            else:
                require_assignable(val_type, declared)
        if declared is None:
            raise SemanticError("declaration of '" + name + "' needs a type or an initializer")
        return ctx.scope.define_variable(name, declared)

    # ── Statement checking ────────────────────────────────────

    def check_stmts(self, stmts: list[Stmt], ctx: Context) -> None:
        for s in stmts:
            self.check_stmt(s, ctx)

    def check_stmt(self, stmt: Stmt, ctx: Context) -> None:
        if isinstance(stmt, ExprStmt):
            self.check_expr_stmt(stmt, ctx)
        elif isinstance(stmt, DeclStmt):
            self.check_decl_stmt(stmt, ctx)
        elif isinstance(stmt, AssignStmt):
            self.check_assign_stmt(stmt, ctx)
        elif isinstance(stmt, IfStmt):
            self.check_if_stmt(stmt, ctx)
        elif isinstance(stmt, ForStmt):
            self.check_for_stmt(stmt, ctx)
        elif isinstance(stmt, WhileStmt):
            self.check_while_stmt(stmt, ctx)
        elif isinstance(stmt, ReturnStmt):
            self.check_return_stmt(stmt, ctx)
        else:
            raise SemanticError("unhandled statement type: " + type(stmt).__name__)

    def check_expr_stmt(self, stmt: ExprStmt, ctx: Context) -> None:
        if not isinstance(stmt.expression, Call):
            raise SemanticError(
                "expression statement must be a function call, got " + type(stmt.expression).__name__
            )
        self.check_expr(stmt.expression, ctx)

    def check_decl_stmt(self, stmt: DeclStmt, ctx: Context) -> None:
        variable = self.declare_variable(stmt.name, stmt.type_name, stmt.value, ctx)
        self.analysis.set_variable(stmt, variable)

    def check_assign_stmt(self, stmt: AssignStmt, ctx: Context) -> None:
        if not isinstance(stmt.receiver, Access):
            raise SemanticError(
                "assignment target must be a variable or field, got " + type(stmt.receiver).__name__
            )
        target = self.check_expr(stmt.receiver, ctx)
        value = self.check_expr(stmt.value, ctx)
        require_assignable(value, target)

    def check_condition(self, cond: Expr, what: str, ctx: Context) -> None:
        cond_type = self.check_expr(cond, ctx)
        if cond_type != BOOLEAN_T:
            raise SemanticError(what + " condition must be Boolean, got " + cond_type.name)

    def check_if_stmt(self, stmt: IfStmt, ctx: Context) -> None:
        self.check_condition(stmt.condition, "if", ctx)
        if not stmt.then_statements:
            raise SemanticError("if statement must have a non-empty then branch")
        self.check_stmts(stmt.then_statements, ctx.child())
        if stmt.else_statements:
            self.check_stmts(stmt.else_statements, ctx.child())

    def check_while_stmt(self, stmt: WhileStmt, ctx: Context) -> None:
        self.check_condition(stmt.condition, "while", ctx)
        self.check_stmts(stmt.statements, ctx.child())

    def check_for_stmt(self, stmt: ForStmt, ctx: Context) -> None:
        iter_type = self.check_expr(stmt.value, ctx)
        if iter_type != INTEGER_ITERABLE_T:
            raise SemanticError("for loop must iterate an IntegerIterable, got " + iter_type.name)
        if not stmt.statements:
            raise SemanticError("for loop body must not be empty")
        body_ctx = ctx.child()
        body_ctx.scope.define_variable(stmt.name, INTEGER_T)
        self.check_stmts(stmt.statements, body_ctx)

    def check_return_stmt(self, stmt: ReturnStmt, ctx: Context) -> None:
        if ctx.return_type is None:
            raise SemanticError("return outside of method")
        val_type = self.check_expr(stmt.value, ctx)
        require_assignable(val_type, ctx.return_type)

    # ── Expression checking ───────────────────────────────────

    def check_expr(self, expr: Expr, ctx: Context) -> Type:
        """Type-check an expression, record its type, and return it."""
        if isinstance(expr, Literal):
            typ = self.check_literal(expr)
        elif isinstance(expr, Group):
            typ = self.check_group(expr, ctx)
        elif isinstance(expr, Binary):
            typ = self.check_binary(expr, ctx)
        elif isinstance(expr, Access):
            typ = self.check_access(expr, ctx)
        elif isinstance(expr, Call):
            typ = self.check_call(expr, ctx)
        else:
            raise SemanticError("unhandled expression type: " + type(expr).__name__)
        return self.analysis.set_type(expr, typ)

    def check_literal(self, expr: Literal) -> Type:
        typ = _LITERAL_TYPES.get(expr.kind)
        if typ is None:
            raise SemanticError("unknown literal kind '" + expr.kind + "'")
        value = expr.value
        if typ == INTEGER_T and isinstance(value, int) and not INT_MIN <= value <= INT_MAX:
            raise SemanticError("integer literal " + str(value) + " is out of range")
        return typ

    def check_group(self, expr: Group, ctx: Context) -> Type:
        if not isinstance(expr.expression, Binary):
            raise SemanticError(
                "grouped expression must be a binary expression, got " + type(expr.expression).__name__
            )
        return self.check_expr(expr.expression, ctx)

    def check_binary(self, expr: Binary, ctx: Context) -> Type:
        left = self.check_expr(expr.left, ctx)
        right = self.check_expr(expr.right, ctx)
        return self.check_binary_types(expr.operator, left, right)

    def check_binary_types(self, op: str, left: Type, right: Type) -> Type:
        # Logical: both Boolean
        if op in LOGICAL_OPS:
            if left != BOOLEAN_T or right != BOOLEAN_T:
                raise SemanticError(
                    "operands of " + op + " must be Boolean, got " + left.name + " and " + right.name
                )
            return BOOLEAN_T
        # Relational: same comparable type
        if op in COMPARE_OPS:
            if left != right or not is_comparable(left):
                raise SemanticError(
                    "cannot compare " + left.name + " and " + right.name + " with " + op
                )
            return BOOLEAN_T
        # Concatenation or addition
        if op == "+":
            if left == STRING_T or right == STRING_T:
                return STRING_T
            if left == right and left in NUMERIC_TYPES:
                return left
            raise SemanticError("cannot add " + left.name + " and " + right.name)
        # Arithmetic: same numeric type
        if op in ARITHMETIC_OPS:
            if left != right or left not in NUMERIC_TYPES:
                raise SemanticError(
                    "operands of " + op + " must both be Integer or both Decimal, got "
                    + left.name + " and " + right.name
                )
            return left
        raise SemanticError("unknown binary operator: " + op)

    def check_access(self, expr: Access, ctx: Context) -> Type:
        if expr.receiver is not None:
            receiver = self.check_expr(expr.receiver, ctx)
            variable = field_of(receiver, expr.name)
        else:
            variable = ctx.scope.lookup_variable(expr.name)
        self.analysis.set_variable(expr, variable)
        return variable.type

    def check_call(self, expr: Call, ctx: Context) -> Type:
        arity = len(expr.arguments)
        if expr.receiver is not None:
            receiver = self.check_expr(expr.receiver, ctx)
            function = method_of(receiver, expr.name, arity)
        else:
            function = ctx.scope.lookup_function(expr.name, arity)
        self.analysis.set_function(expr, function)
        for arg, param in zip(expr.arguments, function.param_types):
            arg_type = self.check_expr(arg, ctx)
            require_assignable(arg_type, param)
        return function.return_type


# ============================================================
# PUBLIC API
# ============================================================


def analyze(
    source: Source,
    registry: Registry | None = None,
    intrinsics: list[Function] | None = None,
) -> Analysis:
    """Analyze a parsed Source. Raises SemanticError on the first violation."""
    return Analyzer(registry, intrinsics).check_source(source)
