"""PLC parser — recursive descent, one method per grammar production."""

from __future__ import annotations

from decimal import Decimal
from typing import Callable

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
from .tokens import (
    KEYWORDS,
    TK_CHARACTER,
    TK_DECIMAL,
    TK_IDENTIFIER,
    TK_INTEGER,
    TK_STRING,
    Token,
)

LOGICAL_OPS: set[str] = {"AND", "OR"}

COMPARE_OPS: set[str] = {"<", "<=", ">", ">=", "==", "!="}

ADDITIVE_OPS: set[str] = {"+", "-"}

MULTIPLICATIVE_OPS: set[str] = {"*", "/"}

ESCAPE_MAP: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
}


class ParseError(Exception):
    """Syntax error with the zero-based source offset it occurred at."""

    def __init__(self, msg: str, index: int):
        self.msg: str = msg
        self.index: int = index
        super().__init__(msg + " at index " + str(index))


def resolve_escapes(text: str) -> str:
    """Resolve \\n, \\t, \\r and \\b in one pass; other pairs are kept verbatim."""
    out: list[str] = []
    i = 0
    while i < len(text):
        c = text[i]
        if c == "\\" and i + 1 < len(text):
            nxt = text[i + 1]
            if nxt in ESCAPE_MAP:
                out.append(ESCAPE_MAP[nxt])
            else:
                out.append(c)
                out.append(nxt)
            i += 2
            continue
        out.append(c)
        i += 1
    return "".join(out)


def _character_value(literal: str) -> str:
    inner = literal[1:-1]
    if len(inner) == 2 and inner[0] == "\\":
        return ESCAPE_MAP.get(inner[1], inner[1])
    return inner


class Parser:
    """Recursive descent parser for PLC."""

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0

    # ── Helpers ──────────────────────────────────────────────

    def has(self) -> bool:
        return self.pos < len(self.tokens)

    def current(self) -> Token | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        self.pos += 1
        return tok

    def at(self, value: str) -> bool:
        tok = self.current()
        return tok is not None and tok.literal == value

    def at_ident(self) -> bool:
        tok = self.current()
        return tok is not None and tok.kind == TK_IDENTIFIER and tok.literal not in KEYWORDS

    def match(self, value: str) -> bool:
        if self.at(value):
            self.pos += 1
            return True
        return False

    def expect(self, value: str) -> Token:
        if not self.at(value):
            raise self.error("expected '" + value + "'")
        return self.advance()

    def expect_ident(self, what: str = "identifier") -> str:
        if not self.at_ident():
            raise self.error("expected " + what)
        return self.advance().literal

    def error_index(self) -> int:
        """Offset of the current token, or just past the last one at end of input."""
        tok = self.current()
        if tok is not None:
            return tok.index
        if not self.tokens:
            return 0
        last = self.tokens[-1]
        return last.index + len(last.literal)

    def error(self, msg: str) -> ParseError:
        tok = self.current()
        if tok is not None:
            msg = msg + ", got '" + tok.literal + "'"
        else:
            msg = msg + ", got end of input"
        return ParseError(msg, self.error_index())

    # ── Top Level ────────────────────────────────────────────

    def parse_source(self) -> Source:
        fields: list[Field] = []
        methods: list[Method] = []
        while self.at("LET"):
            fields.append(self.parse_field())
        while self.at("DEF"):
            methods.append(self.parse_method())
        if self.has():
            raise self.error("expected 'DEF'")
        return Source(fields, methods)

    def parse_field(self) -> Field:
        self.expect("LET")
        name = self.expect_ident()
        type_name = self.parse_type_annotation()
        value: Expr | None = None
        if self.match("="):
            value = self.parse_expr()
        self.expect(";")
        return Field(name, type_name, value)

    def parse_method(self) -> Method:
        self.expect("DEF")
        name = self.expect_ident("method name")
        self.expect("(")
        parameters: list[str] = []
        type_names: list[str] = []
        if not self.at(")"):
            self.parse_param(parameters, type_names)
            while self.match(","):
                self.parse_param(parameters, type_names)
        self.expect(")")
        return_type = self.parse_type_annotation()
        self.expect("DO")
        statements = self.parse_block("END")
        self.expect("END")
        return Method(name, parameters, type_names, return_type, statements)

    def parse_param(self, names: list[str], type_names: list[str]) -> None:
        names.append(self.expect_ident("parameter name"))
        self.expect(":")
        type_names.append(self.expect_ident("type name"))

    def parse_type_annotation(self) -> str | None:
        """( ':' identifier )?"""
        if self.match(":"):
            return self.expect_ident("type name")
        return None

    def parse_block(self, *terminators: str) -> list[Stmt]:
        """Statements up to (not including) one of the terminator keywords."""
        stmts: list[Stmt] = []
        while self.has() and not any(self.at(t) for t in terminators):
            stmts.append(self.parse_stmt())
        return stmts

    # ── Statements ───────────────────────────────────────────

    def parse_stmt(self) -> Stmt:
        if self.at("LET"):
            return self.parse_decl_stmt()
        if self.at("IF"):
            return self.parse_if_stmt()
        if self.at("FOR"):
            return self.parse_for_stmt()
        if self.at("WHILE"):
            return self.parse_while_stmt()
        if self.at("RETURN"):
            return self.parse_return_stmt()
        return self.parse_expr_stmt()

    def parse_decl_stmt(self) -> DeclStmt:
        self.expect("LET")
        name = self.expect_ident()
        type_name = self.parse_type_annotation()
        value: Expr | None = None
        if self.match("="):
            value = self.parse_expr()
        self.expect(";")
        return DeclStmt(name, type_name, value)

    def parse_if_stmt(self) -> IfStmt:
        self.expect("IF")
        condition = self.parse_expr()
        self.expect("DO")
        then_stmts = self.parse_block("ELSE", "END")
        else_stmts: list[Stmt] = []
        if self.match("ELSE"):
            else_stmts = self.parse_block("END")
        self.expect("END")
        return IfStmt(condition, then_stmts, else_stmts)

    def parse_for_stmt(self) -> ForStmt:
        self.expect("FOR")
        name = self.expect_ident("loop variable")
        self.expect("IN")
        value = self.parse_expr()
        self.expect("DO")
        body = self.parse_block("END")
        self.expect("END")
        return ForStmt(name, value, body)

    def parse_while_stmt(self) -> WhileStmt:
        self.expect("WHILE")
        condition = self.parse_expr()
        self.expect("DO")
        body = self.parse_block("END")
        self.expect("END")
        return WhileStmt(condition, body)

    def parse_return_stmt(self) -> ReturnStmt:
        self.expect("RETURN")
        value = self.parse_expr()
        self.expect(";")
        return ReturnStmt(value)

    def parse_expr_stmt(self) -> Stmt:
        """ExprStmt = Expr ( '=' Expr )? ';'"""
        expr = self.parse_expr()
        if self.match("="):
            value = self.parse_expr()
            self.expect(";")
            return AssignStmt(expr, value)
        self.expect(";")
        return ExprStmt(expr)

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        return self.parse_logical()

    def _fold(self, ops: set[str], operand: Callable[[], Expr]) -> Expr:
        """Left-fold operand ( op operand )* into a Binary chain."""
        left = operand()
        while self.has() and self.tokens[self.pos].literal in ops:
            op = self.advance().literal
            right = operand()
            left = Binary(op, left, right)
        return left

    def parse_logical(self) -> Expr:
        """Logical = Comparison ( ( 'AND' | 'OR' ) Comparison )*"""
        return self._fold(LOGICAL_OPS, self.parse_comparison)

    def parse_comparison(self) -> Expr:
        """Comparison = Additive ( CompOp Additive )*"""
        return self._fold(COMPARE_OPS, self.parse_additive)

    def parse_additive(self) -> Expr:
        """Additive = Multiplicative ( ( '+' | '-' ) Multiplicative )*"""
        return self._fold(ADDITIVE_OPS, self.parse_multiplicative)

    def parse_multiplicative(self) -> Expr:
        """Multiplicative = Secondary ( ( '*' | '/' ) Secondary )*"""
        return self._fold(MULTIPLICATIVE_OPS, self.parse_secondary)

    def parse_secondary(self) -> Expr:
        """Secondary = Primary ( '.' IDENT ( '(' Args ')' )? )*"""
        expr = self.parse_primary()
        while self.match("."):
            name = self.expect_ident("field or method name after '.'")
            if self.match("("):
                args = self.parse_arg_list()
                expr = Call(expr, name, args)
            else:
                expr = Access(expr, name)
        return expr

    def parse_arg_list(self) -> list[Expr]:
        """ArgList = ( Expr ( ',' Expr )* )? ')'"""
        args: list[Expr] = []
        if not self.at(")"):
            args.append(self.parse_expr())
            while self.match(","):
                args.append(self.parse_expr())
        self.expect(")")
        return args

    def parse_primary(self) -> Expr:
        """Parse a primary expression."""
        tok = self.current()
        if tok is None:
            raise self.error("expected expression")

        # Keyword literals
        if tok.literal == "NIL":
            self.advance()
            return Literal(LIT_NIL, None)
        if tok.literal == "TRUE":
            self.advance()
            return Literal(LIT_BOOLEAN, True)
        if tok.literal == "FALSE":
            self.advance()
            return Literal(LIT_BOOLEAN, False)

        # Lexical literals
        if tok.kind == TK_INTEGER:
            self.advance()
            return Literal(LIT_INTEGER, int(tok.literal))
        if tok.kind == TK_DECIMAL:
            self.advance()
            return Literal(LIT_DECIMAL, Decimal(tok.literal))
        if tok.kind == TK_CHARACTER:
            self.advance()
            return Literal(LIT_CHARACTER, _character_value(tok.literal))
        if tok.kind == TK_STRING:
            self.advance()
            return Literal(LIT_STRING, resolve_escapes(tok.literal[1:-1]))

        # ( expression ), which must directly hold a binary expression
        if tok.literal == "(":
            self.advance()
            inner = self.parse_expr()
            self.expect(")")
            if not isinstance(inner, Binary):
                raise ParseError("expected binary expression inside parentheses", tok.index)
            return Group(inner)

        # Identifier or call
        if self.at_ident():
            name = self.advance().literal
            if self.match("("):
                args = self.parse_arg_list()
                return Call(None, name, args)
            return Access(None, name)

        raise self.error("expected expression")


def parse_source(tokens: list[Token]) -> Source:
    """Parse a token sequence into a Source AST."""
    return Parser(tokens).parse_source()
