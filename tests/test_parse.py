"""Tests for the PLC parser on hand-built and lexed token streams."""

from decimal import Decimal

import pytest

from plc import parse
from plc.ast import (
    LIT_CHARACTER,
    LIT_DECIMAL,
    LIT_INTEGER,
    LIT_STRING,
    Access,
    Binary,
    Call,
    Group,
    Literal,
    ReturnStmt,
    Source,
)
from plc.parse import ParseError, Parser, parse_source, resolve_escapes
from plc.tokens import TK_IDENTIFIER, TK_INTEGER, TK_OPERATOR, Token


def _expr(text: str):
    """Parse text as the value of a single field."""
    return parse("LET v = " + text + ";").fields[0].value


def _int(n: int) -> Literal:
    return Literal(LIT_INTEGER, n)


def test_empty_token_list():
    assert parse_source([]) == Source([], [])


def test_hand_built_tokens():
    tokens = [
        Token(TK_IDENTIFIER, "LET", 0),
        Token(TK_IDENTIFIER, "x", 4),
        Token(TK_OPERATOR, "=", 6),
        Token(TK_INTEGER, "7", 8),
        Token(TK_OPERATOR, ";", 9),
    ]
    source = parse_source(tokens)
    assert source.fields[0].name == "x"
    assert source.fields[0].value == _int(7)


def test_addition_is_left_associative():
    assert _expr("1 + 2 + 3") == Binary("+", Binary("+", _int(1), _int(2)), _int(3))


def test_multiplication_binds_tighter():
    assert _expr("1 + 2 * 3") == Binary("+", _int(1), Binary("*", _int(2), _int(3)))


def test_comparison_below_additive():
    assert _expr("a < b + 1") == Binary(
        "<", Access(None, "a"), Binary("+", Access(None, "b"), _int(1))
    )


def test_logical_is_lowest_and_left_associative():
    expr = _expr("a AND b OR c")
    assert isinstance(expr, Binary)
    assert expr.operator == "OR"
    assert isinstance(expr.left, Binary)
    assert expr.left.operator == "AND"


def test_group_wraps_binary():
    expr = _expr("(1 - 2) * 3")
    assert expr == Binary("*", Group(Binary("-", _int(1), _int(2))), _int(3))


def test_group_must_hold_binary():
    with pytest.raises(ParseError) as exc:
        parse("LET v = (x);")
    assert exc.value.index == 8
    assert "binary expression" in exc.value.msg


def test_secondary_chain():
    expr = _expr("a.b.c(1).d")
    assert expr == Access(
        Call(Access(Access(None, "a"), "b"), "c", [_int(1)]),
        "d",
    )


def test_call_arguments():
    expr = _expr("f(1, g(), x.y)")
    assert isinstance(expr, Call)
    assert expr.receiver is None
    assert len(expr.arguments) == 3
    assert expr.arguments[1] == Call(None, "g", [])


def test_string_escapes_resolved():
    assert _expr('"a\\nb"') == Literal(LIT_STRING, "a\nb")
    assert _expr('"\\t\\r\\b\\n"') == Literal(LIT_STRING, "\t\r\b\n")


def test_other_escape_pairs_kept_verbatim():
    assert _expr('"say \\"hi\\""') == Literal(LIT_STRING, 'say \\"hi\\"')


def test_escapes_resolved_in_one_pass():
    assert resolve_escapes("\\\\n") == "\\\\n"


def test_character_values():
    assert _expr("'c'") == Literal(LIT_CHARACTER, "c")
    assert _expr("'\\n'") == Literal(LIT_CHARACTER, "\n")
    assert _expr("'\\''") == Literal(LIT_CHARACTER, "'")


def test_decimal_value_is_exact():
    assert _expr("0.1") == Literal(LIT_DECIMAL, Decimal("0.1"))


def test_signed_literal_after_minus():
    assert _expr("1 - -2") == Binary("-", _int(1), _int(-2))


def test_return_statement():
    method = parse("DEF main() DO RETURN 0; END").methods[0]
    assert method.statements == [ReturnStmt(_int(0))]


def test_error_at_end_of_input_points_past_last_token():
    with pytest.raises(ParseError) as exc:
        parse("LET x = 10")
    assert exc.value.index == 10
    assert str(exc.value) == "expected ';', got end of input at index 10"


def test_error_on_empty_stream_points_at_zero():
    with pytest.raises(ParseError) as exc:
        Parser([]).parse_expr()
    assert exc.value.index == 0
