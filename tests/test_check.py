"""Tests for the analyzer's side-table, intrinsics, and host types."""

import pytest

from plc import analyze, check, parse
from plc.ast import (
    LIT_INTEGER,
    Access,
    Binary,
    DeclStmt,
    ExprStmt,
    Group,
    IfStmt,
    Literal,
    Method,
    ReturnStmt,
    Source,
)
from plc.check import Analysis, Analyzer, default_intrinsics
from plc.environment import (
    INTEGER_ITERABLE_T,
    INTEGER_T,
    NIL_T,
    STRING_T,
    Function,
    NoSuchMethodError,
    Registry,
    SemanticError,
    Variable,
    make_type,
)

MAIN = "DEF main() DO RETURN 0; END\n"


def _main(*stmts) -> Source:
    return Source([], [Method("main", [], [], None, [*stmts, ReturnStmt(Literal(LIT_INTEGER, 0))])])


def test_every_expression_is_typed():
    src = parse(
        "LET a = 1;\n"
        "DEF f(x: Integer): Integer DO RETURN (x + a) * 2; END\n"
        "DEF main() DO IF f(1) > 2 DO print(\"big\"); END RETURN 0; END\n"
    )
    analysis = analyze(src)
    ret = src.methods[0].statements[0]
    assert analysis.type_of(ret.value) == INTEGER_T
    assert analysis.type_of(ret.value.left) == INTEGER_T
    assert analysis.type_of(ret.value.left.expression.right) == INTEGER_T
    if_stmt = src.methods[1].statements[0]
    assert isinstance(if_stmt, IfStmt)
    assert analysis.has_type(if_stmt.condition.left)
    assert analysis.has_type(if_stmt.then_statements[0].expression.arguments[0])


def test_shadowed_bindings_are_distinct():
    src = parse(
        "DEF main() DO\n"
        "  LET a = 1;\n"
        "  IF TRUE DO LET a = \"s\"; print(a); END\n"
        "  RETURN a;\n"
        "END\n"
    )
    analysis = analyze(src)
    stmts = src.methods[0].statements
    outer = analysis.variable_of(stmts[0])
    inner = analysis.variable_of(stmts[1].then_statements[0])
    assert outer is not inner
    assert analysis.variable_of(stmts[1].then_statements[1].expression.arguments[0]) is inner
    assert analysis.variable_of(stmts[2].value) is outer


def test_call_binding_is_method_binding():
    src = parse("DEF f(): Integer DO RETURN 1; END\nDEF main() DO RETURN f(); END")
    analysis = analyze(src)
    assert analysis.function_of(src.methods[1].statements[0].value) is analysis.function_of(
        src.methods[0]
    )


def test_equal_nodes_get_separate_entries():
    one = Literal(LIT_INTEGER, 1)
    other = Literal(LIT_INTEGER, 1)
    assert one == other
    analysis = analyze(_main(DeclStmt("a", None, one), DeclStmt("b", None, other)))
    assert analysis.type_of(one) == INTEGER_T
    assert analysis.type_of(other) == INTEGER_T


def test_slots_are_written_once():
    analysis = check(MAIN)
    lit = Literal(LIT_INTEGER, 5)
    analysis.set_type(lit, INTEGER_T)
    with pytest.raises(RuntimeError):
        analysis.set_type(lit, INTEGER_T)
    node = DeclStmt("x", None, lit)
    analysis.set_variable(node, Variable("x", INTEGER_T))
    with pytest.raises(RuntimeError):
        analysis.set_variable(node, Variable("x", INTEGER_T))


def test_reused_node_is_rejected():
    lit = Literal(LIT_INTEGER, 1)
    with pytest.raises(RuntimeError):
        analyze(_main(DeclStmt("a", None, lit), DeclStmt("b", None, lit)))


def test_hand_built_group_of_access_is_rejected():
    source = _main(DeclStmt("a", None, Literal(LIT_INTEGER, 1)), DeclStmt("b", None, Group(Access(None, "a"))))
    with pytest.raises(SemanticError, match="grouped expression must be a binary expression"):
        analyze(source)


def test_hand_built_group_of_binary_is_accepted():
    group = Group(Binary("+", Literal(LIT_INTEGER, 1), Literal(LIT_INTEGER, 2)))
    analysis = analyze(_main(DeclStmt("a", None, group)))
    assert analysis.type_of(group) == INTEGER_T


def test_expression_statement_of_access_is_rejected():
    with pytest.raises(SemanticError, match="must be a function call"):
        analyze(_main(ExprStmt(Access(None, "print"))))


def test_source_scope_holds_fields_and_methods():
    analysis = check("LET x = 1;\n" + MAIN)
    assert analysis.source_scope.lookup_variable("x").type == INTEGER_T
    assert analysis.source_scope.lookup_function("main", 0).return_type == INTEGER_T
    assert analysis.source_scope.parent == analysis.root


def test_default_intrinsics_live_in_root_scope():
    analysis = check(MAIN)
    fn = analysis.root.lookup_function("print", 1)
    assert [t.name for t in fn.param_types] == ["Any"]
    assert fn.return_type == NIL_T
    assert len(default_intrinsics()) == 1


def test_injected_range_intrinsic():
    range_fn = Function("range", [INTEGER_T, INTEGER_T], INTEGER_ITERABLE_T)
    src = parse(
        "DEF main() DO\n"
        "  LET total = 0;\n"
        "  FOR i IN range(1, 4) DO total = total + i; END\n"
        "  RETURN total;\n"
        "END\n"
    )
    analysis = analyze(src, intrinsics=[range_fn])
    loop = src.methods[0].statements[1]
    assert analysis.function_of(loop.value) is range_fn
    assert analysis.type_of(loop.value) == INTEGER_ITERABLE_T


def test_injected_intrinsics_replace_default():
    with pytest.raises(SemanticError, match="undefined function 'print'"):
        check("DEF main() DO print(1); RETURN 0; END", intrinsics=[])


def test_host_type_field_and_method_access():
    registry = Registry()
    point = make_type("Point", fields=[Variable("x", INTEGER_T)])
    point.methods[("label", 0)] = Function("label", [], STRING_T)
    point.methods[("scale", 1)] = Function("scale", [INTEGER_T], point)
    registry.register(point)
    src = parse(
        "LET p: Point;\n"
        "DEF main() DO\n"
        "  print(p.label());\n"
        "  p = p.scale(2);\n"
        "  RETURN p.scale(3).x;\n"
        "END\n"
    )
    analysis = analyze(src, registry)
    stmts = src.methods[0].statements
    assert analysis.type_of(stmts[0].expression.arguments[0]) == STRING_T
    assert analysis.type_of(stmts[1].value) == point
    assert analysis.variable_of(stmts[2].value) is point.fields["x"]
    assert analysis.type_of(stmts[2].value) == INTEGER_T


def test_host_type_field_assignment_checks_type():
    registry = Registry()
    registry.register(make_type("Point", fields=[Variable("x", INTEGER_T)]))
    with pytest.raises(SemanticError, match="cannot assign String to Integer"):
        check('LET p: Point;\nDEF main() DO p.x = "s"; RETURN 0; END', registry)


def test_host_type_unknown_method():
    registry = Registry()
    registry.register(make_type("Point"))
    with pytest.raises(NoSuchMethodError, match="type Point has no method 'move'"):
        check("LET p: Point;\nDEF main() DO p.move(1); RETURN 0; END", registry)


def test_duplicate_entry_point():
    source = Source(
        [],
        [
            Method("main", [], [], None, [ReturnStmt(Literal(LIT_INTEGER, 0))]),
            Method("main", [], [], None, [ReturnStmt(Literal(LIT_INTEGER, 1))]),
        ],
    )
    with pytest.raises(SemanticError, match="duplicate entry point"):
        analyze(source)


def test_mismatched_parameter_lists():
    source = Source(
        [],
        [
            Method("f", ["a", "b"], ["Integer"], None, []),
            Method("main", [], [], None, [ReturnStmt(Literal(LIT_INTEGER, 0))]),
        ],
    )
    with pytest.raises(SemanticError, match="2 parameters but 1 parameter types"):
        analyze(source)


def test_analyzer_instances_are_independent():
    first = Analyzer()
    second = Analyzer()
    assert first.table is not second.table
    assert isinstance(first.check_source(parse(MAIN)), Analysis)
    assert isinstance(second.check_source(parse(MAIN)), Analysis)


def test_analyzer_can_check_several_sources():
    analyzer = Analyzer()
    src = parse("DEF f(): Integer DO RETURN 1; END\n" + MAIN)
    first = analyzer.check_source(src)
    second = analyzer.check_source(src)
    assert first is not second
    assert first.function_of(src.methods[0]) is not second.function_of(src.methods[0])
    assert second.type_of(src.methods[0].statements[0].value) == INTEGER_T
    third = analyzer.check_source(parse("LET x = 1;\n" + MAIN))
    assert third.source_scope.lookup_variable("x").type == INTEGER_T
    with pytest.raises(SemanticError):
        third.source_scope.lookup_function("f", 0)
