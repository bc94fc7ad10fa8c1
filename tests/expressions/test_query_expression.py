"""Tests for querytree.expressions.QueryExpression: building, array expansion, rendering, traversal."""

import pytest

from querytree.errors import ExpressionCompiledError
from querytree.expressions import (
    ComparisonExpression,
    QueryExpression,
    UnaryOperatorExpression,
    and_,
    collect_bindings,
    or_,
)
from tests.helpers import RawSql, names


def test_empty_tree():
    tree = QueryExpression()
    assert tree.count() == 0
    assert len(tree) == 0
    assert tree.conjunction == "AND"
    assert tree.sql == ""


def test_literal_passthrough():
    tree = QueryExpression(["active = 1"])
    assert tree.sql == "active = 1"
    assert tree.bindings() == {}
    assert collect_bindings(tree) == []


@pytest.mark.parametrize("conjunction", ["AND", "OR", "XOR"])
@pytest.mark.parametrize("n", [1, 2, 3, 4])
def test_parenthesization(conjunction, n):
    conditions = [f"c{i} = {i}" for i in range(n)]
    tree = QueryExpression(conditions, conjunction=conjunction.lower())
    joined = f" {conjunction} ".join(conditions)
    if n == 1:
        assert tree.sql == joined
    else:
        assert tree.sql == f"({joined})"


def test_end_to_end():
    tree = QueryExpression({"name": "joe", "age >": 18, "OR": ["a = 1", "b = 2"]})
    name, age, group = tree.conditions
    assert isinstance(name, ComparisonExpression)
    assert isinstance(age, ComparisonExpression)
    assert isinstance(group, QueryExpression)
    assert group.conjunction == "OR"
    assert tree.sql == f"(name = {name.placeholder} AND age > {age.placeholder} AND (a = 1 OR b = 2))"
    assert tree.bindings() == {}
    assert [b.value for b in collect_bindings(tree)] == ["joe", 18]


def test_types_reach_comparisons():
    tree = QueryExpression({"age >": "18", "name": "joe"}, {"age": "integer"})
    age, name = tree.conditions
    assert age.type == "integer"
    assert name.type is None
    assert list(age.bindings().values())[0].type == "integer"


def test_in_expansion():
    tree = QueryExpression({"id IN": [1, 2, 3]})
    i = tree.identifier
    assert tree.conditions == [f"id IN (:c{i}_0)"]
    (original,) = tree.bindings().values()
    assert original.value == [1, 2, 3]
    assert original.type == "string[]"

    assert tree.sql == f"id IN (:c{i}_1, :c{i}_2, :c{i}_3)"
    bindings = tree.bindings()
    assert list(bindings) == [1, 2, 3]
    assert [b.value for b in bindings.values()] == [1, 2, 3]
    assert {b.type for b in bindings.values()} == {"string"}
    assert 0 not in bindings
    assert original not in bindings.values()


def test_not_in_expansion_with_type():
    tree = QueryExpression({"id NOT IN": (4, 5)}, {"id": "integer"})
    i = tree.identifier
    assert tree.bindings()[0].type == "integer[]"
    assert tree.sql == f"id NOT IN (:c{i}_1, :c{i}_2)"
    assert [b.type for b in tree.bindings().values()] == ["integer", "integer"]


def test_multi_marker_not_doubled():
    tree = QueryExpression({"id IN": [1]}, {"id": "integer[]"})
    assert tree.bindings()[0].type == "integer[]"


def test_empty_list_expansion():
    tree = QueryExpression({"id IN": []})
    assert tree.sql == "id IN ()"
    assert tree.bindings() == {}


def test_scalar_in_value_is_one_element():
    tree = QueryExpression({"code IN": "abc"})
    i = tree.identifier
    assert tree.sql == f"code IN (:c{i}_1)"
    assert [b.value for b in tree.bindings().values()] == ["abc"]


def test_several_in_literals_are_all_expanded():
    tree = QueryExpression({"id IN": [1, 2], "status NOT IN": ["a"]})
    i = tree.identifier
    assert tree.sql == f"(id IN (:c{i}_2, :c{i}_3) AND status NOT IN (:c{i}_4))"
    assert [b.value for b in tree.bindings().values()] == [1, 2, "a"]


def test_expansion_replaces_whole_placeholders_only():
    tree = QueryExpression()
    i = tree.identifier
    tree.placeholder("skipped")
    tree.in_("a", [1])
    for _ in range(8):
        tree.placeholder("skipped")
    tree.in_("b", [2])
    assert tree.conditions == [f"a IN (:c{i}_1)", f"b IN (:c{i}_10)"]
    assert tree.sql == f"(a IN (:c{i}_11) AND b IN (:c{i}_12))"
    assert {n: b.value for n, b in tree.bindings().items()} == {11: 1, 12: 2}


def test_render_is_idempotent():
    tree = QueryExpression({"id IN": [1, 2], "name": "joe"})
    first = tree.sql
    bindings = tree.bindings()
    count = tree.bindings_store.count
    assert tree.sql == first
    assert str(tree) == first
    assert tree.bindings() == bindings
    assert tree.bindings_store.count == count
    assert tree.compile() is tree.compile()


def test_nested_tree_expands_on_its_own_render():
    tree = QueryExpression({"OR": {"id IN": [1, 2], "flag": True}})
    (child,) = tree.conditions
    assert tree.bindings() == {}
    assert child.is_compiled is False
    _ = tree.sql
    assert child.is_compiled is True
    assert [b.value for b in child.bindings().values()] == [1, 2]


def test_placeholders_unique_across_trees():
    tree = QueryExpression([
        {"id IN": [1, 2], "name": "a"},
        {"id IN": [3], "name": "b"},
        {"OR": {"id IN": [4], "name": "c"}},
    ])
    all_names = names(tree)
    assert len(all_names) == 7
    assert len(set(all_names)) == 7
    for name in all_names:
        assert name in tree.sql


def test_negation():
    tree = QueryExpression()
    tree.not_("field = 1")
    (negation,) = tree.conditions
    assert isinstance(negation, UnaryOperatorExpression)
    assert negation.symbol == "NOT"
    assert tree.sql == "NOT (field = 1)"


def test_negation_of_several_conditions():
    tree = QueryExpression().not_(["a = 1", "b = 2"])
    assert tree.sql == "NOT (a = 1 AND b = 2)"


def test_negation_bindings_reachable_by_traverse():
    tree = QueryExpression().not_({"id IN": [1, 2]})
    inner = tree.conditions[0].argument
    i = inner.identifier
    assert tree.sql == f"NOT (id IN (:c{i}_1, :c{i}_2))"
    assert tree.bindings() == {}
    assert [b.value for b in collect_bindings(tree)] == [1, 2]


def test_not_key_in_description():
    tree = QueryExpression({"active": 1, "not": {"OR": ["a = 1", "b = 2"]}})
    active = tree.conditions[0]
    assert tree.sql == f"(active = {active.placeholder} AND NOT (a = 1 OR b = 2))"


def test_xor_group():
    assert QueryExpression({"xor": ["a = 1", "b = 2"]}).sql == "(a = 1 XOR b = 2)"


def test_empty_groups_are_skipped():
    tree = QueryExpression({"OR": [], "NOT": [], "a = 1": None})
    assert tree.count() == 1


def test_add_tree_transfers_it():
    child = QueryExpression(["a = 1", "b = 2"], conjunction="OR")
    parent = QueryExpression(["c = 3"])
    assert parent.add(child) is parent
    assert parent.conditions[1] is child
    assert parent.sql == "(c = 3 AND (a = 1 OR b = 2))"


def test_add_empty_tree_is_noop():
    parent = QueryExpression(["c = 3"])
    parent.add(QueryExpression())
    assert parent.count() == 1


def test_type_getter_and_setter():
    tree = QueryExpression(["a = 1", "b = 2"])
    assert tree.type() == "AND"
    assert tree.type("or") is tree
    assert tree.type() == "OR"
    assert tree.sql == "(a = 1 OR b = 2)"


def test_and_or_ignore_receiver():
    tree = QueryExpression(["x = 1"])
    result = tree.or_(["a = 1", "b = 2"])
    assert result is not tree
    assert tree.count() == 1
    assert result.sql == "(a = 1 OR b = 2)"
    assert and_(["a = 1", "b = 2"]).sql == "(a = 1 AND b = 2)"


def test_and_or_with_callable():
    result = or_(lambda exp: exp.is_null("a").is_null("b"))
    assert result.conjunction == "OR"
    assert result.sql == "(a IS NULL OR b IS NULL)"
    result = QueryExpression.and_(lambda exp: exp.add("c = 1"))
    assert result.conjunction == "AND"
    assert result.sql == "c = 1"


def test_comparison_helpers():
    tree = (
        QueryExpression()
        .eq("a", 1)
        .not_eq("b", 2)
        .gt("c", 3)
        .lt("d", 4)
        .gte("e", 5)
        .lte("f", 6)
        .like("g", "x%")
        .not_like("h", "y%")
    )
    assert [c.operator for c in tree.conditions] == ["=", "!=", ">", "<", ">=", "<=", "LIKE", "NOT LIKE"]
    assert [c.field for c in tree.conditions] == list("abcdefgh")


def test_comparison_helper_type():
    tree = QueryExpression().eq("a", "1", "integer")
    assert tree.conditions[0].type == "integer"


def test_null_helpers():
    tree = QueryExpression().is_null("deleted_at").is_not_null("created_at")
    assert tree.sql == "(deleted_at IS NULL AND created_at IS NOT NULL)"
    assert collect_bindings(tree) == []


def test_in_helpers():
    tree = QueryExpression().in_("a", [1, 2], "integer").not_in("b", ["x"])
    i = tree.identifier
    assert tree.bindings()[0].type == "integer[]"
    assert tree.bindings()[1].type == "string[]"
    assert tree.sql == f"(a IN (:c{i}_2, :c{i}_3) AND b NOT IN (:c{i}_4))"


def test_in_with_expression_operand():
    subquery = RawSql(text="SELECT id FROM users")
    tree = QueryExpression({"id IN": subquery})
    (comparison,) = tree.conditions
    assert isinstance(comparison, ComparisonExpression)
    assert comparison.type == "string[]"
    assert tree.sql == "id IN (SELECT id FROM users)"
    assert tree.bindings() == {}
    assert collect_bindings(tree) == []


def test_scalar_comparison_with_expression_operand():
    tree = QueryExpression({"total >": RawSql(text="SELECT AVG(total) FROM orders")})
    assert tree.sql == "total > (SELECT AVG(total) FROM orders)"


def test_tree_value_under_named_key_is_nested():
    group = QueryExpression(["a = 1", "b = 2"], conjunction="OR")
    tree = QueryExpression({"ignored": group, "c = 3": None})
    assert tree.conditions[0] is group


def test_add_after_compile_raises():
    tree = QueryExpression(["a = 1"])
    _ = tree.sql
    with pytest.raises(ExpressionCompiledError, match="already compiled"):
        tree.add("b = 2")
    with pytest.raises(ExpressionCompiledError):
        tree.eq("b", 2)
    with pytest.raises(ExpressionCompiledError):
        tree.type("or")
    with pytest.raises(RuntimeError):
        tree.bind(":x", 1)


def test_traverse_deepest_first():
    tree = QueryExpression({"OR": ["a = 1", ["b = 2", "c = 3"]]})
    (group,) = tree.conditions
    innermost = group.conditions[1]
    assert tree.sql == "(a = 1 OR (b = 2 AND c = 3))"
    visited = []
    assert tree.traverse(visited.append) is tree
    ids = [id(e) for e in visited]
    assert ids == [id(innermost), id(group), id(tree)]


def test_traverse_visits_leaf_nodes():
    tree = QueryExpression({"a": 1}).not_("b = 2")
    comparison, negation = tree.conditions
    visited = []
    tree.traverse(visited.append)
    ids = [id(e) for e in visited]
    assert ids == [id(comparison), id(negation.argument), id(negation), id(tree)]


def test_operators_compose_trees():
    a = QueryExpression(["a = 1"])
    b = QueryExpression(["b = 2"])
    assert (a | b).sql == "(a = 1 OR b = 2)"
    assert (a & "c = 3").sql == "(a = 1 AND c = 3)"
    assert (~a).sql == "NOT (a = 1)"
    assert (~(a | b)).sql == "NOT (a = 1 OR b = 2)"


def test_lone_expression_condition():
    comparison = ComparisonExpression(field="a", value=1)
    tree = QueryExpression(comparison)
    assert tree.conditions == [comparison]
    assert tree.sql == f"a = {comparison.placeholder}"
