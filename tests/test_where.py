"""Tests for the predicate compiler."""

import pytest

from neoforge.core.errors import InvalidClauseError, InvalidIdentifierError, UnsupportedModeError
from neoforge.infrastructure.neo4j.query_builder import Literal, Op, ParameterTable, Where, ensure_in


class TestTextMode:
    def test_operators_and_null_checks(self, table: ParameterTable):
        where = Where({"n": {"age": {Op.GTE: 18}, "deleted": None}}, table)

        assert where.get_statement("text") == "n.age >= $age AND n.deleted IS NULL"
        assert table.get() == {"age": 18}

    def test_string_operator_keys(self, table: ParameterTable):
        where = Where({"n": {"name": {"contains": "li"}, "score": {"lt": 5}}}, table)

        assert where.get_statement() == "n.name CONTAINS $name AND n.score < $score"

    def test_reverse_in_puts_value_first(self, table: ParameterTable):
        where = Where({"n": {"tags": {Op.REVERSE_IN: "x"}}}, table)

        assert where.get_statement() == "$tags IN n.tags"

    def test_in_operator(self, table: ParameterTable):
        where = Where({"n": {"id": ensure_in(["a", "b"])}}, table)

        assert where.get_statement() == "n.id IN $id"
        assert table.get() == {"id": ["a", "b"]}

    def test_eq_none_becomes_is_null(self, table: ParameterTable):
        where = Where({"n": {"a": {Op.EQ: None}, "b": {Op.NE: None}, "c": {Op.IS_NOT: True}}}, table)

        assert where.get_statement() == "n.a IS NULL AND n.b IS NOT NULL AND n.c IS NOT NULL"
        assert len(table) == 0

    def test_literal_is_not_bound(self, table: ParameterTable):
        where = Where({"n": {"created": {Op.LT: Literal("datetime()")}}}, table)

        assert where.get_statement() == "n.created < datetime()"
        assert len(table) == 0

    def test_same_property_on_two_identifiers(self, table: ParameterTable):
        where = Where({"a": {"name": "x"}, "b": {"name": "y"}}, table)

        assert where.get_statement() == "a.name = $name AND b.name = $name__aaaa"
        assert table.get() == {"name": "x", "name__aaaa": "y"}

    def test_unsafe_property_is_escaped(self, table: ParameterTable):
        where = Where({"n": {"first name": "Ada"}}, table)

        assert where.get_statement() == "n.`first name` = $first_name"

    def test_empty_identifier_fails_in_text_mode(self, table: ParameterTable):
        where = Where({"": {"name": "x"}}, table)

        with pytest.raises(InvalidClauseError):
            where.get_statement("text")

    def test_empty_where_renders_empty(self):
        assert Where().get_statement() == ""
        assert not Where()


class TestObjectMode:
    def test_equalities(self, table: ParameterTable):
        where = Where({"n": {"id": "U1", "active": True}}, table)

        assert where.get_statement("object") == "{ id: $id, active: $active }"

    def test_empty_object(self):
        assert Where().get_statement("object") == "{  }"

    def test_non_eq_operator_is_rejected(self, table: ParameterTable):
        where = Where({"n": {"age": {Op.GT: 1}}}, table)

        with pytest.raises(UnsupportedModeError, match='"eq"'):
            where.get_statement("object")


class TestAccumulation:
    def test_last_write_wins_and_params_are_rebound(self, table: ParameterTable):
        where = Where({"n": {"age": 1}}, table)
        where.add_params({"n": {"age": 2, "name": "x"}})

        assert where.get_statement() == "n.age = $age AND n.name = $name"
        assert table.get() == {"age": 2, "name": "x"}
        assert len(where.raw_params) == 2

    def test_adding_the_same_map_twice_is_idempotent(self):
        params = {"n": {"age": {Op.GTE: 18}, "name": "Ada", "deleted": None}}
        once_table = ParameterTable()
        once = Where(params, once_table)
        twice_table = ParameterTable()
        twice = Where(params, twice_table).add_params(params)

        assert twice.get_statement() == once.get_statement()
        assert twice.get_statement() == "n.age >= $age AND n.name = $name AND n.deleted IS NULL"
        assert twice_table.get() == once_table.get() == {"age": 18, "name": "Ada"}

    def test_rejected_params_leave_where_usable(self, table: ParameterTable):
        where = Where({"n": {"a": 1}}, table)

        with pytest.raises(InvalidClauseError):
            where.add_params({"n": {"b": object()}})

        assert where.get_statement() == "n.a = $a"
        assert table.get() == {"a": 1}
        assert len(where.raw_params) == 1

        where.add_params({"m": {"c": 2}})
        assert where.get_statement() == "n.a = $a AND m.c = $c"
        assert table.get() == {"a": 1, "c": 2}

    def test_rejected_identifier_leaves_where_usable(self, table: ParameterTable):
        where = Where({"n": {"a": 1}}, table)

        with pytest.raises(InvalidIdentifierError):
            where.add_params({"bad identifier": {"b": 2}})

        assert where.get_statement() == "n.a = $a"
        assert table.get() == {"a": 1}


class TestValidation:
    def test_unsafe_identifier(self, table: ParameterTable):
        with pytest.raises(InvalidIdentifierError):
            Where({"n) DETACH DELETE n //": {"x": 1}}, table)

    def test_unknown_operator(self, table: ParameterTable):
        with pytest.raises(InvalidClauseError, match="Unknown predicate operator"):
            Where({"n": {"x": {"like": "a"}}}, table)

    def test_unsupported_value(self, table: ParameterTable):
        with pytest.raises(InvalidClauseError):
            Where({"n": {"x": object()}}, table)


def test_split_by_operator():
    eq_params, non_eq_params = Where.split_by_operator(
        {"id": "U1", "age": {Op.GT: 3}, "name": {Op.EQ: "x"}, "deleted": None}
    )

    assert eq_params == {"id": "U1", "name": {Op.EQ: "x"}}
    assert non_eq_params == {"age": {Op.GT: 3}, "deleted": None}


def test_ensure_in_passthrough():
    assert ensure_in("a") == "a"
    assert ensure_in(("a",)) == {Op.IN: ["a"]}
