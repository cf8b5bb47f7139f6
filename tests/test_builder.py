"""Tests for the clause composer."""

import pytest

from neoforge.core.errors import DuplicateParameterError, InvalidClauseError
from neoforge.infrastructure.neo4j.query_builder import (
    Clause,
    ClauseType,
    Literal,
    Multiple,
    NodePattern,
    Op,
    OrderItem,
    ParameterTable,
    QueryBuilder,
    Related,
    RelationshipPattern,
    ReturnItem,
    Where,
)


def test_match_with_inline_and_standalone_predicates():
    statement, parameters = (
        QueryBuilder()
        .match(NodePattern("u", "User", where={"id": "U1", "age": {Op.GTE: 18}}))
        .return_clause("u")
        .build()
    )

    assert statement == "MATCH (u:`User` { id: $id }) WHERE u.age >= $age RETURN u"
    assert parameters == {"id": "U1", "age": 18}


def test_chain_collision_free_parameters():
    statement, parameters = (
        QueryBuilder()
        .match(
            Related(
                (
                    NodePattern("a", "Person", properties={"name": "A"}),
                    RelationshipPattern("KNOWS", "r"),
                    NodePattern("b", "Person", properties={"name": "B"}),
                )
            )
        )
        .return_clause("a", "b")
        .build()
    )

    assert statement == (
        "MATCH (a:`Person` { name: $name })-[r:`KNOWS`]->(b:`Person` { name: $name__aaaa }) RETURN a, b"
    )
    assert parameters == {"name": "A", "name__aaaa": "B"}


def test_match_with_pattern_builder_callable():
    statement = (
        QueryBuilder()
        .match(lambda p: p.node("User", "u").relationship("ORDERED", direction="in").node("Order", "o"))
        .get_statement()
    )

    assert statement == "MATCH (u:`User`)<-[:`ORDERED`]-(o:`Order`)"


def test_optional_match_and_multiple():
    statement = (
        QueryBuilder()
        .optional_match(Multiple((NodePattern("a", "A"), NodePattern("b", "B"))))
        .get_statement()
    )

    assert statement == "OPTIONAL MATCH (a:`A`), (b:`B`)"


def test_merge_with_on_create_and_on_match_set():
    statement, parameters = (
        QueryBuilder()
        .merge(NodePattern("u", "User", properties={"id": "U1"}))
        .on_create_set("u", {"created": Literal("timestamp()"), "name": "Ada"})
        .on_match_set("u", {"name": "Ada Lovelace"})
        .build()
    )

    assert statement == (
        "MERGE (u:`User` { id: $id }) "
        "ON CREATE SET u.created = timestamp(), u.name = $name "
        "ON MATCH SET u.name = $name__aaaa"
    )
    assert parameters == {"id": "U1", "name": "Ada", "name__aaaa": "Ada Lovelace"}


def test_create_rejects_standalone_predicates():
    with pytest.raises(InvalidClauseError):
        QueryBuilder().create(NodePattern("u", "User", where={"age": {Op.GT: 1}}))


def test_set_escapes_property_names():
    statement = QueryBuilder().set("n", {"first name": "Ada"}).get_statement()

    assert statement == "SET n.`first name` = $first_name"


def test_delete_and_remove():
    statement = (
        QueryBuilder()
        .match(NodePattern("n", "Temp"))
        .remove("n", properties=["a", "b"])
        .remove("n", labels="Temp")
        .detach_delete("n")
        .get_statement()
    )

    assert statement == "MATCH (n:`Temp`) REMOVE n.a, n.b REMOVE n:`Temp` DETACH DELETE n"


def test_delete_literal():
    assert QueryBuilder().delete(literal="nodes(p)[0]").get_statement() == "DELETE nodes(p)[0]"


def test_return_order_skip_limit():
    statement, parameters = (
        QueryBuilder()
        .match(NodePattern("n", "User"))
        .return_clause(ReturnItem("n", "name"), "n.age AS age")
        .order_by(OrderItem("n", "name", "DESC"), ("n.age", "ASC"))
        .skip(20)
        .limit(10)
        .build()
    )

    assert statement == (
        "MATCH (n:`User`) RETURN n.name, n.age AS age ORDER BY n.name DESC, n.age ASC SKIP $skip LIMIT $limit"
    )
    assert parameters == {"skip": 20, "limit": 10}
    assert isinstance(parameters["skip"], int)


def test_paginate():
    _, parameters = QueryBuilder().paginate(3, 25).build()

    assert parameters == {"skip": 50, "limit": 25}


@pytest.mark.parametrize("value", [-1, True, 1.5])
def test_invalid_pagination_values(value):
    with pytest.raises(InvalidClauseError):
        QueryBuilder().limit(value)


def test_invalid_sort_direction():
    with pytest.raises(InvalidClauseError):
        QueryBuilder().order_by(OrderItem("n", "name", "SIDEWAYS"))


def test_unwind_and_raw():
    statement = QueryBuilder().unwind("$rows", "row").raw("MERGE (n:`Row` {id: row.id})").get_statement()

    assert statement == "UNWIND $rows AS row MERGE (n:`Row` {id: row.id})"


def test_where_accepts_mapping_string_and_compiled_where():
    foreign = Where({"n": {"age": {Op.GT: 1}}})
    statement, parameters = (
        QueryBuilder()
        .match(NodePattern("n", "User"))
        .where(foreign)
        .with_clause("n")
        .where({"n": {"name": "Ada"}})
        .with_clause("n")
        .where("n.score > 3")
        .build()
    )

    assert statement == (
        "MATCH (n:`User`) WHERE n.age > $age WITH n WHERE n.name = $name WITH n WHERE n.score > 3"
    )
    assert parameters == {"age": 1, "name": "Ada"}


def test_foreign_where_with_clashing_names_fails():
    query = QueryBuilder().match(NodePattern("n", "User", properties={"age": 3}))

    with pytest.raises(DuplicateParameterError):
        query.where(Where({"n": {"age": {Op.GT: 1}}}))


def test_call_shares_table():
    table = ParameterTable()
    inner = QueryBuilder(table).with_clause("n").match(NodePattern("n", properties={"id": 2})).return_clause("n AS m")
    statement, parameters = (
        QueryBuilder(table).match(NodePattern("n", "A", properties={"id": 1})).call(inner).return_clause("m").build()
    )

    # The subquery was lowered first, so it holds the plain name
    assert statement == "MATCH (n:`A` { id: $id__aaaa }) CALL { WITH n MATCH (n { id: $id }) RETURN n AS m } RETURN m"
    assert parameters == {"id": 2, "id__aaaa": 1}


def test_add_params_with_clause_descriptors():
    query = QueryBuilder().add_params(Clause(ClauseType.MATCH, NodePattern("n")), Clause(ClauseType.RETURN, "n"))

    assert query.get_statement() == "MATCH (n) RETURN n"
    assert [clause.kind for clause in query.clauses] == [ClauseType.MATCH, ClauseType.RETURN]
    assert str(query) == "MATCH (n) RETURN n"


def test_unsupported_payload():
    with pytest.raises(InvalidClauseError):
        QueryBuilder().add_params(Clause(ClauseType.RETURN, 42))


async def test_run_uses_supplied_runner(runner):
    await QueryBuilder().match(NodePattern("n", "User", properties={"id": 1})).return_clause("n").run(runner)

    assert runner.calls == [("MATCH (n:`User` { id: $id }) RETURN n", {"id": 1}, None)]


def test_remove_rejects_properties_and_labels_together():
    with pytest.raises(InvalidClauseError) as exc_info:
        QueryBuilder().remove("n", properties="a", labels="B")

    assert exc_info.value.details.clause == "REMOVE"
    assert exc_info.value.details.identifier == "n"
