"""Tests for eager-load synthesis, hydration and the find helpers."""

import pytest
from pydantic import ValidationError

from neoforge.core.errors import InvalidClauseError, InvalidIdentifierError, NotFoundError, ReservedNameError
from neoforge.infrastructure.neo4j.eager_loading import (
    HydratedEntity,
    build_relationship_tree,
    find_many_with_relationships,
    find_one_with_relationships,
    hydrate_row,
    hydrate_rows,
    synthesize_eager_load,
)
from neoforge.infrastructure.neo4j.query_builder import Direction, Op

ORDERS_WITH_EXPENSIVE_PRODUCTS = {
    "Orders": {
        "name": "ORDERED",
        "label": "Order",
        "relationships": {
            "Products": {
                "name": "CONTAINS",
                "label": "Product",
                "where": {"target": {"price": {Op.GT: 100}}},
            },
        },
    },
}


@pytest.fixture
def user_rows():
    """Rows as the database returns them for one user, one order and the product priced 150."""
    return [
        {
            "n": {"id": "U1", "name": "Ada"},
            "Orders": [
                {
                    "node": {"id": "O1"},
                    "relationship": {"at": "2024-01-01"},
                    "Products": [
                        {"node": {"id": "P2", "price": 150}, "relationship": {"quantity": 2}},
                    ],
                },
            ],
        },
    ]


class TestSynthesis:
    def test_two_level_statement(self):
        result = synthesize_eager_load("User", ORDERS_WITH_EXPENSIVE_PRODUCTS, root_where={"id": "U1"})

        assert result.statement == (
            "MATCH (n:`User`) WHERE n.id = $id "
            "CALL { WITH n "
            "OPTIONAL MATCH (n)-[rel_0_Orders:`ORDERED`]->(target_0_Orders:`Order`) "
            "WITH target_0_Orders, rel_0_Orders "
            "WHERE target_0_Orders IS NOT NULL AND rel_0_Orders IS NOT NULL "
            "CALL { WITH target_0_Orders "
            "OPTIONAL MATCH (target_0_Orders)-[rel_1_Products:`CONTAINS`]->(target_1_Products:`Product`) "
            "WHERE target_1_Products.price > $price "
            "WITH target_1_Products, rel_1_Products "
            "WHERE target_1_Products IS NOT NULL AND rel_1_Products IS NOT NULL "
            "RETURN COLLECT({ node: target_1_Products, relationship: rel_1_Products }) AS Products } "
            "RETURN COLLECT({ node: target_0_Orders, relationship: rel_0_Orders, Products: Products }) AS Orders } "
            "RETURN n, Orders"
        )
        assert result.parameters == {"id": "U1", "price": 100}
        assert result.return_identifiers == ["n", "Orders"]

    def test_root_pagination_precedes_subqueries(self):
        result = synthesize_eager_load(
            "User",
            {"Orders": {"name": "ORDERED", "label": "Order"}},
            root_order=[("name", "ASC")],
            root_skip=0,
            root_limit=5,
        )

        assert result.statement.startswith("MATCH (n:`User`) WITH n ORDER BY n.name ASC SKIP $skip LIMIT $limit CALL {")
        assert result.statement.endswith("RETURN n, Orders ORDER BY n.name ASC")
        assert result.parameters == {"skip": 0, "limit": 5}

    def test_nested_order_and_limit(self):
        result = synthesize_eager_load(
            "User",
            {
                "Orders": {
                    "name": "ORDERED",
                    "label": "Order",
                    "order": [{"on": "relationship", "property": "at", "direction": "DESC"}],
                    "limit": 3,
                },
            },
            root_limit=10,
        )

        assert (
            "WITH target_0_Orders, rel_0_Orders ORDER BY rel_0_Orders.at DESC LIMIT $limit__aaaa RETURN"
            in result.statement
        )
        assert result.parameters == {"limit": 10, "limit__aaaa": 3}
        assert result.statement.count("ORDER BY rel_0_Orders.at DESC") == 1

    def test_nested_order_is_repeated_before_collect(self):
        result = synthesize_eager_load(
            "User",
            {
                "Orders": {
                    "name": "ORDERED",
                    "label": "Order",
                    "order": [{"property": "placed_at", "direction": "DESC"}],
                    "skip": 1,
                    "relationships": {"Products": {"name": "CONTAINS", "label": "Product"}},
                },
            },
        )

        assert (
            "WITH target_0_Orders, rel_0_Orders ORDER BY target_0_Orders.placed_at DESC SKIP $skip CALL {"
            in result.statement
        )
        assert result.statement.endswith(
            "AS Products } "
            "WITH target_0_Orders, rel_0_Orders, Products ORDER BY target_0_Orders.placed_at DESC "
            "RETURN COLLECT({ node: target_0_Orders, relationship: rel_0_Orders, Products: Products }) AS Orders } "
            "RETURN n, Orders"
        )

    def test_nested_order_without_pagination_sits_before_collect(self):
        result = synthesize_eager_load(
            "User",
            {"Orders": {"name": "ORDERED", "label": "Order", "order": [{"property": "total"}]}},
        )

        assert result.statement.endswith(
            "WHERE target_0_Orders IS NOT NULL AND rel_0_Orders IS NOT NULL "
            "WITH target_0_Orders, rel_0_Orders ORDER BY target_0_Orders.total ASC "
            "RETURN COLLECT({ node: target_0_Orders, relationship: rel_0_Orders }) AS Orders } "
            "RETURN n, Orders"
        )

    def test_relationship_predicates_and_direction(self):
        result = synthesize_eager_load(
            "Product",
            {
                "Buyers": {
                    "name": "CONTAINS",
                    "label": "Order",
                    "direction": "in",
                    "where": {"relationship": {"quantity": {Op.GTE: 2}}},
                },
            },
            root_identifier="p",
        )

        assert "OPTIONAL MATCH (p)<-[rel_0_Buyers:`CONTAINS`]-(target_0_Buyers:`Order`)" in result.statement
        assert "WHERE rel_0_Buyers.quantity >= $quantity" in result.statement
        assert result.relationship_tree[0].direction is Direction.IN

    def test_sibling_aliases_share_one_table(self):
        result = synthesize_eager_load(
            "User",
            {
                "Orders": {"name": "ORDERED", "label": "Order", "where": {"target": {"status": "open"}}},
                "Returns": {"name": "RETURNED", "label": "Order", "where": {"target": {"status": "done"}}},
            },
        )

        assert result.parameters == {"status": "open", "status__aaaa": "done"}
        assert result.statement.endswith("RETURN n, Orders, Returns")


class TestAliasValidation:
    @pytest.mark.parametrize("alias", ["node", "relationship", "__proto__", "constructor", "prototype", "__collected"])
    def test_reserved_aliases(self, alias):
        with pytest.raises(ReservedNameError):
            synthesize_eager_load("User", {alias: {"name": "R", "label": "X"}})

    def test_alias_shadowing_root_identifier(self):
        with pytest.raises(ReservedNameError):
            synthesize_eager_load("User", {"n": {"name": "R", "label": "X"}})

    def test_prebuilt_tree_alias_shadowing_root_identifier(self):
        tree = build_relationship_tree({"n": {"name": "R", "label": "X"}}, root_identifier="u")

        with pytest.raises(ReservedNameError):
            synthesize_eager_load("User", tree)

    def test_prebuilt_tree_nested_alias_shadowing_root_identifier(self):
        tree = build_relationship_tree(
            {"Orders": {"name": "R", "label": "X", "relationships": {"n": {"name": "S", "label": "Y"}}}},
            root_identifier="u",
        )

        with pytest.raises(ReservedNameError):
            synthesize_eager_load("User", tree)

    def test_prebuilt_tree_is_accepted(self):
        tree = build_relationship_tree({"Orders": {"name": "ORDERED", "label": "Order"}})

        assert synthesize_eager_load("User", tree).statement.endswith("RETURN n, Orders")

    def test_reserved_nested_alias(self):
        with pytest.raises(ReservedNameError):
            build_relationship_tree(
                {"Orders": {"name": "R", "label": "X", "relationships": {"node": {"name": "S", "label": "Y"}}}}
            )

    def test_unsafe_alias(self):
        with pytest.raises(InvalidIdentifierError):
            synthesize_eager_load("User", {"Orders } MATCH (x": {"name": "R", "label": "X"}})

    def test_unsafe_root_identifier(self):
        with pytest.raises(InvalidIdentifierError):
            synthesize_eager_load("User", {}, root_identifier="n n")

    @pytest.mark.parametrize(
        "config",
        [
            {"name": "R"},
            {"name": "R", "label": "X", "unknown": 1},
            {"name": "R", "label": "X", "limit": -1},
            "R",
        ],
    )
    def test_malformed_config(self, config):
        with pytest.raises(InvalidClauseError):
            build_relationship_tree({"Orders": config})


class TestHydration:
    def test_two_level_scenario(self, user_rows):
        tree = build_relationship_tree(ORDERS_WITH_EXPENSIVE_PRODUCTS)
        [user] = hydrate_rows(user_rows, "n", tree)

        assert user.properties == {"id": "U1", "name": "Ada"}
        assert len(user["Orders"]) == 1
        order = user["Orders"][0]
        assert order.relationship_properties == {"at": "2024-01-01"}
        assert [entry.node.properties["price"] for entry in order.node["Products"]] == [150]
        assert order.node["Products"][0].relationship_properties == {"quantity": 2}

    def test_shape_matches_tree(self, user_rows):
        tree = build_relationship_tree(ORDERS_WITH_EXPENSIVE_PRODUCTS)
        user = hydrate_row(user_rows[0], "n", tree)

        assert set(user.relationships) == {"Orders"}
        assert set(user["Orders"][0].node.relationships) == {"Products"}
        assert user["Orders"][0].node["Products"][0].node.relationships == {}

    def test_alias_without_matches_is_empty(self):
        tree = build_relationship_tree(ORDERS_WITH_EXPENSIVE_PRODUCTS)
        user = hydrate_row({"n": {"id": "U2"}, "Orders": []}, "n", tree)

        assert user["Orders"] == ()

    def test_missing_alias_column_is_empty(self):
        tree = build_relationship_tree(ORDERS_WITH_EXPENSIVE_PRODUCTS)

        assert hydrate_row({"n": {"id": "U2"}}, "n", tree)["Orders"] == ()

    def test_null_entries_are_skipped(self):
        tree = build_relationship_tree({"Orders": {"name": "ORDERED", "label": "Order"}})
        user = hydrate_row(
            {"n": {"id": "U1"}, "Orders": [{"node": None, "relationship": None}, {"node": {"id": "O1"}, "relationship": {}}]},
            "n",
            tree,
        )

        assert [entry.node.properties for entry in user["Orders"]] == [{"id": "O1"}]

    def test_serialized_node_keeps_labels(self):
        user = hydrate_row({"n": {"properties": {"id": "U1"}, "labels": ["User"]}}, "n", ())

        assert user.labels == ("User",)
        assert user.properties == {"id": "U1"}

    def test_missing_root_column(self):
        with pytest.raises(ValueError):
            hydrate_row({"m": {}}, "n", ())

    def test_to_plain(self, user_rows):
        tree = build_relationship_tree(ORDERS_WITH_EXPENSIVE_PRODUCTS)
        user = hydrate_row(user_rows[0], "n", tree)

        assert user.to_plain() == {
            "id": "U1",
            "name": "Ada",
            "Orders": [
                {
                    "node": {
                        "id": "O1",
                        "Products": [{"node": {"id": "P2", "price": 150}, "relationship": {"quantity": 2}}],
                    },
                    "relationship": {"at": "2024-01-01"},
                },
            ],
        }

    def test_entities_are_immutable(self, user_rows):
        tree = build_relationship_tree(ORDERS_WITH_EXPENSIVE_PRODUCTS)
        user = hydrate_row(user_rows[0], "n", tree)

        with pytest.raises(ValidationError):
            user.properties = {}


class TestFindHelpers:
    async def test_find_many(self, make_runner, user_rows):
        runner = make_runner(user_rows)

        users = await find_many_with_relationships(
            runner, "User", ORDERS_WITH_EXPENSIVE_PRODUCTS, where={"id": "U1"}
        )

        assert len(users) == 1
        assert isinstance(users[0], HydratedEntity)
        statement, parameters, session = runner.calls[0]
        assert statement.startswith("MATCH (n:`User`) WHERE n.id = $id")
        assert parameters == {"id": "U1", "price": 100}
        assert session is None

    async def test_find_many_empty(self, runner):
        assert await find_many_with_relationships(runner, "User", {}) == []

    async def test_throw_if_none_found(self, runner):
        with pytest.raises(NotFoundError):
            await find_many_with_relationships(runner, "User", {}, throw_if_none_found=True)

    async def test_find_one_limits_to_one(self, make_runner, user_rows):
        runner = make_runner(user_rows)

        user = await find_one_with_relationships(runner, "User", ORDERS_WITH_EXPENSIVE_PRODUCTS)

        assert user is not None
        assert user.properties["id"] == "U1"
        assert runner.calls[0][1]["limit"] == 1

    async def test_find_one_none(self, runner):
        assert await find_one_with_relationships(runner, "User", {}) is None

    async def test_session_is_passed_through(self, runner):
        session = object()
        await find_many_with_relationships(runner, "User", {}, session=session)

        assert runner.calls[0][2] is session
