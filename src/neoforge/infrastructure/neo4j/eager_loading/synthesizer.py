"""Eager-load statement synthesis.

This module builds one Cypher statement that loads root nodes together with
any depth of related nodes. Each relationship level becomes a ``CALL { ... }``
block that collects ``{ node, relationship, <child aliases> }`` maps into a
list column named after the alias:

    MATCH (n:`User`) WHERE n.id = $id
    CALL {
      WITH n
      OPTIONAL MATCH (n)-[rel_0_Orders:`ORDERED`]->(target_0_Orders:`Order`)
      WITH target_0_Orders, rel_0_Orders WHERE target_0_Orders IS NOT NULL AND rel_0_Orders IS NOT NULL
      CALL { ... }
      RETURN COLLECT({ node: target_0_Orders, relationship: rel_0_Orders, Products: Products }) AS Orders
    }
    RETURN n, Orders

All blocks share one ParameterTable, so no two levels can bind the same name.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from neoforge.core.logging import get_logger
from neoforge.infrastructure.neo4j.eager_loading.models import (
    EagerLoadResult,
    RelationshipLoadConfig,
    RelationshipLoadNode,
    build_relationship_tree,
)
from neoforge.infrastructure.neo4j.eager_loading.validation import validate_relationship_alias
from neoforge.infrastructure.neo4j.query_builder.builder import QueryBuilder
from neoforge.infrastructure.neo4j.query_builder.clauses import OrderItem, SortDirection
from neoforge.infrastructure.neo4j.query_builder.cypher import assert_valid_identifier, escape_if_needed
from neoforge.infrastructure.neo4j.query_builder.parameters import ParameterTable
from neoforge.infrastructure.neo4j.query_builder.patterns import NodePattern, Related, RelationshipPattern
from neoforge.infrastructure.neo4j.query_builder.where import WhereParams

logger = get_logger(__name__)

RelationshipsArgument = Mapping[str, Mapping[str, Any] | RelationshipLoadConfig] | Sequence[RelationshipLoadNode]


def _validate_tree_aliases(levels: Sequence[RelationshipLoadNode], root_identifier: str) -> None:
    # A pre-built tree may have been parsed against another root identifier
    for level in levels:
        validate_relationship_alias(level.alias, root_identifier)
        _validate_tree_aliases(level.children, root_identifier)


def _level_subquery(level: RelationshipLoadNode, table: ParameterTable, parent_identifier: str) -> QueryBuilder:
    target = level.target_identifier
    relationship = level.relationship_identifier
    query = QueryBuilder(table)

    query.with_clause(escape_if_needed(parent_identifier))
    query.optional_match(
        Related(
            (
                NodePattern(parent_identifier),
                RelationshipPattern(level.relationship_name, relationship, level.direction),
                NodePattern(target, level.target_label),
            )
        )
    )

    predicates: dict[str, WhereParams] = {}
    if level.where.target:
        predicates[target] = level.where.target
    if level.where.relationship:
        predicates[relationship] = level.where.relationship
    if predicates:
        query.where(predicates)

    query.with_clause(target, relationship)
    query.where(f"{target} IS NOT NULL AND {relationship} IS NOT NULL")

    order_items = [
        OrderItem(target if spec.on == "target" else relationship, spec.property, spec.direction)
        for spec in level.order
    ]
    paginated = level.skip is not None or level.limit is not None
    if paginated:
        query.with_clause(target, relationship)
        if order_items:
            query.order_by(order_items)
        if level.skip is not None:
            query.skip(level.skip)
        if level.limit is not None:
            query.limit(level.limit)

    for child in level.children:
        query.call(_level_subquery(child, table, target))

    # Row order is only kept by an ORDER BY directly before the aggregation
    if order_items and (level.children or not paginated):
        query.with_clause(target, relationship, *(child.alias for child in level.children))
        query.order_by(order_items)

    fields = [f"node: {target}", f"relationship: {relationship}"]
    fields.extend(f"{child.alias}: {child.alias}" for child in level.children)
    query.return_clause(f"COLLECT({{ {', '.join(fields)} }}) AS {level.alias}")
    return query


def synthesize_eager_load(
    root_label: str | Sequence[str],
    relationships: RelationshipsArgument,
    root_identifier: str = "n",
    root_where: WhereParams | None = None,
    root_order: Sequence[tuple[str, SortDirection]] | None = None,
    root_skip: int | None = None,
    root_limit: int | None = None,
) -> EagerLoadResult:
    """Build the eager-load statement for ``root_label`` nodes.

    Args:
        root_label: Label(s) of the root nodes
        relationships: ``alias -> config`` mapping, or an already built load tree
        root_identifier: Identifier bound to the root node
        root_where: Predicates on root properties, ``property -> value | operator mapping``
        root_order: ``(property, direction)`` pairs ordering the roots
        root_skip: Roots to skip
        root_limit: Maximum number of roots

    Returns:
        EagerLoadResult with the statement, its parameters and the load tree

    Raises:
        InvalidIdentifierError: If the root identifier or an alias is unsafe
        ReservedNameError: If an alias is reserved
    """
    assert_valid_identifier(root_identifier, "root identifier")

    if isinstance(relationships, Mapping):
        tree = build_relationship_tree(relationships, root_identifier)
    else:
        tree = tuple(relationships)
        _validate_tree_aliases(tree, root_identifier)

    table = ParameterTable()
    query = QueryBuilder(table).match(NodePattern(root_identifier, root_label))

    if root_where:
        query.where({root_identifier: root_where})

    order_items = [OrderItem(root_identifier, prop, direction) for prop, direction in root_order or ()]
    if order_items or root_skip is not None or root_limit is not None:
        # Paginate roots before loading their relationships
        query.with_clause(root_identifier)
        if order_items:
            query.order_by(order_items)
        if root_skip is not None:
            query.skip(root_skip)
        if root_limit is not None:
            query.limit(root_limit)

    for level in tree:
        query.call(_level_subquery(level, table, root_identifier))

    query.return_clause(root_identifier, *(level.alias for level in tree))
    if order_items:
        query.order_by(order_items)

    statement, parameters = query.build()
    logger.debug(
        "Synthesized eager-load statement",
        root_label=root_label,
        aliases=[level.alias for level in tree],
        parameters=sorted(parameters),
    )
    return EagerLoadResult(
        statement=statement,
        parameters=parameters,
        root_identifier=root_identifier,
        relationship_tree=tree,
    )
