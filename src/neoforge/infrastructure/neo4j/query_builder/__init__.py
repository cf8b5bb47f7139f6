"""Neo4j query builder framework.

This package compiles structured query intent into parameterized Cypher
statements plus a collision-free parameter table.
"""

from .builder import QueryBuilder
from .clauses import (
    Clause,
    ClauseType,
    DeleteIdentifiers,
    DeleteLiteral,
    Match,
    OrderItem,
    RemoveLabels,
    RemoveProperties,
    ReturnItem,
    SetProperties,
    Unwind,
)
from .cypher import assert_valid_identifier, escape_if_needed, is_safe_identifier, normalize_labels
from .interfaces import QueryRunner, StatementSource
from .literal import Literal
from .parameters import ParameterTable
from .patterns import (
    INFINITY,
    Direction,
    Multiple,
    NodePattern,
    PatternBuilder,
    Related,
    RelationshipPattern,
)
from .where import Op, PredicateEntry, Where, ensure_in

__all__ = [
    "INFINITY",
    "Clause",
    "ClauseType",
    "DeleteIdentifiers",
    "DeleteLiteral",
    "Direction",
    "Literal",
    "Match",
    "Multiple",
    "NodePattern",
    "Op",
    "OrderItem",
    "ParameterTable",
    "PatternBuilder",
    "PredicateEntry",
    # Builder
    "QueryBuilder",
    "QueryRunner",
    "Related",
    "RelationshipPattern",
    "RemoveLabels",
    "RemoveProperties",
    "ReturnItem",
    "SetProperties",
    "StatementSource",
    "Unwind",
    "Where",
    "assert_valid_identifier",
    "ensure_in",
    "escape_if_needed",
    "is_safe_identifier",
    "normalize_labels",
]
