"""Eager loading of related nodes through nested CALL subqueries."""

from .hydrator import hydrate_row, hydrate_rows
from .loader import find_many_with_relationships, find_one_with_relationships
from .models import (
    EagerLoadResult,
    HydratedEntity,
    OrderSpec,
    RelatedEntry,
    RelationshipLoadConfig,
    RelationshipLoadNode,
    RelationshipWhere,
    build_relationship_tree,
)
from .synthesizer import synthesize_eager_load
from .validation import RESERVED_RELATIONSHIP_ALIASES, validate_relationship_alias

__all__ = [
    "RESERVED_RELATIONSHIP_ALIASES",
    "EagerLoadResult",
    "HydratedEntity",
    "OrderSpec",
    "RelatedEntry",
    "RelationshipLoadConfig",
    "RelationshipLoadNode",
    "RelationshipWhere",
    "build_relationship_tree",
    "find_many_with_relationships",
    "find_one_with_relationships",
    "hydrate_row",
    "hydrate_rows",
    "synthesize_eager_load",
    "validate_relationship_alias",
]
