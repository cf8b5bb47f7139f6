"""Data models for eager loading.

The load tree (``RelationshipLoadNode``) is parsed once from a nested
configuration mapping and stays immutable through synthesis and hydration.
Hydration produces ``HydratedEntity`` trees of the same shape.
"""

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from neoforge.core.errors import InvalidClauseError
from neoforge.infrastructure.neo4j.eager_loading.validation import validate_relationship_alias
from neoforge.infrastructure.neo4j.query_builder.patterns import Direction


class OrderSpec(BaseModel):
    """Ordering of one relationship level by a target or relationship property."""

    model_config = ConfigDict(frozen=True)

    on: Literal["target", "relationship"] = "target"
    property: str
    direction: Literal["ASC", "DESC"] = "ASC"


class RelationshipWhere(BaseModel):
    """Predicates restricting the target node and/or the relationship of one level."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    target: dict[str, Any] | None = None
    relationship: dict[str, Any] | None = None


class RelationshipLoadConfig(BaseModel):
    """Caller-facing configuration for one alias, validated before tree construction."""

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    name: str = Field(description="Relationship type")
    label: str = Field(description="Target node label")
    direction: Direction = Direction.OUT
    where: RelationshipWhere = Field(default_factory=RelationshipWhere)
    order: list[OrderSpec] = Field(default_factory=list)
    limit: int | None = Field(default=None, ge=0)
    skip: int | None = Field(default=None, ge=0)
    relationships: dict[str, Any] = Field(default_factory=dict)


class RelationshipLoadNode(BaseModel):
    """One eager-loaded alias and, recursively, the aliases loaded from its targets."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    alias: str
    relationship_name: str
    direction: Direction = Direction.OUT
    target_label: str
    where: RelationshipWhere = Field(default_factory=RelationshipWhere)
    order: tuple[OrderSpec, ...] = ()
    limit: int | None = None
    skip: int | None = None
    depth: int = 0
    children: tuple["RelationshipLoadNode", ...] = ()

    @property
    def target_identifier(self) -> str:
        return f"target_{self.depth}_{self.alias}"

    @property
    def relationship_identifier(self) -> str:
        return f"rel_{self.depth}_{self.alias}"


def build_relationship_tree(
    config: Mapping[str, Mapping[str, Any] | RelationshipLoadConfig],
    root_identifier: str | None = None,
    depth: int = 0,
) -> tuple[RelationshipLoadNode, ...]:
    """Parse a nested ``alias -> config`` mapping into load nodes.

    Every alias is validated before any statement text is produced.

    Args:
        config: ``alias -> {name, label, direction, where, order, limit, skip, relationships}``
        root_identifier: Identifier of the root node, which aliases must not shadow
        depth: Nesting depth of ``config``; used for generated identifiers

    Returns:
        Load nodes in configuration order

    Raises:
        ReservedNameError: If an alias is reserved
        InvalidIdentifierError: If an alias is not a bare-safe identifier
        InvalidClauseError: If an alias configuration is malformed
    """
    nodes = []
    for alias, raw in config.items():
        validate_relationship_alias(alias, root_identifier)

        if isinstance(raw, RelationshipLoadConfig):
            parsed = raw
        elif isinstance(raw, Mapping):
            try:
                parsed = RelationshipLoadConfig.model_validate(dict(raw))
            except ValidationError as e:
                raise InvalidClauseError(
                    f"Invalid relationship config for {alias!r}: {e}",
                    details={"source": "eager_loading", "operation": "build_relationship_tree", "identifier": alias},
                ) from e
        else:
            raise InvalidClauseError(
                f"Invalid relationship config for {alias!r}: expected a mapping, got {type(raw).__name__}",
                details={"source": "eager_loading", "operation": "build_relationship_tree", "identifier": alias},
            )

        nodes.append(
            RelationshipLoadNode(
                alias=alias,
                relationship_name=parsed.name,
                direction=parsed.direction,
                target_label=parsed.label,
                where=parsed.where,
                order=tuple(parsed.order),
                limit=parsed.limit,
                skip=parsed.skip,
                depth=depth,
                children=build_relationship_tree(parsed.relationships, root_identifier, depth + 1),
            )
        )
    return tuple(nodes)


class EagerLoadResult(BaseModel):
    """A synthesized eager-load statement and what is needed to hydrate its rows."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    statement: str
    parameters: dict[str, Any]
    root_identifier: str
    relationship_tree: tuple[RelationshipLoadNode, ...]

    @property
    def return_identifiers(self) -> list[str]:
        return [self.root_identifier, *(node.alias for node in self.relationship_tree)]


class RelatedEntry(BaseModel):
    """One related node plus the properties of the relationship leading to it."""

    model_config = ConfigDict(frozen=True)

    node: "HydratedEntity"
    relationship_properties: dict[str, Any] = Field(default_factory=dict)


class HydratedEntity(BaseModel):
    """A node with its eager-loaded relationships, keyed by alias."""

    model_config = ConfigDict(frozen=True)

    properties: dict[str, Any] = Field(default_factory=dict)
    labels: tuple[str, ...] = ()
    relationships: dict[str, tuple[RelatedEntry, ...]] = Field(default_factory=dict)

    def __getitem__(self, alias: str) -> tuple[RelatedEntry, ...]:
        return self.relationships[alias]

    def to_plain(self) -> dict[str, Any]:
        """Flatten into plain dicts: properties plus one list per alias."""
        plain: dict[str, Any] = dict(self.properties)
        for alias, entries in self.relationships.items():
            plain[alias] = [
                {"node": entry.node.to_plain(), "relationship": dict(entry.relationship_properties)}
                for entry in entries
            ]
        return plain


RelationshipLoadNode.model_rebuild()
RelatedEntry.model_rebuild()
HydratedEntity.model_rebuild()
