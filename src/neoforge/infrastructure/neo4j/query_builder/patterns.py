"""Pattern builders for Cypher queries.

This module provides the node and relationship pattern types, the chains
built from them, and their rendering to text such as
``(u:`User` { id: $id })-[r:`ORDERED`*1..3]->(o:`Order`)``.
"""

import math
from collections.abc import Mapping, MutableSet, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from neoforge.core.errors import InvalidClauseError, MalformedChainError
from neoforge.infrastructure.neo4j.query_builder.cypher import (
    escape_if_needed,
    identifier_with_label,
    normalize_labels,
)
from neoforge.infrastructure.neo4j.query_builder.literal import Literal
from neoforge.infrastructure.neo4j.query_builder.parameters import ParameterTable
from neoforge.infrastructure.neo4j.query_builder.where import Where, WhereParams, parameter_suffix

INFINITY = math.inf


class Direction(str, Enum):
    """Which end of a relationship pattern carries the arrowhead."""

    IN = "in"
    OUT = "out"
    NONE = "none"


def _check_exclusive(kind: str, where: Any, properties: Any) -> None:
    if where is not None and properties is not None:
        raise InvalidClauseError(
            f"A {kind} pattern takes either 'where' or 'properties', not both",
            details={"source": "patterns", "operation": "validate_pattern", "clause": kind},
        )


def _check_hops(value: Any, name: str) -> None:
    if value is None or value == INFINITY:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidClauseError(
            f"{name} must be a non-negative integer or INFINITY, got {value!r}",
            details={"source": "patterns", "operation": "validate_hops", "actual_value": repr(value)},
        )


@dataclass(frozen=True)
class NodePattern:
    """A node such as ``(n:`Label` { ... })``.

    ``where`` is split on rendering: equalities go inline, everything else
    becomes a standalone WHERE after the enclosing clause. ``properties``
    are always inline and always equality.
    """

    identifier: str | None = None
    label: str | Sequence[str] | None = None
    where: WhereParams | None = None
    properties: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        _check_exclusive("node", self.where, self.properties)


@dataclass(frozen=True)
class RelationshipPattern:
    """A relationship such as ``-[r:`NAME`*1..3 { ... }]->``."""

    name: str | Sequence[str] | None = None
    identifier: str | None = None
    direction: Direction = Direction.OUT
    min_hops: int | float | None = None
    max_hops: int | float | None = None
    where: WhereParams | None = None
    properties: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        _check_exclusive("relationship", self.where, self.properties)
        try:
            object.__setattr__(self, "direction", Direction(self.direction))
        except ValueError as e:
            raise InvalidClauseError(
                f"Invalid relationship direction {self.direction!r}",
                details={"source": "patterns", "operation": "validate_direction"},
            ) from e
        _check_hops(self.min_hops, "min_hops")
        _check_hops(self.max_hops, "max_hops")


ChainElement = NodePattern | RelationshipPattern | str


@dataclass(frozen=True)
class Related:
    """An alternating node, relationship, node, ... chain.

    Raw strings are accepted at any position and used verbatim.
    """

    elements: tuple[ChainElement, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))
        if len(self.elements) % 2 == 0:
            raise MalformedChainError(
                "A related chain must start and end with a node",
                details={"source": "patterns", "operation": "validate_chain", "actual_value": len(self.elements)},
            )
        for index, element in enumerate(self.elements):
            if isinstance(element, str):
                continue
            expected = RelationshipPattern if index % 2 else NodePattern
            if not isinstance(element, expected):
                raise MalformedChainError(
                    f"Element {index} of a related chain must be a {expected.__name__}, "
                    f"got {type(element).__name__}",
                    details={"source": "patterns", "operation": "validate_chain", "actual_value": index},
                )


@dataclass(frozen=True)
class Multiple:
    """Comma-separated independent node patterns."""

    nodes: tuple[NodePattern | str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(self.nodes))
        if not self.nodes:
            raise InvalidClauseError(
                "Multiple needs at least one node",
                details={"source": "patterns", "operation": "validate_multiple"},
            )
        for node in self.nodes:
            if not isinstance(node, NodePattern | str):
                raise InvalidClauseError(
                    f"Multiple only takes node patterns, got {type(node).__name__}",
                    details={"source": "patterns", "operation": "validate_multiple"},
                )


class PatternBuilder:
    """Fluent builder for related chains.

    Example:
        ```python
        chain = (
            PatternBuilder()
            .node("User", "u", where={"id": "U1"})
            .relationship("ORDERED", "r")
            .node("Order", "o")
            .build()
        )
        ```
    """

    def __init__(self) -> None:
        self._elements: list[ChainElement] = []

    def node(
        self,
        label: str | Sequence[str] | None = None,
        identifier: str | None = None,
        where: WhereParams | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> "PatternBuilder":
        self._elements.append(NodePattern(identifier=identifier, label=label, where=where, properties=properties))
        return self

    def relationship(
        self,
        name: str | Sequence[str] | None = None,
        identifier: str | None = None,
        direction: Direction | str = Direction.OUT,
        min_hops: int | float | None = None,
        max_hops: int | float | None = None,
        where: WhereParams | None = None,
        properties: Mapping[str, Any] | None = None,
    ) -> "PatternBuilder":
        self._elements.append(
            RelationshipPattern(
                name=name,
                identifier=identifier,
                direction=direction,
                min_hops=min_hops,
                max_hops=max_hops,
                where=where,
                properties=properties,
            )
        )
        return self

    def raw(self, text: str) -> "PatternBuilder":
        self._elements.append(text)
        return self

    def build(self) -> Related:
        return Related(tuple(self._elements))


@dataclass(frozen=True)
class RenderedPattern:
    """Pattern text plus the predicate that could not be placed inline."""

    statement: str
    standalone_where: Where | None = None


@dataclass
class RenderContext:
    """State shared by every pattern rendered into one statement."""

    table: ParameterTable
    generated_identifiers: MutableSet[str] = field(default_factory=set)

    def generate_identifier(self, suffix: str) -> str:
        identifier = self.table.get_unique_name(suffix, reserved=self.generated_identifiers)
        self.generated_identifiers.add(identifier)
        return identifier


def variable_length(min_hops: int | float | None, max_hops: int | float | None) -> str:
    """Return the hop range, e.g. ``*``, ``*2``, ``*1..``, ``*..3`` or ``*1..3``."""
    if min_hops == INFINITY:
        return "*"
    if max_hops == INFINITY:
        return f"*{min_hops}.." if min_hops is not None else "*"
    if min_hops is not None and max_hops is None:
        return f"*{min_hops}.."
    if min_hops is None and max_hops is not None:
        return f"*..{max_hops}"
    if min_hops is not None and max_hops is not None:
        return f"*{min_hops}" if min_hops == max_hops else f"*{min_hops}..{max_hops}"
    return ""


def render_properties(properties: Mapping[str, Any], table: ParameterTable) -> str:
    """Render ``{ key: $param, ... }``; Literal values are written verbatim."""
    parts = []
    for key, value in properties.items():
        bound = table.get_unique_name_and_add_with_literal(parameter_suffix(key), value)
        text = bound.value if isinstance(bound, Literal) else f"${bound}"
        parts.append(f"{escape_if_needed(key)}: {text}")
    return "{ " + ", ".join(parts) + " }"


def _inner_predicates(
    where: WhereParams,
    identifier: str,
    context: RenderContext,
    generated_suffix: str,
) -> tuple[str, str | None, Where | None]:
    eq_params, non_eq_params = Where.split_by_operator(where)
    if not identifier and non_eq_params:
        identifier = context.generate_identifier(generated_suffix)

    inner = None
    if eq_params:
        inner = Where({identifier: eq_params}, context.table).get_statement("object")

    standalone = Where({identifier: non_eq_params}, context.table) if non_eq_params else None
    return identifier, inner, standalone


def render_node(node: NodePattern | str, context: RenderContext) -> RenderedPattern:
    if isinstance(node, str):
        return RenderedPattern(node)

    identifier = node.identifier or ""
    inner: str | None = None
    standalone: Where | None = None

    if node.where is not None:
        identifier, inner, standalone = _inner_predicates(node.where, identifier, context, "__n")
    elif node.properties:
        inner = render_properties(node.properties, context.table)

    parts = []
    head = identifier_with_label(
        escape_if_needed(identifier) if identifier else "",
        normalize_labels(node.label) if node.label else "",
    )
    if head:
        parts.append(head)
    if inner:
        parts.append(inner)
    return RenderedPattern(f"({' '.join(parts)})", standalone)


def render_relationship(relationship: RelationshipPattern | str, context: RenderContext) -> RenderedPattern:
    if isinstance(relationship, str):
        return RenderedPattern(relationship)

    identifier = relationship.identifier or ""
    inner: str | None = None
    standalone: Where | None = None

    if relationship.where is not None:
        identifier, inner, standalone = _inner_predicates(relationship.where, identifier, context, "__r")
    elif relationship.properties:
        inner = render_properties(relationship.properties, context.table)

    content = identifier_with_label(
        escape_if_needed(identifier) if identifier else "",
        normalize_labels(relationship.name, "or") if relationship.name else "",
    )
    content += variable_length(relationship.min_hops, relationship.max_hops)
    if inner:
        content = f"{content} {inner}" if content else inner

    left = "<-" if relationship.direction is Direction.IN else "-"
    right = "->" if relationship.direction is Direction.OUT else "-"
    return RenderedPattern(f"{left}[{content}]{right}", standalone)
