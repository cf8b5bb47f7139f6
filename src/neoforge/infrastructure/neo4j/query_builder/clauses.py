"""Clause descriptors for the Cypher query builder.

Every clause added to a QueryBuilder is recorded as a ``Clause(kind, value)``.
The value is either a raw string, used verbatim and never validated, or one
of the structured payloads below, whose identifiers are escaped and whose
values are bound as parameters.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Literal as TypingLiteral

from neoforge.infrastructure.neo4j.query_builder.patterns import Multiple, NodePattern, Related

PatternPayload = NodePattern | Related | Multiple
SortDirection = TypingLiteral["ASC", "DESC"]


class ClauseType(Enum):
    """Enum for Cypher clause types."""

    RAW = auto()

    # Reading and writing patterns
    MATCH = auto()
    CREATE = auto()
    MERGE = auto()

    # Data manipulation
    SET = auto()
    ON_CREATE_SET = auto()
    ON_MATCH_SET = auto()
    DELETE = auto()
    REMOVE = auto()

    # Projection and filtering
    RETURN = auto()
    WITH = auto()
    WHERE = auto()
    ORDER_BY = auto()

    # Pagination
    SKIP = auto()
    LIMIT = auto()

    # Miscellaneous
    UNWIND = auto()
    FOR_EACH = auto()
    CALL = auto()


@dataclass(frozen=True)
class Clause:
    kind: ClauseType
    value: Any


@dataclass(frozen=True)
class Match:
    pattern: PatternPayload | str
    optional: bool = False


@dataclass(frozen=True)
class SetProperties:
    """``SET identifier.key = $key, ...``; Literal values are written verbatim."""

    identifier: str
    properties: Mapping[str, Any]


@dataclass(frozen=True)
class DeleteIdentifiers:
    identifiers: tuple[str, ...]
    detach: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "identifiers", tuple(self.identifiers))


@dataclass(frozen=True)
class DeleteLiteral:
    """Delete by an arbitrary, caller-trusted expression."""

    literal: str
    detach: bool = False


@dataclass(frozen=True)
class RemoveProperties:
    identifier: str
    properties: tuple[str, ...]

    def __post_init__(self) -> None:
        props = (self.properties,) if isinstance(self.properties, str) else tuple(self.properties)
        object.__setattr__(self, "properties", props)


@dataclass(frozen=True)
class RemoveLabels:
    identifier: str
    labels: tuple[str, ...]

    def __post_init__(self) -> None:
        labels = (self.labels,) if isinstance(self.labels, str) else tuple(self.labels)
        object.__setattr__(self, "labels", labels)


@dataclass(frozen=True)
class ReturnItem:
    """``identifier`` or ``identifier.property``, escaped as needed."""

    identifier: str
    property: str | None = None


@dataclass(frozen=True)
class OrderItem:
    identifier: str
    property: str | None = None
    direction: SortDirection | None = None


@dataclass(frozen=True)
class Unwind:
    """``UNWIND value AS alias``; ``value`` is an expression and not escaped."""

    value: str
    alias: str


ReturnPayload = str | Sequence[str | ReturnItem]
OrderPayload = str | OrderItem | Sequence[str | OrderItem | tuple[str, SortDirection]]
