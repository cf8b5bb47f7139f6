"""Hydration of eager-load result rows into entity trees."""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from neo4j.graph import Node, Relationship

from neoforge.infrastructure.neo4j.eager_loading.models import HydratedEntity, RelatedEntry, RelationshipLoadNode


def _entity_properties(value: Any) -> tuple[dict[str, Any], tuple[str, ...]]:
    if isinstance(value, Node):
        return dict(value.items()), tuple(sorted(value.labels))
    if isinstance(value, Mapping):
        # Serialized nodes carry {"properties": ..., "labels": ...}
        if isinstance(value.get("properties"), Mapping):
            return dict(value["properties"]), tuple(value.get("labels") or ())
        return dict(value), ()
    raise TypeError(f"Cannot hydrate a node from {type(value).__name__}")


def _relationship_properties(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, Relationship):
        return dict(value.items())
    if isinstance(value, Mapping):
        if isinstance(value.get("properties"), Mapping):
            return dict(value["properties"])
        return dict(value)
    raise TypeError(f"Cannot read relationship properties from {type(value).__name__}")


def _hydrate_entries(collected: Any, level: RelationshipLoadNode) -> tuple[RelatedEntry, ...]:
    if not collected:
        return ()

    entries = []
    for item in collected:
        # COLLECT over an unmatched OPTIONAL MATCH can still yield null members
        if not isinstance(item, Mapping) or item.get("node") is None or item.get("relationship") is None:
            continue
        entries.append(
            RelatedEntry(
                node=_hydrate_entity(item["node"], item, level.children),
                relationship_properties=_relationship_properties(item["relationship"]),
            )
        )
    return tuple(entries)


def _hydrate_entity(
    value: Any,
    container: Mapping[str, Any],
    levels: Sequence[RelationshipLoadNode],
) -> HydratedEntity:
    properties, labels = _entity_properties(value)
    return HydratedEntity(
        properties=properties,
        labels=labels,
        relationships={level.alias: _hydrate_entries(container.get(level.alias), level) for level in levels},
    )


def hydrate_row(
    row: Mapping[str, Any],
    root_identifier: str,
    tree: Sequence[RelationshipLoadNode],
) -> HydratedEntity:
    """Turn one result row into the root entity with its related entities.

    Every alias in ``tree`` is present on the result; an alias without
    matches hydrates to an empty tuple.

    Raises:
        ValueError: If the row has no ``root_identifier`` column
    """
    if root_identifier not in row or row[root_identifier] is None:
        raise ValueError(f"Result row has no value for root identifier {root_identifier!r}")
    return _hydrate_entity(row[root_identifier], row, tree)


def hydrate_rows(
    rows: Iterable[Mapping[str, Any]],
    root_identifier: str,
    tree: Sequence[RelationshipLoadNode],
) -> list[HydratedEntity]:
    """Hydrate every row of an eager-load result, preserving row order."""
    return [hydrate_row(row, root_identifier, tree) for row in rows]
