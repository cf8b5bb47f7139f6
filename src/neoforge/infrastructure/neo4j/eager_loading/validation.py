"""Relationship alias validation for eager loading."""

from neoforge.core.errors import ReservedNameError
from neoforge.infrastructure.neo4j.query_builder.cypher import assert_valid_identifier

PROTOTYPE_POLLUTION_KEYS = ("__proto__", "constructor", "prototype")

# Keys of the maps collected per relationship entry, plus the pollution keys
RESERVED_RELATIONSHIP_ALIASES = frozenset({*PROTOTYPE_POLLUTION_KEYS, "node", "relationship", "__collected"})


def validate_relationship_alias(alias: str, root_identifier: str | None = None) -> str:
    """Check that ``alias`` can name a result column of an eager-load statement.

    Args:
        alias: The relationship alias from the load configuration
        root_identifier: The root node identifier, which the alias must not shadow

    Returns:
        The alias, unchanged

    Raises:
        InvalidIdentifierError: If the alias is not a bare-safe identifier
        ReservedNameError: If the alias collides with an internal name
    """
    assert_valid_identifier(alias, "relationship alias")

    if alias in RESERVED_RELATIONSHIP_ALIASES or alias == root_identifier:
        reserved = ", ".join(sorted(RESERVED_RELATIONSHIP_ALIASES))
        raise ReservedNameError(
            f"Relationship alias {alias!r} is reserved. Reserved names: {reserved}"
            + (f", and the root identifier {root_identifier!r}" if root_identifier else ""),
            details={"source": "eager_loading", "operation": "validate_relationship_alias", "identifier": alias},
        )
    return alias
