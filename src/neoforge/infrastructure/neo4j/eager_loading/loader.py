"""Find helpers that synthesize, execute and hydrate eager-load statements."""

from collections.abc import Sequence

from neoforge.core.errors import NotFoundError
from neoforge.core.logging import get_logger
from neoforge.infrastructure.neo4j.eager_loading.hydrator import hydrate_rows
from neoforge.infrastructure.neo4j.eager_loading.models import HydratedEntity
from neoforge.infrastructure.neo4j.eager_loading.synthesizer import RelationshipsArgument, synthesize_eager_load
from neoforge.infrastructure.neo4j.query_builder.clauses import SortDirection
from neoforge.infrastructure.neo4j.query_builder.interfaces import QueryRunner, SessionLike
from neoforge.infrastructure.neo4j.query_builder.where import WhereParams

logger = get_logger(__name__)


async def find_many_with_relationships(
    runner: QueryRunner,
    label: str | Sequence[str],
    relationships: RelationshipsArgument,
    *,
    identifier: str = "n",
    where: WhereParams | None = None,
    order: Sequence[tuple[str, SortDirection]] | None = None,
    skip: int | None = None,
    limit: int | None = None,
    session: SessionLike | None = None,
    throw_if_none_found: bool = False,
) -> list[HydratedEntity]:
    """Load ``label`` nodes with their configured relationships in one round trip.

    Args:
        runner: Execution collaborator, e.g. a Neo4jQueryRunner
        label: Label(s) of the root nodes
        relationships: ``alias -> config`` mapping describing what to load
        identifier: Identifier bound to the root node
        where: Predicates on root properties
        order: ``(property, direction)`` pairs ordering the roots
        skip: Roots to skip
        limit: Maximum number of roots
        session: Optional session or transaction to run in
        throw_if_none_found: Raise NotFoundError instead of returning an empty list

    Returns:
        Hydrated root entities in result order

    Raises:
        NotFoundError: If ``throw_if_none_found`` and no root matched
        ServiceError: If the runner fails to execute the statement
    """
    result = synthesize_eager_load(
        label,
        relationships,
        root_identifier=identifier,
        root_where=where,
        root_order=order,
        root_skip=skip,
        root_limit=limit,
    )
    rows = await runner.run(result.statement, result.parameters, session=session)

    if not rows and throw_if_none_found:
        raise NotFoundError(
            f"No {label} nodes found",
            details={"source": "eager_loading", "operation": "find_many_with_relationships", "label": str(label)},
        )

    entities = hydrate_rows(rows, result.root_identifier, result.relationship_tree)
    logger.debug("Hydrated eager-load result", label=label, count=len(entities))
    return entities


async def find_one_with_relationships(
    runner: QueryRunner,
    label: str | Sequence[str],
    relationships: RelationshipsArgument,
    *,
    identifier: str = "n",
    where: WhereParams | None = None,
    session: SessionLike | None = None,
    throw_if_none_found: bool = False,
) -> HydratedEntity | None:
    """Load the first matching ``label`` node with its relationships, or None."""
    entities = await find_many_with_relationships(
        runner,
        label,
        relationships,
        identifier=identifier,
        where=where,
        limit=1,
        session=session,
        throw_if_none_found=throw_if_none_found,
    )
    return entities[0] if entities else None
