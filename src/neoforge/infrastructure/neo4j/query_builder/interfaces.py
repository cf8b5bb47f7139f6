"""Query builder interfaces for dependency injection.

Statement execution is never global: whatever runs a compiled statement is
passed in explicitly and only needs to satisfy ``QueryRunner``.
"""

from typing import Any, Protocol, runtime_checkable

from neo4j import AsyncManagedTransaction, AsyncSession, AsyncTransaction

from neoforge.infrastructure.neo4j.query_builder.parameters import ParameterTable

SessionLike = AsyncSession | AsyncTransaction | AsyncManagedTransaction


@runtime_checkable
class QueryRunner(Protocol):
    """Executes one compiled statement and returns its rows as plain dicts."""

    async def run(
        self,
        statement: str,
        parameters: dict[str, Any],
        session: SessionLike | None = None,
    ) -> list[dict[str, Any]]:
        """Run ``statement`` with ``parameters``.

        Args:
            statement: Cypher text
            parameters: Bound values, keyed by the names used in ``statement``
            session: Existing session or transaction; the runner opens its own when None

        Returns:
            One mapping per result row, keyed by column name
        """
        ...


class StatementSource(Protocol):
    """Anything that can be embedded as a CALL subquery."""

    def get_statement(self) -> str: ...

    def get_parameter_table(self) -> ParameterTable: ...
