"""Neo4j driver and connection management.

This module provides an async driver factory and ``Neo4jQueryRunner``, the
default execution collaborator for compiled statements.
"""

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from neo4j import AsyncDriver, AsyncGraphDatabase, AsyncResult
from neo4j.exceptions import DriverError, Neo4jError

from neoforge.core import DatabaseErrorDetails, ErrorLevel
from neoforge.core.config import Settings, settings as default_settings
from neoforge.core.decorators import with_error_handling
from neoforge.core.errors import ServiceError
from neoforge.core.logging import get_logger
from neoforge.infrastructure.neo4j.query_builder.interfaces import SessionLike

logger = get_logger(__name__)


def create_neo4j_driver(settings: Settings | None = None) -> AsyncDriver:
    """Create an AsyncDriver from settings without connecting yet.

    Args:
        settings: Connection settings; the module-level settings when None

    Returns:
        AsyncDriver: Unverified Neo4j driver
    """
    settings = settings or default_settings

    logger.info(
        "Creating Neo4j driver",
        uri=settings.neo4j_uri,
        pool_size=settings.max_connection_pool_size,
        connection_lifetime=settings.max_connection_lifetime,
    )

    return AsyncGraphDatabase.driver(
        settings.neo4j_uri,
        auth=(settings.neo4j_user, settings.neo4j_password.get_secret_value()),
        max_connection_pool_size=settings.max_connection_pool_size,
        max_connection_lifetime=settings.max_connection_lifetime,
    )


@asynccontextmanager
async def neo4j_driver(settings: Settings | None = None) -> AsyncIterator[AsyncDriver]:
    """Yield a connected driver and close it on exit.

    Raises:
        ServiceError: If the database cannot be reached
    """
    driver = create_neo4j_driver(settings)
    try:
        await driver.verify_connectivity()
    except (DriverError, Neo4jError, OSError) as e:
        await driver.close()
        raise ServiceError(
            f"Could not connect to Neo4j: {e}",
            details=DatabaseErrorDetails(source="neo4j", operation="verify_connectivity", service_name="neo4j"),
        ) from e
    logger.info("Neo4j connection established")

    try:
        yield driver
    finally:
        await driver.close()
        logger.info("Neo4j driver closed")


class Neo4jQueryRunner:
    """Runs compiled statements on an AsyncDriver and returns rows as dicts.

    Node and relationship values are left as driver graph objects so the
    eager-load hydrator can read both properties and labels.
    """

    def __init__(self, driver: AsyncDriver, database: str | None = None) -> None:
        """Initialize the runner.

        Args:
            driver: Neo4j AsyncDriver
            database: Target database; the server default when None
        """
        self.driver: AsyncDriver = driver
        self.database = database if database is not None else default_settings.neo4j_database

    @staticmethod
    async def _collect(result: AsyncResult) -> list[dict[str, Any]]:
        return [dict(record.items()) async for record in result]

    @with_error_handling(error_level=ErrorLevel.ERROR)
    async def run(
        self,
        statement: str,
        parameters: dict[str, Any],
        session: SessionLike | None = None,
    ) -> list[dict[str, Any]]:
        """Execute a statement, in ``session`` when given or in a fresh session.

        Raises:
            ServiceError: If the driver or the server rejects the statement
        """
        logger.debug("Executing Neo4j query", statement=statement, parameters=sorted(parameters))
        started = time.perf_counter()

        try:
            if session is not None:
                rows = await self._collect(await session.run(statement, parameters))
            else:
                async with self.driver.session(database=self.database) as own_session:
                    rows = await self._collect(await own_session.run(statement, parameters))
        except (DriverError, Neo4jError) as e:
            raise ServiceError(
                f"Neo4j query failed: {e}",
                details=DatabaseErrorDetails(
                    source="neo4j",
                    operation="run",
                    service_name="neo4j",
                    database=self.database,
                    statement=statement,
                    latency_ms=(time.perf_counter() - started) * 1000,
                ),
            ) from e

        logger.debug("Neo4j query finished", rows=len(rows), latency_ms=(time.perf_counter() - started) * 1000)
        return rows
