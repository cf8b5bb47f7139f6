"""Main Cypher query builder implementation.

This module provides the QueryBuilder class with a fluent interface for
composing parameterized Cypher statements from clause descriptors.
"""

import re
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from structlog.typing import FilteringBoundLogger

from neoforge.core.errors import InvalidClauseError
from neoforge.core.logging import get_logger
from neoforge.infrastructure.neo4j.query_builder.clauses import (
    Clause,
    ClauseType,
    DeleteIdentifiers,
    DeleteLiteral,
    Match,
    OrderPayload,
    PatternPayload,
    RemoveLabels,
    RemoveProperties,
    ReturnPayload,
    SetProperties,
    Unwind,
)
from neoforge.infrastructure.neo4j.query_builder.interfaces import QueryRunner, SessionLike, StatementSource
from neoforge.infrastructure.neo4j.query_builder.pagination import PaginationMixin
from neoforge.infrastructure.neo4j.query_builder.parameters import ParameterTable
from neoforge.infrastructure.neo4j.query_builder.patterns import PatternBuilder, RenderContext
from neoforge.infrastructure.neo4j.query_builder.rendering import lower
from neoforge.infrastructure.neo4j.query_builder.where import Where, WhereParamsByIdentifier

logger: FilteringBoundLogger = get_logger(name=__name__)

_WHITESPACE = re.compile(r"\s+")

PatternArgument = PatternPayload | str | Callable[[PatternBuilder], PatternBuilder]


def _resolve_pattern(pattern: PatternArgument) -> PatternPayload | str:
    if callable(pattern):
        return pattern(PatternBuilder()).build()
    return pattern


class QueryBuilder(PaginationMixin):
    """Fluent Cypher statement composer backed by one ParameterTable.

    Each call appends a clause descriptor and lowers it immediately, so
    parameters are bound in call order. Pass an existing table to compose
    with values bound elsewhere, e.g. a Where compiled beforehand.

    Example:
        ```python
        query = (
            QueryBuilder()
            .match(NodePattern("u", "User", where={"age": {Op.GTE: 18}}))
            .return_clause("u")
            .limit(10)
        )
        query.build()
        # ("MATCH (u:`User`) WHERE u.age >= $age RETURN u LIMIT $limit",
        #  {"age": 18, "limit": 10})
        ```
    """

    def __init__(self, table: ParameterTable | None = None) -> None:
        self._table = ParameterTable.acquire(table)
        self._context = RenderContext(self._table)
        self._clauses: list[Clause] = []
        self._fragments: list[str] = []

    @property
    def clauses(self) -> tuple[Clause, ...]:
        return tuple(self._clauses)

    def add_params(self, *clauses: Clause) -> "QueryBuilder":
        """Append clause descriptors, lowering each one as it is added.

        Args:
            *clauses: Clause descriptors in statement order

        Returns:
            Self for method chaining

        Raises:
            InvalidClauseError: If a clause payload is malformed
        """
        for clause in clauses:
            fragment = lower(clause, self._context)
            self._clauses.append(clause)
            if fragment:
                self._fragments.append(fragment)
        return self

    def raw(self, text: str) -> "QueryBuilder":
        """Append caller-trusted Cypher verbatim."""
        return self.add_params(Clause(ClauseType.RAW, text))

    def match(self, pattern: PatternArgument, optional: bool = False) -> "QueryBuilder":
        """Add a MATCH clause.

        Args:
            pattern: A NodePattern, Related chain, Multiple, raw string, or a
                function that fills in a PatternBuilder
            optional: Emit OPTIONAL MATCH instead

        Returns:
            Self for method chaining

        Example:
            ```python
            query.match(lambda p: p.node("User", "u").relationship("ORDERED").node("Order", "o"))
            ```
        """
        return self.add_params(Clause(ClauseType.MATCH, Match(_resolve_pattern(pattern), optional=optional)))

    def optional_match(self, pattern: PatternArgument) -> "QueryBuilder":
        return self.match(pattern, optional=True)

    def create(self, pattern: PatternArgument) -> "QueryBuilder":
        return self.add_params(Clause(ClauseType.CREATE, _resolve_pattern(pattern)))

    def merge(self, pattern: PatternArgument) -> "QueryBuilder":
        return self.add_params(Clause(ClauseType.MERGE, _resolve_pattern(pattern)))

    def set(self, identifier: str, properties: Mapping[str, Any] | None = None) -> "QueryBuilder":
        """Add ``SET identifier.key = $key, ...``.

        With ``properties`` omitted, ``identifier`` is taken as a raw SET body.
        """
        return self.add_params(Clause(ClauseType.SET, self._set_payload(identifier, properties)))

    def on_create_set(self, identifier: str, properties: Mapping[str, Any] | None = None) -> "QueryBuilder":
        return self.add_params(Clause(ClauseType.ON_CREATE_SET, self._set_payload(identifier, properties)))

    def on_match_set(self, identifier: str, properties: Mapping[str, Any] | None = None) -> "QueryBuilder":
        return self.add_params(Clause(ClauseType.ON_MATCH_SET, self._set_payload(identifier, properties)))

    @staticmethod
    def _set_payload(identifier: str, properties: Mapping[str, Any] | None) -> SetProperties | str:
        return identifier if properties is None else SetProperties(identifier, properties)

    def delete(self, *identifiers: str, detach: bool = False, literal: str | None = None) -> "QueryBuilder":
        """Add a DELETE clause for escaped identifiers, or for a trusted ``literal`` expression."""
        if literal is not None:
            return self.add_params(Clause(ClauseType.DELETE, DeleteLiteral(literal, detach=detach)))
        return self.add_params(Clause(ClauseType.DELETE, DeleteIdentifiers(identifiers, detach=detach)))

    def detach_delete(self, *identifiers: str) -> "QueryBuilder":
        return self.delete(*identifiers, detach=True)

    def remove(
        self,
        identifier: str,
        properties: str | Sequence[str] | None = None,
        labels: str | Sequence[str] | None = None,
    ) -> "QueryBuilder":
        """Add ``REMOVE n.prop, ...`` or ``REMOVE n:`Label```; a bare ``identifier`` is a raw body."""
        if properties is not None and labels is not None:
            raise InvalidClauseError(
                "REMOVE takes either properties or labels, not both",
                details={
                    "source": "builder",
                    "operation": "remove",
                    "clause": ClauseType.REMOVE.name,
                    "identifier": identifier,
                },
            )
        if properties is not None:
            payload: Any = RemoveProperties(identifier, properties)
        elif labels is not None:
            payload = RemoveLabels(identifier, labels)
        else:
            payload = identifier
        return self.add_params(Clause(ClauseType.REMOVE, payload))

    def return_clause(self, *items: ReturnPayload) -> "QueryBuilder":
        """Add a RETURN clause from raw expressions and/or ReturnItems."""
        return self.add_params(Clause(ClauseType.RETURN, self._flatten(items)))

    def with_clause(self, *items: ReturnPayload) -> "QueryBuilder":
        return self.add_params(Clause(ClauseType.WITH, self._flatten(items)))

    def order_by(self, *items: OrderPayload) -> "QueryBuilder":
        return self.add_params(Clause(ClauseType.ORDER_BY, self._flatten(items)))

    @staticmethod
    def _flatten(items: tuple[Any, ...]) -> Any:
        if len(items) == 1:
            return items[0]
        return list(items)

    def unwind(self, value: str, alias: str | None = None) -> "QueryBuilder":
        """Add ``UNWIND value AS alias``; without ``alias`` the value is a raw body."""
        return self.add_params(Clause(ClauseType.UNWIND, value if alias is None else Unwind(value, alias)))

    def for_each(self, body: str) -> "QueryBuilder":
        return self.add_params(Clause(ClauseType.FOR_EACH, body))

    def skip(self, count: int | str) -> "QueryBuilder":
        """Add ``SKIP $skip``; an int is bound as a parameter, a string is raw."""
        return self.add_params(Clause(ClauseType.SKIP, count))

    def limit(self, count: int | str) -> "QueryBuilder":
        """Add ``LIMIT $limit``; an int is bound as a parameter, a string is raw."""
        return self.add_params(Clause(ClauseType.LIMIT, count))

    def where(self, condition: str | Where | WhereParamsByIdentifier) -> "QueryBuilder":
        """Add a WHERE clause.

        Args:
            condition: Raw predicate text, a compiled Where, or an
                ``identifier -> {property -> value}`` mapping

        Returns:
            Self for method chaining
        """
        return self.add_params(Clause(ClauseType.WHERE, condition))

    def call(self, subquery: StatementSource | str) -> "QueryBuilder":
        """Add ``CALL { ... }`` around another builder's statement."""
        return self.add_params(Clause(ClauseType.CALL, subquery))

    def get_statement(self) -> str:
        """Return the statement with runs of whitespace collapsed."""
        return _WHITESPACE.sub(" ", "\n".join(self._fragments)).strip()

    def get_parameter_table(self) -> ParameterTable:
        return self._table

    def get_parameters(self) -> dict[str, Any]:
        return self._table.get()

    def build(self) -> tuple[str, dict[str, Any]]:
        """Build the final Cypher statement and parameters.

        Returns:
            Tuple of (statement, parameters)
        """
        statement = self.get_statement()
        parameters = self.get_parameters()
        logger.debug("Built Cypher statement", statement=statement, parameters=sorted(parameters))
        return statement, parameters

    async def run(self, runner: QueryRunner, session: SessionLike | None = None) -> list[dict[str, Any]]:
        """Execute the statement through an explicitly supplied runner.

        Args:
            runner: Execution collaborator, e.g. a Neo4jQueryRunner
            session: Optional session or transaction to run in

        Returns:
            Result rows as dicts

        Raises:
            ServiceError: If the runner fails to execute the statement
        """
        statement, parameters = self.build()
        return await runner.run(statement, parameters, session=session)

    def __str__(self) -> str:
        return self.get_statement()
