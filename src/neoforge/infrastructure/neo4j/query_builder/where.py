"""Predicate compiler for Cypher queries.

This module turns nested ``identifier -> property -> value`` maps into either
inline bracket syntax (``{ name: $name }``) or a boolean predicate
(``n.age >= $age AND n.deleted IS NULL``). Every value is bound through a
shared ParameterTable; identifiers are validated and property names escaped,
so structured input can never break out of the statement.
"""

import datetime
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal as ModeLiteral, TypeAlias

from neo4j.spatial import Point
from neo4j.time import Date, DateTime, Duration, Time

from neoforge.core.errors import InvalidClauseError, QueryBuildError, UnsupportedModeError
from neoforge.infrastructure.neo4j.query_builder.cypher import (
    assert_valid_identifier,
    escape_if_needed,
    is_safe_identifier,
)
from neoforge.infrastructure.neo4j.query_builder.literal import Literal
from neoforge.infrastructure.neo4j.query_builder.parameters import ParameterTable


class Op(str, Enum):
    """Predicate operators usable as keys of an operator mapping."""

    EQ = "eq"
    NE = "ne"
    IN = "in"
    REVERSE_IN = "_in"
    CONTAINS = "contains"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IS = "is"
    IS_NOT = "is_not"


TEXT_OPERATORS: dict[Op, str] = {
    Op.EQ: "=",
    Op.NE: "<>",
    Op.IN: "IN",
    Op.REVERSE_IN: "IN",
    Op.CONTAINS: "CONTAINS",
    Op.GT: ">",
    Op.GTE: ">=",
    Op.LT: "<",
    Op.LTE: "<=",
    Op.IS: "IS NULL",
    Op.IS_NOT: "IS NOT NULL",
}

NULL_OPERATORS = frozenset({Op.IS, Op.IS_NOT})

SCALAR_TYPES = (
    str,
    int,
    float,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    Date,
    Time,
    DateTime,
    Duration,
    Point,
)

WhereValue: TypeAlias = Any
WhereParams: TypeAlias = Mapping[str, WhereValue]
WhereParamsByIdentifier: TypeAlias = Mapping[str, WhereParams]
WhereMode: TypeAlias = ModeLiteral["text", "object"]


def is_supported_value(value: Any) -> bool:
    """Return True for values bound directly as an implicit equality.

    Scalars, driver temporal/spatial types, Literals and lists or tuples of
    scalars qualify. Mappings never do: they are operator objects.
    """
    if isinstance(value, (Literal, *SCALAR_TYPES)):
        return True
    if isinstance(value, list | tuple):
        return all(isinstance(element, SCALAR_TYPES) for element in value)
    return False


def parameter_suffix(prop: str) -> str:
    """Derive a bare-safe parameter name suffix from a property name."""
    if is_safe_identifier(prop):
        return prop
    cleaned = re.sub(r"[^A-Za-z0-9_]", "_", prop)
    if not cleaned or cleaned[0].isdigit():
        cleaned = f"p_{cleaned}"
    return cleaned


def ensure_in(value: Any) -> Any:
    """Wrap a list or tuple into an ``in`` operator object; anything else passes through."""
    if isinstance(value, list | tuple):
        return {Op.IN: list(value)}
    return value


def _normalize_operators(value: Mapping[Any, Any]) -> dict[Op, Any]:
    operators: dict[Op, Any] = {}
    for key, payload in value.items():
        try:
            operators[Op(key)] = payload
        except ValueError as e:
            raise InvalidClauseError(
                f"Unknown predicate operator {key!r}",
                details={"source": "where", "operation": "normalize_operators", "actual_value": str(key)},
            ) from e
    return operators


def _owned_params(entries: "list[PredicateEntry]") -> list[str]:
    return [entry.param for entry in entries if isinstance(entry.param, str)]


def _null_check_operator(operators: Mapping[Op, Any]) -> Op | None:
    if Op.IS in operators:
        return Op.IS
    if Op.IS_NOT in operators:
        return Op.IS_NOT
    if Op.EQ in operators and operators[Op.EQ] is None:
        return Op.IS
    if Op.NE in operators and operators[Op.NE] is None:
        return Op.IS_NOT
    return None


@dataclass(frozen=True, slots=True)
class PredicateEntry:
    """One compiled comparison; ``param`` is None for null checks."""

    identifier: str
    property: str
    operator: Op
    param: str | Literal | None

    def value_text(self) -> str:
        if isinstance(self.param, Literal):
            return self.param.value
        return f"${self.param}"


class Where:
    """Compiles predicate maps against a shared ParameterTable.

    Values accumulate across ``add_params`` calls with last-write-wins per
    ``identifier.property``. Each call regenerates all entries, first removing
    every parameter this instance previously bound.

    Example:
        ```python
        table = ParameterTable()
        where = Where({"n": {"age": {Op.GTE: 18}, "deleted": None}}, table)
        where.get_statement("text")  # "n.age >= $age AND n.deleted IS NULL"
        table.get()                  # {"age": 18}
        ```
    """

    def __init__(
        self,
        params: WhereParamsByIdentifier | None = None,
        table: ParameterTable | None = None,
    ) -> None:
        self._table = ParameterTable.acquire(table)
        self._raw_params: list[WhereParamsByIdentifier] = []
        self._entries: list[PredicateEntry] = []
        if params:
            self.add_params(params)

    @classmethod
    def acquire(
        cls,
        where: "Where | WhereParamsByIdentifier | None",
        table: ParameterTable | None = None,
    ) -> "Where | None":
        """Return ``where`` if it already is a Where, otherwise compile it against ``table``."""
        if where is None or isinstance(where, Where):
            return where
        return cls(where, table)

    @property
    def table(self) -> ParameterTable:
        return self._table

    @property
    def raw_params(self) -> list[WhereParamsByIdentifier]:
        return list(self._raw_params)

    @property
    def entries(self) -> tuple[PredicateEntry, ...]:
        return tuple(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def add_params(self, params: WhereParamsByIdentifier) -> "Where":
        """Merge ``params`` into the accumulated input and recompile every entry.

        Args:
            params: ``identifier -> {property -> value | operator mapping}``

        Returns:
            Self for method chaining

        Raises:
            InvalidIdentifierError: If an identifier is not bare-safe
            InvalidClauseError: If a value is neither bindable nor an operator mapping
        """
        merged: dict[str, dict[str, WhereValue]] = {}
        for raw in [*self._raw_params, params]:
            for identifier, values in raw.items():
                merged.setdefault(identifier, {}).update(values)

        previous_entries = self._entries
        owned = _owned_params(previous_entries)
        previous_values = {name: value for name, value in self._table.get().items() if name in owned}
        self._table.remove(owned)
        self._entries = []

        try:
            for identifier, values in merged.items():
                if identifier:
                    assert_valid_identifier(identifier, "predicate identifier")
                for prop, value in values.items():
                    self._compile_value(identifier, prop, value)
        except QueryBuildError:
            # Rejected input leaves the previous entries and their values in place
            self._table.remove(_owned_params(self._entries))
            self._table.add(previous_values)
            self._entries = previous_entries
            raise

        self._raw_params.append(params)
        return self

    def _compile_value(self, identifier: str, prop: str, value: WhereValue) -> None:
        if value is None:
            self._entries.append(PredicateEntry(identifier, prop, Op.IS, None))
            return

        if is_supported_value(value):
            self._bind(identifier, prop, Op.EQ, value)
            return

        if isinstance(value, Mapping):
            operators = _normalize_operators(value)
            null_operator = _null_check_operator(operators)
            if null_operator is not None:
                self._entries.append(PredicateEntry(identifier, prop, null_operator, None))
                return
            for operator, payload in operators.items():
                if not is_supported_value(payload):
                    raise InvalidClauseError(
                        f"Unsupported value for operator {operator.value!r} on {identifier}.{prop}",
                        details={
                            "source": "where",
                            "operation": "compile_value",
                            "identifier": identifier,
                            "actual_value": repr(payload),
                        },
                    )
                self._bind(identifier, prop, operator, payload)
            return

        raise InvalidClauseError(
            f"Unsupported predicate value for {identifier}.{prop}: {type(value).__name__}",
            details={
                "source": "where",
                "operation": "compile_value",
                "identifier": identifier,
                "actual_value": repr(value),
            },
        )

    def _bind(self, identifier: str, prop: str, operator: Op, value: Any) -> None:
        param = self._table.get_unique_name_and_add_with_literal(parameter_suffix(prop), value)
        self._entries.append(PredicateEntry(identifier, prop, operator, param))

    def get_statement(self, mode: WhereMode = "text") -> str:
        """Render the compiled entries.

        Args:
            mode: ``text`` for a boolean predicate joined with AND, ``object``
                for inline bracket syntax (equality only)

        Returns:
            The rendered predicate; empty string (text) or ``{  }`` (object) when empty

        Raises:
            UnsupportedModeError: If object mode meets a non-equality operator
        """
        if mode == "object":
            parts = []
            for entry in self._entries:
                if entry.operator is not Op.EQ:
                    raise UnsupportedModeError(
                        f'The only operator supported in object mode is "eq", got "{entry.operator.value}". '
                        "Use text mode (a WHERE clause) instead.",
                        details={"source": "where", "operation": "get_statement", "identifier": entry.identifier},
                    )
                parts.append(f"{escape_if_needed(entry.property)}: {entry.value_text()}")
            return "{ " + ", ".join(parts) + " }"

        if mode != "text":
            raise UnsupportedModeError(
                f"Invalid predicate mode {mode!r}",
                details={"source": "where", "operation": "get_statement"},
            )

        parts = []
        for entry in self._entries:
            if not entry.identifier:
                raise InvalidClauseError(
                    f"Predicate on {entry.property!r} needs an identifier in text mode",
                    details={"source": "where", "operation": "get_statement"},
                )
            target = f"{entry.identifier}.{escape_if_needed(entry.property)}"
            symbol = TEXT_OPERATORS[entry.operator]
            if entry.operator in NULL_OPERATORS:
                parts.append(f"{target} {symbol}")
            elif entry.operator is Op.REVERSE_IN:
                parts.append(f"{entry.value_text()} {symbol} {target}")
            else:
                parts.append(f"{target} {symbol} {entry.value_text()}")
        return " AND ".join(parts)

    @staticmethod
    def split_by_operator(params: WhereParams) -> tuple[dict[str, WhereValue], dict[str, WhereValue]]:
        """Partition a flat property map into bracket-safe and predicate-only parts.

        Implicit equalities and operator mappings holding only a non-null
        ``eq`` go to the first map. Nulls, null checks and anything with a
        non-equality operator go (whole property) to the second.

        Returns:
            Tuple of (eq_params, non_eq_params)
        """
        eq_params: dict[str, WhereValue] = {}
        non_eq_params: dict[str, WhereValue] = {}
        for prop, value in params.items():
            if value is None:
                non_eq_params[prop] = value
            elif is_supported_value(value):
                eq_params[prop] = value
            elif isinstance(value, Mapping):
                operators = _normalize_operators(value)
                if _null_check_operator(operators) is not None or any(op is not Op.EQ for op in operators):
                    non_eq_params[prop] = value
                else:
                    eq_params[prop] = value
            else:
                non_eq_params[prop] = value
        return eq_params, non_eq_params
