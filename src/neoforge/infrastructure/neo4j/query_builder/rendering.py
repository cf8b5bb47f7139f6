"""Lowering of clause descriptors to Cypher text.

Each ``lower_*`` function turns one clause payload into one statement
fragment, binding any values into the shared RenderContext table.
"""

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from neoforge.core.errors import InvalidClauseError
from neoforge.infrastructure.neo4j.query_builder.clauses import (
    Clause,
    ClauseType,
    DeleteIdentifiers,
    DeleteLiteral,
    Match,
    OrderItem,
    RemoveLabels,
    RemoveProperties,
    ReturnItem,
    SetProperties,
    Unwind,
)
from neoforge.infrastructure.neo4j.query_builder.cypher import escape_if_needed, normalize_labels
from neoforge.infrastructure.neo4j.query_builder.literal import Literal
from neoforge.infrastructure.neo4j.query_builder.parameters import ParameterTable
from neoforge.infrastructure.neo4j.query_builder.patterns import (
    Multiple,
    NodePattern,
    Related,
    RenderContext,
    render_node,
    render_relationship,
)
from neoforge.infrastructure.neo4j.query_builder.where import Where, parameter_suffix

SORT_DIRECTIONS = frozenset({"ASC", "DESC"})


def _invalid(kind: ClauseType, message: str, value: Any = None) -> InvalidClauseError:
    return InvalidClauseError(
        message,
        details={
            "source": "rendering",
            "operation": "lower_clause",
            "clause": kind.name,
            "actual_value": repr(value),
        },
    )


def _merge_foreign_table(table: ParameterTable, foreign: ParameterTable) -> None:
    # A Where or subquery compiled against another table must carry its values over
    if foreign is not table:
        table.add(foreign.get())


def _render_pattern(pattern: Any, context: RenderContext, kind: ClauseType) -> tuple[str, list[Where]]:
    if isinstance(pattern, NodePattern):
        rendered = [render_node(pattern, context)]
        separator = ""
    elif isinstance(pattern, Related):
        rendered = []
        for index, element in enumerate(pattern.elements):
            render = render_relationship if index % 2 else render_node
            rendered.append(render(element, context))
        separator = ""
    elif isinstance(pattern, Multiple):
        rendered = [render_node(node, context) for node in pattern.nodes]
        separator = ", "
    else:
        raise _invalid(kind, f"Unsupported pattern for {kind.name}: {type(pattern).__name__}", pattern)

    return (
        separator.join(part.statement for part in rendered),
        [part.standalone_where for part in rendered if part.standalone_where is not None],
    )


def _append_where(statement: str, standalone: list[Where]) -> str:
    predicates = [text for where in standalone if (text := where.get_statement("text"))]
    if not predicates:
        return statement
    return f"{statement} WHERE {' AND '.join(predicates)}"


def lower_match(value: Any, context: RenderContext) -> str:
    if isinstance(value, str):
        return f"MATCH {value}"
    if not isinstance(value, Match):
        value = Match(value)
    keyword = "OPTIONAL MATCH" if value.optional else "MATCH"
    if isinstance(value.pattern, str):
        return f"{keyword} {value.pattern}"
    pattern, standalone = _render_pattern(value.pattern, context, ClauseType.MATCH)
    return _append_where(f"{keyword} {pattern}", standalone)


def _lower_create_or_merge(keyword: str, kind: ClauseType) -> Callable[[Any, RenderContext], str]:
    def lower(value: Any, context: RenderContext) -> str:
        if isinstance(value, str):
            return f"{keyword} {value}"
        pattern, standalone = _render_pattern(value, context, kind)
        if standalone:
            raise _invalid(kind, f"{keyword} patterns only accept equality predicates", value)
        return f"{keyword} {pattern}"

    return lower


def set_parts(payload: SetProperties, table: ParameterTable) -> list[str]:
    """Return ``identifier.key = $param`` assignments for ``payload``."""
    identifier = escape_if_needed(payload.identifier)
    parts = []
    for key, value in payload.properties.items():
        if isinstance(value, Literal):
            text = value.value
        else:
            text = f"${table.get_unique_name_and_add(parameter_suffix(key), value)}"
        parts.append(f"{identifier}.{escape_if_needed(key)} = {text}")
    return parts


def _lower_set(keyword: str, kind: ClauseType) -> Callable[[Any, RenderContext], str]:
    def lower(value: Any, context: RenderContext) -> str:
        if isinstance(value, str):
            return f"{keyword} {value}"
        if not isinstance(value, SetProperties):
            raise _invalid(kind, f"{keyword} expects SetProperties or a raw string", value)
        parts = set_parts(value, context.table)
        return f"{keyword} {', '.join(parts)}" if parts else ""

    return lower


def lower_delete(value: Any, context: RenderContext) -> str:
    if isinstance(value, str):
        return f"DELETE {value}"
    if isinstance(value, DeleteIdentifiers):
        if not value.identifiers:
            raise _invalid(ClauseType.DELETE, "DELETE needs at least one identifier", value)
        target = ", ".join(escape_if_needed(identifier) for identifier in value.identifiers)
    elif isinstance(value, DeleteLiteral):
        target = value.literal
    else:
        raise _invalid(ClauseType.DELETE, "DELETE expects DeleteIdentifiers, DeleteLiteral or a raw string", value)
    return f"{'DETACH ' if value.detach else ''}DELETE {target}"


def lower_remove(value: Any, context: RenderContext) -> str:
    if isinstance(value, str):
        return f"REMOVE {value}"
    if isinstance(value, RemoveProperties):
        identifier = escape_if_needed(value.identifier)
        targets = [f"{identifier}.{escape_if_needed(prop)}" for prop in value.properties]
    elif isinstance(value, RemoveLabels):
        targets = [f"{escape_if_needed(value.identifier)}:{normalize_labels(value.labels)}"] if value.labels else []
    else:
        raise _invalid(ClauseType.REMOVE, "REMOVE expects RemoveProperties, RemoveLabels or a raw string", value)
    if not targets:
        raise _invalid(ClauseType.REMOVE, "REMOVE needs at least one property or label", value)
    return f"REMOVE {', '.join(targets)}"


def _projection_item(item: str | ReturnItem, kind: ClauseType) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, ReturnItem):
        text = escape_if_needed(item.identifier)
        return f"{text}.{escape_if_needed(item.property)}" if item.property else text
    raise _invalid(kind, f"Unsupported {kind.name} item: {type(item).__name__}", item)


def _lower_projection(keyword: str, kind: ClauseType) -> Callable[[Any, RenderContext], str]:
    def lower(value: Any, context: RenderContext) -> str:
        if isinstance(value, str | ReturnItem):
            value = [value]
        if not isinstance(value, Sequence) or not value:
            raise _invalid(kind, f"{keyword} needs at least one item", value)
        return f"{keyword} {', '.join(_projection_item(item, kind) for item in value)}"

    return lower


def _order_item(item: Any) -> str:
    if isinstance(item, str):
        return item
    if isinstance(item, tuple) and len(item) == 2:
        expression, direction = item
    elif isinstance(item, OrderItem):
        expression = escape_if_needed(item.identifier)
        if item.property:
            expression = f"{expression}.{escape_if_needed(item.property)}"
        direction = item.direction
    else:
        raise _invalid(ClauseType.ORDER_BY, f"Unsupported ORDER BY item: {type(item).__name__}", item)

    if direction is None:
        return expression
    direction = str(direction).upper()
    if direction not in SORT_DIRECTIONS:
        raise _invalid(ClauseType.ORDER_BY, f"Sort direction must be ASC or DESC, got {direction!r}", item)
    return f"{expression} {direction}"


def lower_order_by(value: Any, context: RenderContext) -> str:
    if isinstance(value, str | OrderItem):
        value = [value]
    if not isinstance(value, Sequence) or not value:
        raise _invalid(ClauseType.ORDER_BY, "ORDER BY needs at least one item", value)
    return f"ORDER BY {', '.join(_order_item(item) for item in value)}"


def lower_unwind(value: Any, context: RenderContext) -> str:
    if isinstance(value, str):
        return f"UNWIND {value}"
    if not isinstance(value, Unwind):
        raise _invalid(ClauseType.UNWIND, "UNWIND expects Unwind or a raw string", value)
    return f"UNWIND {value.value} AS {escape_if_needed(value.alias)}"


def lower_for_each(value: Any, context: RenderContext) -> str:
    if not isinstance(value, str):
        raise _invalid(ClauseType.FOR_EACH, "FOREACH only accepts a raw string", value)
    return f"FOREACH {value}"


def _lower_pagination(keyword: str, kind: ClauseType) -> Callable[[Any, RenderContext], str]:
    suffix = keyword.lower()

    def lower(value: Any, context: RenderContext) -> str:
        if isinstance(value, str):
            return f"{keyword} {value}"
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise _invalid(kind, f"{keyword} expects a non-negative integer, got {value!r}", value)
        return f"{keyword} ${context.table.get_unique_name_and_add(suffix, value)}"

    return lower


def lower_where(value: Any, context: RenderContext) -> str:
    if isinstance(value, str):
        return f"WHERE {value}" if value.strip() else ""
    if isinstance(value, Where):
        _merge_foreign_table(context.table, value.table)
        where = value
    elif isinstance(value, Mapping):
        where = Where(value, context.table)
    else:
        raise _invalid(ClauseType.WHERE, "WHERE expects a Where, a predicate mapping or a raw string", value)
    statement = where.get_statement("text")
    return f"WHERE {statement}" if statement else ""


def lower_call(value: Any, context: RenderContext) -> str:
    if isinstance(value, str):
        statement = value
    elif hasattr(value, "get_statement") and hasattr(value, "get_parameter_table"):
        _merge_foreign_table(context.table, value.get_parameter_table())
        statement = value.get_statement()
    else:
        raise _invalid(ClauseType.CALL, "CALL expects a subquery builder or a raw string", value)
    return f"CALL {{\n{statement}\n}}"


def lower_raw(value: Any, context: RenderContext) -> str:
    if not isinstance(value, str):
        raise _invalid(ClauseType.RAW, "Raw clauses must be strings", value)
    return value


LOWERERS: dict[ClauseType, Callable[[Any, RenderContext], str]] = {
    ClauseType.RAW: lower_raw,
    ClauseType.MATCH: lower_match,
    ClauseType.CREATE: _lower_create_or_merge("CREATE", ClauseType.CREATE),
    ClauseType.MERGE: _lower_create_or_merge("MERGE", ClauseType.MERGE),
    ClauseType.SET: _lower_set("SET", ClauseType.SET),
    ClauseType.ON_CREATE_SET: _lower_set("ON CREATE SET", ClauseType.ON_CREATE_SET),
    ClauseType.ON_MATCH_SET: _lower_set("ON MATCH SET", ClauseType.ON_MATCH_SET),
    ClauseType.DELETE: lower_delete,
    ClauseType.REMOVE: lower_remove,
    ClauseType.RETURN: _lower_projection("RETURN", ClauseType.RETURN),
    ClauseType.WITH: _lower_projection("WITH", ClauseType.WITH),
    ClauseType.WHERE: lower_where,
    ClauseType.ORDER_BY: lower_order_by,
    ClauseType.SKIP: _lower_pagination("SKIP", ClauseType.SKIP),
    ClauseType.LIMIT: _lower_pagination("LIMIT", ClauseType.LIMIT),
    ClauseType.UNWIND: lower_unwind,
    ClauseType.FOR_EACH: lower_for_each,
    ClauseType.CALL: lower_call,
}


def lower(clause: Clause, context: RenderContext) -> str:
    """Lower one clause descriptor to its statement fragment."""
    if not isinstance(clause, Clause):
        raise InvalidClauseError(
            f"Expected a Clause, got {type(clause).__name__}",
            details={"source": "rendering", "operation": "lower"},
        )
    return LOWERERS[clause.kind](clause.value, context)


