"""Identifier and label escaping for Cypher queries.

Anything interpolated into statement text (as opposed to bound as a
parameter) goes through one of these helpers.
"""

import re
from collections.abc import Iterable
from typing import Literal

from neoforge.core.errors import InvalidIdentifierError

SAFE_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def is_safe_identifier(name: str) -> bool:
    """Return True when ``name`` can appear bare in a statement."""
    return isinstance(name, str) and SAFE_IDENTIFIER.match(name) is not None


def assert_valid_identifier(name: str, context: str = "identifier") -> str:
    """Validate a caller-supplied identifier.

    Args:
        name: The identifier to check
        context: What the identifier is used for, included in the error message

    Returns:
        The identifier, unchanged

    Raises:
        InvalidIdentifierError: If ``name`` is not a bare-safe Cypher identifier
    """
    if not is_safe_identifier(name):
        raise InvalidIdentifierError(
            f"Invalid {context}: {name!r}. Identifiers must match {SAFE_IDENTIFIER.pattern}",
            details={"source": "cypher", "operation": "assert_valid_identifier", "identifier": str(name)},
        )
    return name


def backtick(name: str) -> str:
    return "`" + str(name).replace("`", "``") + "`"


def escape_if_needed(name: str) -> str:
    """Backtick-quote ``name`` only if it is not a bare-safe identifier.

    Example:
        ```python
        escape_if_needed("age")        # age
        escape_if_needed("first name") # `first name`
        ```
    """
    if is_safe_identifier(name):
        return name
    return backtick(name)


def normalize_labels(labels: str | Iterable[str], operation: Literal["and", "or"] = "and") -> str:
    """Backtick every label and join them.

    Args:
        labels: A single label or several
        operation: ``and`` joins with ``:``, ``or`` joins with ``|``

    Returns:
        Label text without the leading colon, e.g. ```User`:`Admin``
    """
    if isinstance(labels, str):
        labels = [labels]
    return ("|" if operation == "or" else ":").join(backtick(label) for label in labels)


def identifier_with_label(identifier: str | None, label: str | None) -> str:
    """Join an (already escaped) identifier and label text as ``identifier:label``."""
    return f"{identifier or ''}{':' + label if label else ''}"
