"""Parameter table for Cypher queries.

This module provides the ParameterTable, the single owner of every bound
value in one statement. It guarantees that no two values share a name,
generating suffixed names on collision.
"""

import copy
import itertools
from collections.abc import Container, Iterable, Iterator, Mapping
from string import ascii_lowercase
from typing import Any

from neoforge.core.errors import DuplicateParameterError, GenerationExhaustedError
from neoforge.infrastructure.neo4j.query_builder.literal import Literal

MAX_NAME_ATTEMPTS = 10_000
SUFFIX_WIDTH = 4


def _suffix_sequence() -> Iterator[str]:
    """Yield ``aaaa, aaab, ... zzzz``."""
    for letters in itertools.product(ascii_lowercase, repeat=SUFFIX_WIDTH):
        yield "".join(letters)


class ParameterTable:
    """Ordered, collision-free mapping of parameter names to values.

    Not safe for concurrent mutation: name generation and insertion are two
    separate steps. Use one table per statement, or ``clone()`` for an
    isolated namespace.

    Example:
        ```python
        table = ParameterTable()
        table.get_unique_name_and_add("name", "Alice")  # "name"
        table.get_unique_name_and_add("name", "Bob")    # "name__aaaa"
        ```
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._params: dict[str, Any] = {}
        if initial:
            self.add(initial)

    @classmethod
    def acquire(cls, table: "ParameterTable | None" = None) -> "ParameterTable":
        """Return ``table`` itself, or a fresh table when none is given."""
        return table if table is not None else cls()

    def get(self) -> dict[str, Any]:
        """Return a shallow snapshot of the current parameters."""
        return dict(self._params)

    def add(self, entries: Mapping[str, Any]) -> None:
        """Add parameters, deep-copying each value.

        Args:
            entries: Names and values to add

        Raises:
            DuplicateParameterError: If any name is already present
        """
        for name, value in entries.items():
            if name in self._params:
                raise DuplicateParameterError(
                    f"Parameter {name!r} is already present in the table",
                    details={"source": "parameters", "operation": "add", "parameter": name},
                )
            self._params[name] = copy.deepcopy(value)

    def remove(self, names: str | Iterable[str]) -> None:
        """Remove parameters by name; missing names are ignored."""
        if isinstance(names, str):
            names = [names]
        for name in names:
            self._params.pop(name, None)

    def get_unique_name(self, suffix: str, reserved: Container[str] = ()) -> str:
        """Return a name based on ``suffix`` that is not in the table yet.

        ``suffix`` itself is returned when free, otherwise ``suffix__aaaa``,
        ``suffix__aaab`` and so on. The sequence restarts on every call, so
        uniqueness only holds against the current contents (plus ``reserved``).

        Args:
            suffix: Preferred name
            reserved: Extra names to treat as taken, e.g. generated identifiers

        Raises:
            GenerationExhaustedError: If no free name is found within the attempt bound
        """
        if suffix not in self._params and suffix not in reserved:
            return suffix

        for candidate in itertools.islice(_suffix_sequence(), MAX_NAME_ATTEMPTS):
            name = f"{suffix}__{candidate}"
            if name not in self._params and name not in reserved:
                return name

        raise GenerationExhaustedError(
            f"Could not generate a unique parameter name for {suffix!r} "
            f"after {MAX_NAME_ATTEMPTS} attempts",
            details={"source": "parameters", "operation": "get_unique_name", "parameter": suffix},
        )

    def get_unique_name_and_add(self, suffix: str, value: Any) -> str:
        """Generate a unique name for ``suffix``, store ``value`` under it and return the name."""
        name = self.get_unique_name(suffix)
        self.add({name: value})
        return name

    def get_unique_name_and_add_with_literal(self, suffix: str, value: Any) -> "str | Literal":
        """Like get_unique_name_and_add, but a Literal is returned untouched and never stored."""
        if isinstance(value, Literal):
            return value
        return self.get_unique_name_and_add(suffix, value)

    def clone(self) -> "ParameterTable":
        """Deep-copy every entry into a new, independent table."""
        return ParameterTable(self._params)

    def __contains__(self, name: object) -> bool:
        return name in self._params

    def __len__(self) -> int:
        return len(self._params)

    def __repr__(self) -> str:
        return f"ParameterTable({self._params!r})"
