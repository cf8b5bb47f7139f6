"""Unparameterized Cypher expressions."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Literal:
    """A caller-trusted Cypher expression inserted verbatim into a statement.

    Wherever a value would normally be bound as a parameter (predicates,
    inline properties, SET assignments), a Literal is written out as-is
    instead, e.g. ``Literal("datetime()")`` or ``Literal("other.name")``.
    Never build one from user input.
    """

    value: str

    def __str__(self) -> str:
        return self.value
