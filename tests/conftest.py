"""Shared test fixtures for neoforge tests."""

from typing import Any

import pytest

from neoforge.infrastructure.neo4j.query_builder import ParameterTable


class FakeRunner:
    """QueryRunner that records every call and replays canned rows."""

    def __init__(self, rows: list[dict[str, Any]] | None = None) -> None:
        self.rows = rows or []
        self.calls: list[tuple[str, dict[str, Any], Any]] = []

    async def run(
        self,
        statement: str,
        parameters: dict[str, Any],
        session: Any = None,
    ) -> list[dict[str, Any]]:
        self.calls.append((statement, parameters, session))
        return self.rows


@pytest.fixture
def table() -> ParameterTable:
    return ParameterTable()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def make_runner():
    """Build a FakeRunner that returns the given rows."""

    def _make(rows: list[dict[str, Any]]) -> FakeRunner:
        return FakeRunner(rows)

    return _make
