"""Fake database sessions for unit tests."""

from __future__ import annotations

from typing import Any, Callable, Optional, Union

import pytest

from plpgsql_ls.driver import QueryResult
from plpgsql_ls.exceptions import DatabaseQueryError

Failure = Union[DatabaseQueryError, Callable[[str], DatabaseQueryError]]


class FakeSession:
    """Records every statement and fails on configured SQL fragments."""

    def __init__(self) -> None:
        self.executed: list[tuple[str, Optional[list[Any]]]] = []
        self.failures: dict[str, Failure] = {}
        self.results: dict[str, QueryResult] = {}

    def _maybe_fail(self, sql: str) -> None:
        for fragment, failure in self.failures.items():
            if fragment in sql:
                raise failure if isinstance(failure, DatabaseQueryError) else failure(sql)

    async def query(self, sql: str, params: Any = None) -> QueryResult:
        self.executed.append((sql, list(params) if params is not None else None))
        self._maybe_fail(sql)
        for fragment, result in self.results.items():
            if fragment in sql:
                return result
        return QueryResult()

    async def execute_script(self, sql: str) -> None:
        self.executed.append((sql, None))
        self._maybe_fail(sql)

    @property
    def statements(self) -> list[str]:
        return [sql for sql, _ in self.executed]


class FakePool:
    """Hands out a single :class:`FakeSession`."""

    def __init__(self, session: FakeSession) -> None:
        self.session = session
        self.acquired = 0
        self.released = 0

    async def acquire(self) -> FakeSession:
        self.acquired += 1
        return self.session

    async def release(self, session: FakeSession) -> None:
        assert session is self.session
        self.released += 1


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def fake_pool(fake_session: FakeSession) -> FakePool:
    return FakePool(fake_session)
