"""Database session protocol and the scoped validation transaction.

The analyses only need a tiny surface from the database: run one statement
with positional arguments, run a raw script, and get connections from a pool.
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Sequence

__all__ = (
    "DatabaseSession",
    "QueryResult",
    "SessionPool",
    "reset_transaction",
    "validation_transaction",
)


class QueryResult:
    """Rows returned by a statement."""

    __slots__ = ("row_count", "rows")

    def __init__(self, rows: "Optional[list[dict[str, Any]]]" = None, row_count: Optional[int] = None) -> None:
        self.rows = rows or []
        self.row_count = len(self.rows) if row_count is None else row_count

    def __repr__(self) -> str:
        return f"{type(self).__name__}(rows={self.rows!r}, row_count={self.row_count!r})"


@runtime_checkable
class DatabaseSession(Protocol):
    """A single database connection."""

    async def query(self, sql: str, params: "Optional[Sequence[Any]]" = None) -> QueryResult:
        """Run one statement with positional arguments.

        Raises:
            DatabaseQueryError: If the database rejects the statement.
        """
        ...

    async def execute_script(self, sql: str) -> None:
        """Run raw SQL that may hold several statements.

        Raises:
            DatabaseQueryError: If the database rejects the script.
        """
        ...


@runtime_checkable
class SessionPool(Protocol):
    """Hands out sessions."""

    async def acquire(self) -> DatabaseSession: ...

    async def release(self, session: DatabaseSession) -> None: ...


async def reset_transaction(session: DatabaseSession, savepoint: Optional[str] = None) -> None:
    """Recover a failed transaction.

    With a ``savepoint`` the work done before it is kept; otherwise the
    transaction is rolled back and a new one is opened.
    """
    if savepoint is not None:
        await session.execute_script(f"ROLLBACK TO SAVEPOINT {savepoint}")
        return
    await session.execute_script("ROLLBACK")
    await session.execute_script("BEGIN")


@asynccontextmanager
async def validation_transaction(pool: SessionPool) -> "AsyncGenerator[DatabaseSession, None]":
    """Acquire a session and run the block inside a transaction that is always rolled back.

    The session is released on every exit path, including when the rollback
    itself fails.

    Yields:
        A session with an open transaction.
    """
    session = await pool.acquire()
    try:
        await session.execute_script("BEGIN")
        try:
            yield session
        finally:
            await session.execute_script("ROLLBACK")
    finally:
        await pool.release(session)
