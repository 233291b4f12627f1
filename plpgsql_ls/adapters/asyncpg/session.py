"""asyncpg implementation of the database session protocol."""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Optional, Union

import asyncpg

from plpgsql_ls.driver import QueryResult
from plpgsql_ls.exceptions import DatabaseQueryError
from plpgsql_ls.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Sequence

    from asyncpg import Connection, Record
    from asyncpg.pool import Pool, PoolConnectionProxy

    from plpgsql_ls.config import Settings

__all__ = ("AsyncpgSession", "AsyncpgSessionPool", "handle_database_exceptions")

logger = get_logger("adapters.asyncpg")


def _error_position(error: BaseException) -> Optional[int]:
    position = getattr(error, "position", None)
    if position in (None, ""):
        return None
    try:
        return int(position)
    except (TypeError, ValueError):
        return None


@asynccontextmanager
async def handle_database_exceptions() -> "AsyncGenerator[None, None]":
    """Normalize asyncpg errors into :class:`DatabaseQueryError`."""
    try:
        yield
    except asyncpg.PostgresError as e:
        raise DatabaseQueryError(
            getattr(e, "message", None) or str(e),
            sqlstate=getattr(e, "sqlstate", None),
            position=_error_position(e),
        ) from e
    except asyncpg.InterfaceError as e:
        raise DatabaseQueryError(str(e)) from e
    except OSError as e:
        msg = f"Could not connect to PostgreSQL: {e}"
        raise DatabaseQueryError(msg) from e


class AsyncpgSession:
    """One asyncpg connection."""

    __slots__ = ("connection",)

    def __init__(self, connection: "Union[Connection[Record], PoolConnectionProxy[Record]]") -> None:
        self.connection = connection

    async def query(self, sql: str, params: "Optional[Sequence[Any]]" = None) -> QueryResult:
        async with handle_database_exceptions():
            records = await self.connection.fetch(sql, *(params or ()))
        return QueryResult([dict(record) for record in records])

    async def execute_script(self, sql: str) -> None:
        # Without arguments asyncpg uses the simple query protocol, which accepts several statements.
        async with handle_database_exceptions():
            await self.connection.execute(sql)


class AsyncpgSessionPool:
    """Lazily created asyncpg pool handing out :class:`AsyncpgSession` objects."""

    __slots__ = ("_pool", "pool_config")

    def __init__(self, pool_config: "Optional[dict[str, Any]]" = None, pool: "Optional[Pool[Record]]" = None) -> None:
        self.pool_config: "dict[str, Any]" = dict(pool_config) if pool_config else {}
        self._pool = pool

    @classmethod
    def from_settings(cls, settings: "Settings", **extra: Any) -> "AsyncpgSessionPool":
        return cls({**settings.pool_config(), **extra})

    async def _get_pool(self) -> "Pool[Record]":
        if self._pool is None:
            logger.info("Creating asyncpg pool for %s:%s", self.pool_config.get("host"), self.pool_config.get("port"))
            self._pool = await asyncpg.create_pool(**self.pool_config)
        return self._pool  # type: ignore[return-value]

    async def acquire(self) -> AsyncpgSession:
        async with handle_database_exceptions():
            pool = await self._get_pool()
            connection = await pool.acquire()
        return AsyncpgSession(connection)

    async def release(self, session: AsyncpgSession) -> None:
        pool = await self._get_pool()
        await pool.release(session.connection)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
