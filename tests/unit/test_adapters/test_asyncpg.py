"""Unit tests for the asyncpg session adapter."""

from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg
import pytest

from plpgsql_ls.adapters.asyncpg import AsyncpgSession, AsyncpgSessionPool, handle_database_exceptions
from plpgsql_ls.config import Settings
from plpgsql_ls.driver import DatabaseSession, SessionPool
from plpgsql_ls.exceptions import DatabaseQueryError

pytestmark = pytest.mark.anyio


async def test_postgres_error_keeps_sqlstate_and_position() -> None:
    error = asyncpg.exceptions.PostgresSyntaxError('syntax error at or near "SELEC"')
    error.position = "5"

    with pytest.raises(DatabaseQueryError) as exc_info:
        async with handle_database_exceptions():
            raise error

    assert 'syntax error at or near "SELEC"' in exc_info.value.message
    assert exc_info.value.sqlstate == "42601"
    assert exc_info.value.position == 5
    assert exc_info.value.__cause__ is error


async def test_interface_error_has_no_position() -> None:
    with pytest.raises(DatabaseQueryError) as exc_info:
        async with handle_database_exceptions():
            raise asyncpg.InterfaceError("cannot perform operation: another operation is in progress")

    assert exc_info.value.position is None
    assert exc_info.value.sqlstate is None


async def test_connection_failure_is_normalized() -> None:
    with pytest.raises(DatabaseQueryError, match="Could not connect to PostgreSQL"):
        async with handle_database_exceptions():
            raise ConnectionRefusedError("refused")


async def test_session_query_returns_dict_rows() -> None:
    connection = MagicMock()
    connection.fetch = AsyncMock(return_value=[{"extname": "plpgsql_check"}])
    session = AsyncpgSession(connection)

    result = await session.query("SELECT $1, $2", [None, None])

    connection.fetch.assert_awaited_once_with("SELECT $1, $2", None, None)
    assert result.rows == [{"extname": "plpgsql_check"}]
    assert result.row_count == 1


async def test_session_execute_script_uses_simple_protocol() -> None:
    connection = MagicMock()
    connection.execute = AsyncMock(return_value="BEGIN")
    session = AsyncpgSession(connection)

    await session.execute_script("BEGIN")

    connection.execute.assert_awaited_once_with("BEGIN")
    assert isinstance(session, DatabaseSession)


async def test_pool_acquires_and_releases_connections() -> None:
    connection = MagicMock()
    pool = MagicMock()
    pool.acquire = AsyncMock(return_value=connection)
    pool.release = AsyncMock()
    session_pool = AsyncpgSessionPool(pool=pool)

    session = await session_pool.acquire()
    await session_pool.release(session)

    assert session.connection is connection
    pool.release.assert_awaited_once_with(connection)
    assert isinstance(session_pool, SessionPool)


async def test_pool_is_created_lazily_from_settings() -> None:
    pool = MagicMock()
    pool.acquire = AsyncMock(return_value=MagicMock())
    pool.close = AsyncMock()
    session_pool = AsyncpgSessionPool.from_settings(Settings(database="app"), max_size=2)

    with patch("plpgsql_ls.adapters.asyncpg.session.asyncpg.create_pool", AsyncMock(return_value=pool)) as create:
        await session_pool.acquire()
        await session_pool.acquire()
        await session_pool.close()

    create.assert_awaited_once_with(host="localhost", port=5432, database="app", max_size=2)
    pool.close.assert_awaited_once()
