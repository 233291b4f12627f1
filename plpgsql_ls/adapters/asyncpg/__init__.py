from plpgsql_ls.adapters.asyncpg.session import AsyncpgSession, AsyncpgSessionPool, handle_database_exceptions

__all__ = ("AsyncpgSession", "AsyncpgSessionPool", "handle_database_exceptions")
