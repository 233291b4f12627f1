"""Replay of workspace migrations before validation."""

from plpgsql_ls.migrations.runner import MIGRATION_SUFFIX, MigrationReplayer

__all__ = ("MIGRATION_SUFFIX", "MigrationReplayer")
