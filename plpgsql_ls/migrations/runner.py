"""Migration replay.

Before a statement is validated, the migrations of the workspace are executed in
the same transaction, so the statement is checked against the schema the
migrations produce rather than whatever the database currently holds.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Final, Optional, Union

from plpgsql_ls.driver import reset_transaction
from plpgsql_ls.exceptions import DatabaseQueryError, MigrationError
from plpgsql_ls.utils.logging import get_logger
from plpgsql_ls.utils.text import natural_sort_key

if TYPE_CHECKING:
    from plpgsql_ls.driver import DatabaseSession

__all__ = ("MIGRATION_SUFFIX", "MigrationReplayer")

logger = get_logger("migrations.runner")

MIGRATION_SUFFIX: Final[str] = ".up.sql"


class MigrationReplayer:
    """Replays ``*.up.sql`` files from one folder."""

    __slots__ = ("migrations_path", "suffix")

    def __init__(self, migrations_path: Union[str, Path], suffix: str = MIGRATION_SUFFIX) -> None:
        self.migrations_path = Path(migrations_path)
        self.suffix = suffix

    def get_migration_files(self) -> "list[Path]":
        """Get all migration files in natural filename order.

        Returns:
            Paths sorted so ``2_x.up.sql`` comes before ``10_x.up.sql``.
        """
        if not self.migrations_path.is_dir():
            logger.warning("Migrations folder %s does not exist", self.migrations_path)
            return []
        files = [path for path in self.migrations_path.iterdir() if path.is_file() and path.name.endswith(self.suffix)]
        return sorted(files, key=lambda path: natural_sort_key(path.name))

    @staticmethod
    def is_current_document(document_uri: str, file_path: Path) -> bool:
        """Whether ``document_uri`` points at ``file_path``."""
        return document_uri.endswith(file_path.as_posix())

    async def replay(self, session: "DatabaseSession", document_uri: str) -> "Optional[MigrationError]":
        """Execute pending migrations inside the session's transaction.

        Replay stops before the migration being edited, so a migration is
        validated against the schema of the migrations before it. A failing
        migration resets the transaction and stops replay; the failure is
        returned, not raised, because validation carries on without it.

        Args:
            session: Session with an open transaction.
            document_uri: URI of the document being validated.

        Returns:
            The failure that stopped replay, if any.
        """
        migration_files = self.get_migration_files()
        logger.info("Executing migration files: %s", [path.name for path in migration_files])

        for file_path in migration_files:
            if self.is_current_document(document_uri, file_path):
                logger.info("Stopping migration execution")
                return None
            try:
                migration = file_path.read_text(encoding="utf-8")
                await session.execute_script(migration)
            except (DatabaseQueryError, OSError, UnicodeDecodeError) as exc:
                error = MigrationError(file_path.name, str(exc))
                logger.error(str(error))
                await reset_transaction(session)
                return error
        return None
