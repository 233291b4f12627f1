"""Static analysis of PL/pgSQL functions with the plpgsql_check extension.

The document is executed (after parameter sanitization and migration replay)
so its functions exist in the transaction, then every function and trigger
function found in it is checked. Rows returned by plpgsql_check carry a line
number relative to the function definition, which is mapped onto the document
through the definition's offset.
"""

from typing import TYPE_CHECKING, Any, Final, Optional

from plpgsql_ls.diagnostics import DiagnosticRow, QueryDiagnostic
from plpgsql_ls.driver import reset_transaction, validation_transaction
from plpgsql_ls.exceptions import DatabaseQueryError
from plpgsql_ls.migrations import MigrationReplayer
from plpgsql_ls.parameters import get_query_parameter_info, sanitize_statement
from plpgsql_ls.positions import get_text_all_range, map_error_position
from plpgsql_ls.splitter import neutralize_transaction_control
from plpgsql_ls.utils.logging import correlation_context, get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from plpgsql_ls.config import Settings
    from plpgsql_ls.driver import DatabaseSession, SessionPool

__all__ = (
    "EXTENSION_CHECK_QUERY",
    "FunctionInfo",
    "TriggerInfo",
    "query_file_static_analysis",
    "row_to_diagnostic_row",
)

logger = get_logger("analysis.static")

SAVEPOINT_NAME: Final[str] = "validated_syntax"

EXTENSION_CHECK_QUERY: Final[str] = """
    SELECT
      extname
    FROM
      pg_extension
    WHERE
      extname = 'plpgsql_check'
"""

_CHECK_COLUMNS: Final[str] = """
    SELECT
      (pcf).functionid::regprocedure AS procedure,
      (pcf).lineno AS lineno,
      (pcf).statement AS statement,
      (pcf).sqlstate AS sqlstate,
      (pcf).message AS message,
      (pcf).detail AS detail,
      (pcf).hint AS hint,
      (pcf).level AS level,
      (pcf)."position" AS position,
      (pcf).query AS query,
      (pcf).context AS context
    FROM
"""


def _check_function_name(schema: Optional[str]) -> str:
    if schema:
        return f'"{schema}".plpgsql_check_function_tb'
    return "plpgsql_check_function_tb"


def function_check_query(schema: Optional[str] = None) -> str:
    return f"{_CHECK_COLUMNS}      {_check_function_name(schema)}($1) AS pcf\n"


def trigger_check_query(schema: Optional[str] = None) -> str:
    return f"{_CHECK_COLUMNS}      {_check_function_name(schema)}($1, $2) AS pcf\n"


class FunctionInfo:
    """A function defined in the document.

    ``location`` is the offset of the definition in the document, when known.
    """

    __slots__ = ("function_name", "location")

    def __init__(self, function_name: str, location: Optional[int] = None) -> None:
        self.function_name = function_name
        self.location = location

    def __repr__(self) -> str:
        return f"{type(self).__name__}(function_name={self.function_name!r}, location={self.location!r})"


class TriggerInfo:
    """A trigger defined in the document, with the table it is attached to."""

    __slots__ = ("function_name", "relname", "stmt_location")

    def __init__(self, function_name: str, relname: str, stmt_location: Optional[int] = None) -> None:
        self.function_name = function_name
        self.relname = relname
        self.stmt_location = stmt_location

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(function_name={self.function_name!r}, relname={self.relname!r}, "
            f"stmt_location={self.stmt_location!r})"
        )


def row_to_diagnostic_row(row: "dict[str, Any]") -> DiagnosticRow:
    """Convert a ``plpgsql_check_function_tb`` row."""
    position = row.get("position")
    return DiagnosticRow(
        message=str(row.get("message") or ""),
        line=row.get("lineno") or None,
        position=int(position) if position not in (None, "") else None,
        level=str(row.get("level") or "error"),
    )


def _row_diagnostic(document: str, row: DiagnosticRow, location: Optional[int]) -> QueryDiagnostic:
    if location is None:
        range_ = get_text_all_range(document)
    else:
        # plpgsql_check line numbers are relative to the CREATE FUNCTION statement
        range_ = map_error_position(document, location, line=row.line or 1)
    return QueryDiagnostic(range_, row.message, level=row.level)


async def _check(
    session: "DatabaseSession",
    document: str,
    query: str,
    params: "Sequence[Any]",
    location: Optional[int],
) -> "list[QueryDiagnostic]":
    result = await session.query(query, params)
    return [_row_diagnostic(document, row_to_diagnostic_row(row), location) for row in result.rows]


async def query_file_static_analysis(
    pool: "SessionPool",
    document: str,
    document_uri: str,
    function_infos: "Sequence[FunctionInfo]",
    trigger_infos: "Sequence[TriggerInfo]",
    settings: "Settings",
    *,
    is_complete: bool = True,
) -> "list[QueryDiagnostic]":
    """Run plpgsql_check over the functions and triggers of ``document``.

    Args:
        pool: Session pool of the workspace database.
        document: Document text.
        document_uri: Document URI, used for migration replay and logging.
        function_infos: Functions defined in the document.
        trigger_infos: Triggers defined in the document.
        settings: Workspace settings.
        is_complete: Whether the document is fully loaded.

    Returns:
        One diagnostic per plpgsql_check row. Empty when the extension is missing
        or the document itself does not execute (syntax analysis reports that).
    """
    errors: "list[QueryDiagnostic]" = []
    text = neutralize_transaction_control(document)
    sanitized = sanitize_statement(text, get_query_parameter_info(text, settings))
    logger.info("fileText.length: %s", len(sanitized.text))

    with correlation_context(document_uri):
        try:
            async with validation_transaction(pool) as session:
                if settings.migrations_folder:
                    await MigrationReplayer(settings.migrations_folder).replay(session, document_uri)
                try:
                    if sanitized.parameter_count:
                        await session.query(sanitized.text, sanitized.null_arguments())
                    else:
                        await session.execute_script(sanitized.text)
                except DatabaseQueryError:
                    return []
                await session.execute_script(f"SAVEPOINT {SAVEPOINT_NAME}")

                extension_check = await session.query(EXTENSION_CHECK_QUERY)
                if extension_check.row_count == 0:
                    logger.warning("plpgsql_check is not installed in the database.")
                    return []

                try:
                    for function_info in function_infos:
                        errors.extend(
                            await _check(
                                session,
                                document,
                                function_check_query(settings.plpgsql_check_schema),
                                [function_info.function_name],
                                function_info.location,
                            )
                        )
                except DatabaseQueryError as error:
                    await reset_transaction(session, SAVEPOINT_NAME)
                    if is_complete:
                        logger.error("StaticAnalysisError (1): %s (%s)", error.message, document_uri)

                try:
                    for trigger_info in trigger_infos:
                        errors.extend(
                            await _check(
                                session,
                                document,
                                trigger_check_query(settings.plpgsql_check_schema),
                                [trigger_info.function_name, trigger_info.relname],
                                trigger_info.stmt_location,
                            )
                        )
                except DatabaseQueryError as error:
                    await reset_transaction(session, SAVEPOINT_NAME)
                    if is_complete:
                        logger.error("StaticAnalysisError (2): %s (%s)", error.message, document_uri)
        except DatabaseQueryError as error:
            if is_complete:
                logger.error("Validation session failed: %s (%s)", error.message, document_uri)

    return errors
