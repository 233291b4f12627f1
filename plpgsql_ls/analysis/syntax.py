"""Syntax analysis of a query file.

Each statement of the document is sent to the database with null arguments in a
transaction that is always rolled back; rejected statements become diagnostics
mapped back onto the document.
"""

from typing import TYPE_CHECKING, Optional

from plpgsql_ls.diagnostics import QueryDiagnostic
from plpgsql_ls.driver import validation_transaction
from plpgsql_ls.exceptions import DatabaseQueryError
from plpgsql_ls.migrations import MigrationReplayer
from plpgsql_ls.parameters import get_query_parameter_info, sanitize_statement
from plpgsql_ls.positions import get_statement_range, get_text_all_range, map_error_position
from plpgsql_ls.splitter import (
    DuplicateStatementTracker,
    is_insert_statement,
    neutralize_transaction_control,
    split_statements,
)
from plpgsql_ls.utils.logging import correlation_context, get_logger
from plpgsql_ls.utils.text import first_line as get_first_line

if TYPE_CHECKING:
    from collections.abc import Iterator

    from plpgsql_ls.config import Settings
    from plpgsql_ls.driver import DatabaseSession, SessionPool
    from plpgsql_ls.parameters import SanitizedStatement
    from plpgsql_ls.positions import Range

__all__ = ("SyntaxAnalysisResult", "query_file_syntax_analysis")

logger = get_logger("analysis.syntax")

INSERT_NOT_ANALYZED_MESSAGE = "INSERT statements currently not analyzed"


class SyntaxAnalysisResult:
    """Errors and warnings of one syntax analysis."""

    __slots__ = ("errors", "warnings")

    def __init__(
        self,
        errors: "Optional[list[QueryDiagnostic]]" = None,
        warnings: "Optional[list[QueryDiagnostic]]" = None,
    ) -> None:
        self.errors = errors or []
        self.warnings = warnings or []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(errors={self.errors!r}, warnings={self.warnings!r})"

    def __iter__(self) -> "Iterator[list[QueryDiagnostic]]":
        # Allows ``errors, warnings = await query_file_syntax_analysis(...)``.
        yield self.errors
        yield self.warnings


def _error_range(
    document: str,
    statement_offset: int,
    sanitized: "SanitizedStatement",
    error: DatabaseQueryError,
) -> "Range":
    if error.position is None:
        return get_text_all_range(document)
    # The position refers to the sanitized text; trace it back through the marker rewrites.
    position = sanitized.source_offset(error.position - 1) + 1
    return map_error_position(document, statement_offset, position=position)


async def _execute(session: "DatabaseSession", sanitized: "SanitizedStatement") -> None:
    if sanitized.parameter_count:
        await session.query(sanitized.text, sanitized.null_arguments())
    else:
        await session.execute_script(sanitized.text)


async def query_file_syntax_analysis(
    pool: "SessionPool",
    document: str,
    document_uri: str,
    settings: "Settings",
    *,
    is_complete: bool = True,
) -> SyntaxAnalysisResult:
    """Validate every statement of ``document`` against the database.

    Args:
        pool: Session pool of the workspace database.
        document: Document text.
        document_uri: Document URI, used for migration replay and logging.
        settings: Workspace settings.
        is_complete: Whether the document is fully loaded. Failures of a document
            still being typed are expected and are not logged.

    Raises:
        KeywordQueryParameterPatternsNotDefinedError: A keyword directive is used
            without keyword parameter patterns.

    Returns:
        The errors and warnings, in document order.
    """
    result = SyntaxAnalysisResult()
    separator_pattern = settings.statement_separator_pattern
    tracker = DuplicateStatementTracker() if separator_pattern else None
    replayer = MigrationReplayer(settings.migrations_folder) if settings.migrations_folder else None
    first_line = get_first_line(document)

    with correlation_context(document_uri):
        for statement in split_statements(document, separator_pattern):
            if statement.is_separator or statement.is_blank:
                continue

            # do not execute the current file's transaction control (e.g. migrations)
            text = neutralize_transaction_control(statement.text)
            convention = get_query_parameter_info(text, settings, first_line=first_line)

            if tracker is not None and tracker.is_duplicate(text):
                result.errors.append(
                    QueryDiagnostic(
                        get_statement_range(document, statement.offset),
                        f"Duplicated statement '{text.strip()}'",
                    )
                )
                continue

            sanitized = sanitize_statement(text, convention)

            # would need column types and defaults; null arguments would violate constraints
            if is_insert_statement(sanitized.text):
                result.warnings.append(
                    QueryDiagnostic(
                        get_statement_range(document, statement.offset),
                        INSERT_NOT_ANALYZED_MESSAGE,
                        level="warning",
                    )
                )
                continue

            try:
                async with validation_transaction(pool) as session:
                    if replayer is not None:
                        await replayer.replay(session, document_uri)
                    try:
                        await _execute(session, sanitized)
                    except DatabaseQueryError as error:
                        if is_complete:
                            logger.error(
                                "SyntaxError %s: %s (%s)", error.sqlstate or "unknown", error.message, document_uri
                            )
                        result.errors.append(
                            QueryDiagnostic(_error_range(document, statement.offset, sanitized, error), error.message)
                        )
            except DatabaseQueryError as error:
                # BEGIN, ROLLBACK or the connection itself failed.
                if is_complete:
                    logger.error("Validation session failed: %s (%s)", error.message, document_uri)
                result.errors.append(QueryDiagnostic(get_text_all_range(document), error.message))

    return result
