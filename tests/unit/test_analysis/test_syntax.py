"""Unit tests for the query file syntax analysis."""

from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from plpgsql_ls.analysis import query_file_syntax_analysis
from plpgsql_ls.analysis.syntax import INSERT_NOT_ANALYZED_MESSAGE
from plpgsql_ls.config import Settings
from plpgsql_ls.exceptions import DatabaseQueryError, KeywordQueryParameterPatternsNotDefinedError
from plpgsql_ls.positions import Position, Range, get_text_all_range

pytestmark = pytest.mark.anyio

DOCUMENT_URI = "file:///work/queries/query.sql"
DIRECTIVE = "-- plpgsql-language-server:use-keyword-query-parameters"


def _range(line: int, start: int, end: int) -> Range:
    return Range(start=Position(line=line, character=start), end=Position(line=line, character=end))


async def test_valid_statement_runs_in_a_rolled_back_transaction(fake_pool: Any) -> None:
    errors, warnings = await query_file_syntax_analysis(fake_pool, "SELECT $1", DOCUMENT_URI, Settings())

    assert errors == []
    assert warnings == []
    assert fake_pool.session.executed == [("BEGIN", None), ("SELECT $1", [None]), ("ROLLBACK", None)]
    assert fake_pool.acquired == fake_pool.released == 1


async def test_statement_without_parameters_runs_as_script(fake_pool: Any) -> None:
    await query_file_syntax_analysis(fake_pool, "SELECT '$1'", DOCUMENT_URI, Settings())

    assert fake_pool.session.executed[1] == ("SELECT '$1'", None)


async def test_error_is_mapped_onto_its_statement_line(fake_pool: Any) -> None:
    document = "SELECT 1;\n  SELEC 2;"
    fake_pool.session.failures["SELEC 2"] = DatabaseQueryError(
        'syntax error at or near "SELEC"', sqlstate="42601", position=4
    )

    errors, warnings = await query_file_syntax_analysis(
        fake_pool, document, DOCUMENT_URI, Settings(statement_separator_pattern=";")
    )

    assert [error.message for error in errors] == ['syntax error at or near "SELEC"']
    assert errors[0].range == _range(1, 2, 10)
    assert warnings == []
    assert fake_pool.acquired == fake_pool.released == 2


async def test_error_without_position_covers_the_document(fake_pool: Any) -> None:
    document = "SELECT missing_function()"
    fake_pool.session.failures["missing_function"] = DatabaseQueryError("function does not exist")

    errors, _ = await query_file_syntax_analysis(fake_pool, document, DOCUMENT_URI, Settings())

    assert errors[0].range == get_text_all_range(document)


async def test_error_position_is_traced_through_rewritten_parameters(fake_pool: Any) -> None:
    """Positions reported against the rewritten text land on the right source line."""
    document = f"{DIRECTIVE} keywords=[user_id]\nSELECT user_id_val, user_id_val,\n  bad"
    fake_pool.session.failures["bad"] = lambda sql: DatabaseQueryError(
        'column "bad" does not exist', sqlstate="42703", position=sql.index("bad") + 1
    )
    settings = Settings(keyword_query_parameter_pattern="{keyword}_val")

    errors, _ = await query_file_syntax_analysis(fake_pool, document, DOCUMENT_URI, settings)

    sent, params = fake_pool.session.executed[1]
    assert sent.endswith("SELECT $1, $1,\n  bad")
    assert params == [None]
    assert errors[0].range == _range(2, 2, 5)


async def test_keyword_parameters_are_sent_as_null_arguments(fake_pool: Any) -> None:
    document = f"{DIRECTIVE} keywords=[user_id, name]\nSELECT user_id_val, name_val"
    settings = Settings(keyword_query_parameter_pattern="{keyword}_val")

    errors, _ = await query_file_syntax_analysis(fake_pool, document, DOCUMENT_URI, settings)

    assert errors == []
    assert fake_pool.session.executed[1] == (f"{DIRECTIVE} keywords=[user_id, name]\nSELECT $1, $2", [None, None])


async def test_directive_without_keyword_patterns_raises(fake_pool: Any) -> None:
    with pytest.raises(KeywordQueryParameterPatternsNotDefinedError):
        await query_file_syntax_analysis(fake_pool, f"{DIRECTIVE}\nSELECT 1", DOCUMENT_URI, Settings())


async def test_duplicated_statement_is_reported_once(fake_pool: Any) -> None:
    document = "SELECT 1;\nSELECT 1;"

    errors, _ = await query_file_syntax_analysis(
        fake_pool, document, DOCUMENT_URI, Settings(statement_separator_pattern=";")
    )

    assert [error.message for error in errors] == ["Duplicated statement 'SELECT 1'"]
    assert errors[0].range == _range(1, 0, 9)
    assert fake_pool.session.statements == ["BEGIN", "SELECT 1", "ROLLBACK"]


async def test_duplicates_are_not_tracked_without_separator(fake_pool: Any) -> None:
    errors, _ = await query_file_syntax_analysis(fake_pool, "SELECT 1;\nSELECT 1;", DOCUMENT_URI, Settings())

    assert errors == []


async def test_insert_statement_is_skipped_with_a_warning(fake_pool: Any) -> None:
    errors, warnings = await query_file_syntax_analysis(
        fake_pool, "INSERT INTO t VALUES ($1)", DOCUMENT_URI, Settings()
    )

    assert errors == []
    assert [warning.message for warning in warnings] == [INSERT_NOT_ANALYZED_MESSAGE]
    assert warnings[0].level == "warning"
    assert fake_pool.acquired == 0


async def test_transaction_control_is_not_sent(fake_pool: Any) -> None:
    await query_file_syntax_analysis(fake_pool, "BEGIN;\nSELECT 1;\nCOMMIT;", DOCUMENT_URI, Settings())

    assert fake_pool.session.executed[1] == ("------\nSELECT 1;\n-------", None)


async def test_blank_statements_and_separators_are_skipped(fake_pool: Any) -> None:
    await query_file_syntax_analysis(
        fake_pool, "SELECT 1;\n\n;SELECT 2;", DOCUMENT_URI, Settings(statement_separator_pattern=";")
    )

    assert fake_pool.session.statements == ["BEGIN", "SELECT 1", "ROLLBACK", "BEGIN", "SELECT 2", "ROLLBACK"]


async def test_session_failure_is_a_document_diagnostic(fake_pool: Any) -> None:
    fake_pool.session.failures["BEGIN"] = DatabaseQueryError("Could not connect to PostgreSQL: refused")

    errors, _ = await query_file_syntax_analysis(fake_pool, "SELECT 1", DOCUMENT_URI, Settings())

    assert [error.message for error in errors] == ["Could not connect to PostgreSQL: refused"]
    assert errors[0].range == get_text_all_range("SELECT 1")
    assert fake_pool.released == 1


async def test_migrations_are_replayed_first(fake_pool: Any, tmp_path: Path) -> None:
    (tmp_path / "001_init.up.sql").write_text("CREATE TABLE users (id int);")

    errors, _ = await query_file_syntax_analysis(
        fake_pool, "SELECT id FROM users", DOCUMENT_URI, Settings(migrations_folder=str(tmp_path))
    )

    assert errors == []
    assert fake_pool.session.statements == ["BEGIN", "CREATE TABLE users (id int);", "SELECT id FROM users", "ROLLBACK"]


async def test_incomplete_document_still_reports_errors(fake_pool: Any) -> None:
    fake_pool.session.failures["SELEC"] = DatabaseQueryError("syntax error", position=1)

    errors, _ = await query_file_syntax_analysis(fake_pool, "SELEC", DOCUMENT_URI, Settings(), is_complete=False)

    assert [error.message for error in errors] == ["syntax error"]


async def test_incomplete_document_session_failure_is_not_logged(fake_pool: Any) -> None:
    fake_pool.session.failures["BEGIN"] = DatabaseQueryError("Could not connect to PostgreSQL: refused")

    with patch("plpgsql_ls.analysis.syntax.logger") as logger:
        errors, _ = await query_file_syntax_analysis(fake_pool, "SELECT 1", DOCUMENT_URI, Settings(), is_complete=False)

    assert [error.message for error in errors] == ["Could not connect to PostgreSQL: refused"]
    logger.error.assert_not_called()


async def test_complete_document_session_failure_is_logged(fake_pool: Any) -> None:
    fake_pool.session.failures["BEGIN"] = DatabaseQueryError("Could not connect to PostgreSQL: refused")

    with patch("plpgsql_ls.analysis.syntax.logger") as logger:
        await query_file_syntax_analysis(fake_pool, "SELECT 1", DOCUMENT_URI, Settings())

    logger.error.assert_called_once()


async def test_comment_marker_inside_literal_keeps_later_parameters(fake_pool: Any) -> None:
    document = "SELECT * FROM notes WHERE note = '--' AND id = $1"

    await query_file_syntax_analysis(fake_pool, document, DOCUMENT_URI, Settings())

    assert fake_pool.session.executed[1] == (document, [None])
