"""Document analyses run against a live database."""

from typing import TYPE_CHECKING

from lsprotocol import types

from plpgsql_ls.analysis.static import FunctionInfo, TriggerInfo, query_file_static_analysis
from plpgsql_ls.analysis.syntax import SyntaxAnalysisResult, query_file_syntax_analysis
from plpgsql_ls.diagnostics import DiagnosticSeverity

if TYPE_CHECKING:
    from collections.abc import Sequence

    from plpgsql_ls.config import Settings
    from plpgsql_ls.driver import SessionPool

__all__ = (
    "FunctionInfo",
    "SyntaxAnalysisResult",
    "TriggerInfo",
    "query_file_static_analysis",
    "query_file_syntax_analysis",
    "validate_document",
)


async def validate_document(
    pool: "SessionPool",
    document: str,
    document_uri: str,
    settings: "Settings",
    *,
    function_infos: "Sequence[FunctionInfo]" = (),
    trigger_infos: "Sequence[TriggerInfo]" = (),
    is_complete: bool = True,
) -> "list[types.Diagnostic]":
    """Run the syntax analysis and, when it passes, the static analysis.

    Returns:
        Language Server Protocol diagnostics, syntax analysis results first.
    """
    errors, warnings = await query_file_syntax_analysis(
        pool, document, document_uri, settings, is_complete=is_complete
    )
    diagnostics = [error.to_lsp() for error in errors]
    diagnostics.extend(warning.to_lsp(DiagnosticSeverity.Warning) for warning in warnings)

    if not errors and (function_infos or trigger_infos):
        static_errors = await query_file_static_analysis(
            pool, document, document_uri, function_infos, trigger_infos, settings, is_complete=is_complete
        )
        diagnostics.extend(error.to_lsp() for error in static_errors)
    return diagnostics
