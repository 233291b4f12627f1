"""plpgsql-ls: validate SQL documents against PostgreSQL and map errors back onto them."""

from plpgsql_ls import analysis, config, diagnostics, driver, exceptions, migrations, parameters, positions, splitter
from plpgsql_ls.__metadata__ import __version__
from plpgsql_ls.analysis import (
    FunctionInfo,
    TriggerInfo,
    query_file_static_analysis,
    query_file_syntax_analysis,
    validate_document,
)
from plpgsql_ls.config import Settings, settings_from_dict
from plpgsql_ls.diagnostics import DiagnosticRow, QueryDiagnostic
from plpgsql_ls.exceptions import (
    DatabaseQueryError,
    ImproperConfigurationError,
    KeywordQueryParameterPatternsNotDefinedError,
    PlpgsqlLSError,
)

__all__ = (
    "DatabaseQueryError",
    "DiagnosticRow",
    "FunctionInfo",
    "ImproperConfigurationError",
    "KeywordQueryParameterPatternsNotDefinedError",
    "PlpgsqlLSError",
    "QueryDiagnostic",
    "Settings",
    "TriggerInfo",
    "__version__",
    "analysis",
    "config",
    "diagnostics",
    "driver",
    "exceptions",
    "migrations",
    "parameters",
    "positions",
    "query_file_static_analysis",
    "query_file_syntax_analysis",
    "settings_from_dict",
    "splitter",
    "validate_document",
)
