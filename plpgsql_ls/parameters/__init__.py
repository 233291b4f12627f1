"""Query parameter handling.

Resolves which parameter convention a statement uses and rewrites its
placeholders into native positional parameters the database can execute.
"""

from plpgsql_ls.parameters.masking import (
    LiteralScanner,
    mask_parameters,
    mask_patterns_in_literals,
    prune_parameters,
    strip_sql_comments,
)
from plpgsql_ls.parameters.resolver import (
    get_default_query_parameter_info,
    get_keyword_query_parameter_info,
    get_positional_query_parameter_info,
    get_query_parameter_info,
)
from plpgsql_ls.parameters.sanitizer import SanitizedStatement, make_positional_parameter, sanitize_statement
from plpgsql_ls.parameters.types import (
    DefaultParameters,
    KeywordParameters,
    ParameterConvention,
    ParameterPatternFamily,
    PositionalParameters,
    assert_never,
)

__all__ = (
    "DefaultParameters",
    "KeywordParameters",
    "LiteralScanner",
    "ParameterConvention",
    "ParameterPatternFamily",
    "PositionalParameters",
    "SanitizedStatement",
    "assert_never",
    "get_default_query_parameter_info",
    "get_keyword_query_parameter_info",
    "get_positional_query_parameter_info",
    "get_query_parameter_info",
    "make_positional_parameter",
    "mask_parameters",
    "mask_patterns_in_literals",
    "prune_parameters",
    "sanitize_statement",
    "strip_sql_comments",
)
