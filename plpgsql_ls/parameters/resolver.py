"""Parameter pattern resolution.

Decides which parameter convention a statement uses:

1. a ``plpgsql-language-server:use-keyword-query-parameters`` directive on the
   first line selects keyword parameters;
2. otherwise the configured default patterns apply;
3. with no default pattern configured, native ``$n`` placeholders are
   recognized as positional parameters.
"""

import re
from typing import TYPE_CHECKING, Final, Optional

from plpgsql_ls.exceptions import KeywordQueryParameterPatternsNotDefinedError
from plpgsql_ls.parameters.masking import mask_patterns_in_literals, strip_sql_comments
from plpgsql_ls.parameters.types import (
    DefaultParameters,
    KeywordParameters,
    ParameterPatternFamily,
    PositionalParameters,
    dedupe,
)
from plpgsql_ls.utils.logging import get_logger
from plpgsql_ls.utils.text import first_line as get_first_line

if TYPE_CHECKING:
    from plpgsql_ls.config import Settings
    from plpgsql_ls.parameters.types import ParameterConvention

__all__ = (
    "get_default_query_parameter_info",
    "get_keyword_query_parameter_info",
    "get_positional_query_parameter_info",
    "get_query_parameter_info",
)

logger = get_logger("parameters.resolver")

_KEYWORDS_CLAUSE: Final[str] = (
    r"( +keywords=\[ *([A-Za-z_][A-Za-z0-9_]*)?((, *([A-Za-z_][A-Za-z0-9_]*))*),? *\])?"
)
KEYWORD_DIRECTIVE_PATTERNS: Final["tuple[re.Pattern[str], ...]"] = (
    re.compile(r"^ *-- +plpgsql-language-server:use-keyword-query-parameters" + _KEYWORDS_CLAUSE + r" *$"),
    re.compile(r"^ */\* +plpgsql-language-server:use-keyword-query-parameters" + _KEYWORDS_CLAUSE + r" +\*/$"),
)

POSITIONAL_PARAMETER_RE: Final["re.Pattern[str]"] = re.compile(r"\$([1-9][0-9]*)")


def _find_all(pattern: "re.Pattern[str]", statement: str) -> "list[str]":
    return dedupe([found.group(0) for found in pattern.finditer(statement)])


def get_keyword_query_parameter_info(
    statement: str,
    first_line: str,
    keyword_query_parameter_patterns: "Optional[tuple[str, ...]]",
) -> Optional[KeywordParameters]:
    """Resolve keyword parameters from a directive comment.

    Args:
        statement: Statement text to scan in "auto" mode.
        first_line: Line that may carry the directive.
        keyword_query_parameter_patterns: Configured ``{keyword}`` templates.

    Raises:
        KeywordQueryParameterPatternsNotDefinedError: The directive is present but
            no keyword pattern is configured.

    Returns:
        The keyword convention, or None when the line has no directive.
    """
    for pattern in KEYWORD_DIRECTIVE_PATTERNS:
        found = pattern.match(first_line)
        if found is None:
            continue

        if keyword_query_parameter_patterns is None:
            raise KeywordQueryParameterPatternsNotDefinedError

        family = ParameterPatternFamily(keyword_query_parameter_patterns)
        keyword_parameters: "list[str]" = []
        head_word = found.group(2)
        tail_words = found.group(3) or ""

        if head_word is not None:
            words = [head_word, *(word.strip() for word in tail_words.split(","))]
            for word in dedupe(words):
                keyword_parameters.extend(family.expand(template, word) for template in family)
        else:
            # auto calculation.
            for template in family:
                keyword_parameters.extend(_find_all(family.detection_regex(template), statement))

        logger.debug("Resolved keyword parameters %s", keyword_parameters)
        return KeywordParameters(family, keyword_parameters)

    return None


def get_default_query_parameter_info(
    statement: str,
    query_parameter_patterns: "tuple[str, ...]",
) -> Optional[DefaultParameters]:
    """Collect placeholders matching the configured default patterns.

    Returns:
        The default convention, or None when no default pattern is configured.
    """
    if not query_parameter_patterns:
        return None
    parameters: "list[str]" = []
    for pattern in query_parameter_patterns:
        parameters.extend(_find_all(re.compile(pattern), statement))
    return DefaultParameters(query_parameter_patterns, parameters)


def get_positional_query_parameter_info(statement: str) -> Optional[PositionalParameters]:
    """Recognize native ``$n`` placeholders.

    The parameter count is the highest index used, since PostgreSQL expects an
    argument for every index up to it. Markers inside string literals are not
    parameters. Comments are expected to be stripped already.
    """
    masked = mask_patterns_in_literals(statement, (POSITIONAL_PARAMETER_RE,))
    indexes = [int(found.group(1)) for found in POSITIONAL_PARAMETER_RE.finditer(masked)]
    if not indexes:
        return None
    return PositionalParameters(max(indexes))


def get_query_parameter_info(
    statement: str,
    settings: "Settings",
    first_line: Optional[str] = None,
) -> "Optional[ParameterConvention]":
    """Resolve the parameter convention of one statement.

    Comments are stripped before scanning, so placeholders inside comments are
    never counted. The directive is read from ``first_line``, which defaults to
    the first line of the unstripped statement.

    Args:
        statement: Statement text.
        settings: Workspace settings.
        first_line: Line that may carry a keyword directive.

    Returns:
        The resolved convention or None.
    """
    if first_line is None:
        first_line = get_first_line(statement)
    uncommented = strip_sql_comments(statement)

    keyword_info = get_keyword_query_parameter_info(
        uncommented, first_line, settings.keyword_query_parameter_pattern
    )
    if keyword_info is not None:
        return keyword_info

    default_info = get_default_query_parameter_info(uncommented, settings.query_parameter_pattern)
    if default_info is not None:
        return default_info

    return get_positional_query_parameter_info(uncommented)
