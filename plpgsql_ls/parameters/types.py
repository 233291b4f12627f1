"""Parameter convention types.

A statement uses exactly one parameter convention. The convention is a closed
sum type; code that branches on it ends with :func:`assert_never` so an
unhandled variant fails loudly instead of silently skipping substitution.
"""

import re
from collections.abc import Iterator
from typing import Final, NoReturn, Optional, Union

from typing_extensions import TypeAlias

from plpgsql_ls.exceptions import UnknownParameterConventionError

__all__ = (
    "IDENTIFIER_PATTERN",
    "KEYWORD_PLACEHOLDER",
    "DefaultParameters",
    "KeywordParameters",
    "ParameterConvention",
    "ParameterPatternFamily",
    "PositionalParameters",
    "assert_never",
    "dedupe",
)

KEYWORD_PLACEHOLDER: Final[str] = "{keyword}"
IDENTIFIER_PATTERN: Final[str] = "[A-Za-z_][A-Za-z0-9_]*"
# Used inside string literals, where the keyword may be any non-quote text.
LITERAL_KEYWORD_PATTERN: Final[str] = "[^']*?"


def dedupe(values: "list[str]") -> "list[str]":
    """Drop duplicates and empty strings, keeping first-seen order."""
    return [value for value in dict.fromkeys(values) if value]


class ParameterPatternFamily:
    """Ordered templates with a ``{keyword}`` substitution point.

    ``"{keyword}_val"`` detects ``user_id_val`` when scanning, and expands to
    ``user_id_val`` for the keyword ``user_id``.
    """

    __slots__ = ("templates",)

    def __init__(self, templates: "tuple[str, ...]") -> None:
        self.templates = tuple(templates)

    def __iter__(self) -> "Iterator[str]":
        return iter(self.templates)

    def __len__(self) -> int:
        return len(self.templates)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        return self.templates == other.templates

    def __hash__(self) -> int:
        return hash(self.templates)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(templates={self.templates!r})"

    @staticmethod
    def expand(template: str, keyword: str) -> str:
        """Substitute a concrete keyword into ``template``."""
        return template.replace(KEYWORD_PLACEHOLDER, keyword, 1)

    @staticmethod
    def detection_regex(template: str) -> "re.Pattern[str]":
        """Regex matching any placeholder ``template`` can produce."""
        return re.compile(template.replace(KEYWORD_PLACEHOLDER, IDENTIFIER_PATTERN, 1))

    @staticmethod
    def literal_regex(template: str) -> "re.Pattern[str]":
        """Regex matching placeholder-shaped text as it may appear inside a string literal."""
        return re.compile(template.replace(KEYWORD_PLACEHOLDER, LITERAL_KEYWORD_PATTERN, 1))


class PositionalParameters:
    """The statement already uses native ``$n`` placeholders."""

    __slots__ = ("parameter_count",)

    def __init__(self, parameter_count: int = 0) -> None:
        self.parameter_count = parameter_count

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        return self.parameter_count == other.parameter_count

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(parameter_count={self.parameter_count!r})"


class DefaultParameters:
    """Placeholders found with the configured default patterns."""

    __slots__ = ("parameters", "patterns")

    def __init__(self, patterns: "tuple[str, ...]", parameters: "list[str]") -> None:
        self.patterns = tuple(patterns)
        self.parameters = dedupe(parameters)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        return self.patterns == other.patterns and self.parameters == other.parameters

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(patterns={self.patterns!r}, parameters={self.parameters!r})"


class KeywordParameters:
    """Named placeholders resolved from a directive comment."""

    __slots__ = ("family", "parameters")

    def __init__(self, family: ParameterPatternFamily, parameters: "list[str]") -> None:
        self.family = family
        self.parameters = dedupe(parameters)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        return self.family == other.family and self.parameters == other.parameters

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(family={self.family!r}, parameters={self.parameters!r})"


ParameterConvention: TypeAlias = Union[PositionalParameters, DefaultParameters, KeywordParameters]


def assert_never(value: object, message: Optional[str] = None) -> NoReturn:
    """Fail on a parameter convention variant that no branch handled.

    Raises:
        UnknownParameterConventionError: Always.
    """
    if message is None:
        message = f"{value!r} is an unknown parameter convention."
    raise UnknownParameterConventionError(message)
