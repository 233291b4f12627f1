"""Masking of placeholder-shaped text inside string literals.

``WHERE email = '$1-like-text'`` contains text that looks like a ``$1``
placeholder but is part of a literal. Before sanitizing, every such
occurrence is overwritten with underscores of the same length, and parameters
that only ever appeared inside literals are pruned.

Quote balance is tracked by a small scanner rather than a lookbehind regex:
``''`` escapes toggle twice and so stay inside the literal, and quotes inside
``--`` or ``/* */`` comments are ignored.
"""

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING, Final, Optional

from mypy_extensions import mypyc_attr

from plpgsql_ls.parameters.types import (
    DefaultParameters,
    KeywordParameters,
    ParameterPatternFamily,
    PositionalParameters,
    assert_never,
)

if TYPE_CHECKING:
    from plpgsql_ls.parameters.types import ParameterConvention

__all__ = (
    "LiteralScanner",
    "mask_parameters",
    "mask_patterns_in_literals",
    "prune_parameters",
    "strip_sql_comments",
)

MASK_CHARACTER: Final[str] = "_"


@mypyc_attr(allow_interpreted_subclasses=True)
class LiteralScanner:
    """Find string literal contents and comments in SQL text."""

    __slots__ = ("_comments", "_literals", "_text")

    def __init__(self, text: str) -> None:
        self._text = text
        self._literals: "Optional[list[tuple[int, int]]]" = None
        self._comments: "Optional[list[tuple[int, int]]]" = None

    def spans(self) -> "list[tuple[int, int]]":
        """Return ``(start, end)`` offsets of every literal's contents, quotes excluded.

        An unterminated literal runs to the end of the text.
        """
        if self._literals is None:
            self._scan()
        return self._literals  # type: ignore[return-value]

    def comments(self) -> "list[tuple[int, int]]":
        """Return ``(start, end)`` offsets of every comment.

        A line comment ends before its newline. ``--`` right after ``:`` is not
        a comment, so ``::`` casts keep the text that follows them.
        """
        if self._comments is None:
            self._scan()
        return self._comments  # type: ignore[return-value]

    def _scan(self) -> None:
        text = self._text
        length = len(text)
        literals: "list[tuple[int, int]]" = []
        comments: "list[tuple[int, int]]" = []
        index = 0
        while index < length:
            char = text[index]
            if char == "-" and text.startswith("--", index) and (index == 0 or text[index - 1] != ":"):
                newline = text.find("\n", index)
                end = length if newline == -1 else newline
                comments.append((index, end))
                index = end
            elif char == "/" and text.startswith("/*", index):
                close = text.find("*/", index + 2)
                end = length if close == -1 else close + 2
                comments.append((index, end))
                index = end
            elif char == "'":
                start = index + 1
                end = start
                while True:
                    end = text.find("'", end)
                    if end == -1:
                        end = length
                        break
                    if text.startswith("''", end):
                        end += 2
                        continue
                    break
                literals.append((start, end))
                index = end + 1
            else:
                index += 1
        self._literals = literals
        self._comments = comments


def strip_sql_comments(statement: str) -> str:
    """Remove block comments and ``--`` line comments.

    Comment markers inside string literals are part of the literal and stay.
    """
    comments = LiteralScanner(statement).comments()
    if not comments:
        return statement
    pieces: "list[str]" = []
    last = 0
    for start, end in comments:
        pieces.append(statement[last:start])
        last = end
    pieces.append(statement[last:])
    return "".join(pieces)


def mask_patterns_in_literals(text: str, patterns: "Iterable[re.Pattern[str]]") -> str:
    """Overwrite pattern matches found inside string literals with underscores.

    The result has the same length as ``text``, so offsets into it are valid
    offsets into the original.
    """
    spans = LiteralScanner(text).spans()
    if not spans:
        return text
    chars = list(text)
    compiled = list(patterns)
    for start, end in spans:
        content = text[start:end]
        for pattern in compiled:
            for found in pattern.finditer(content):
                if found.end() == found.start():
                    continue
                chars[start + found.start() : start + found.end()] = MASK_CHARACTER * (found.end() - found.start())
    return "".join(chars)


def prune_parameters(parameters: "list[str]", masked_text: str) -> "list[str]":
    """Keep only the parameters still present after masking, comments aside."""
    uncommented = strip_sql_comments(masked_text)
    return [parameter for parameter in parameters if parameter in uncommented]


def mask_parameters(
    statement: str,
    convention: "ParameterConvention",
) -> "tuple[str, ParameterConvention]":
    """Mask literal occurrences of the convention's patterns and prune its parameters.

    The convention passed in is left untouched; a pruned copy is returned.

    Args:
        statement: Statement text.
        convention: Resolved parameter convention.

    Returns:
        The masked text and the pruned convention.
    """
    if isinstance(convention, PositionalParameters):
        return statement, convention
    if isinstance(convention, DefaultParameters):
        masked = mask_patterns_in_literals(statement, (re.compile(pattern) for pattern in convention.patterns))
        return masked, DefaultParameters(convention.patterns, prune_parameters(convention.parameters, masked))
    if isinstance(convention, KeywordParameters):
        family = convention.family
        masked = mask_patterns_in_literals(statement, (ParameterPatternFamily.literal_regex(t) for t in family))
        return masked, KeywordParameters(family, prune_parameters(convention.parameters, masked))
    assert_never(convention)
