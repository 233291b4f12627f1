"""Rewriting of resolved parameters into positional ``$n`` placeholders."""

import re
from typing import TYPE_CHECKING, Optional

from plpgsql_ls.parameters.masking import mask_parameters, strip_sql_comments
from plpgsql_ls.parameters.resolver import get_positional_query_parameter_info
from plpgsql_ls.parameters.types import DefaultParameters, KeywordParameters, PositionalParameters, assert_never

if TYPE_CHECKING:
    from plpgsql_ls.parameters.types import ParameterConvention

__all__ = (
    "SanitizedStatement",
    "make_positional_parameter",
    "sanitize_statement",
)


def make_positional_parameter(index: int) -> str:
    """Positional marker for the 0-based parameter ``index``."""
    return f"${index + 1}"


class SanitizedStatement:
    """A statement whose parameters were rewritten to ``$1..$N``.

    ``replacements`` records ``(start, end, source_start, source_end)`` for every
    rewritten occurrence, so positions reported against :attr:`text` can be
    traced back to the unsanitized statement.
    """

    __slots__ = ("parameter_count", "replacements", "text")

    def __init__(
        self,
        text: str,
        parameter_count: int,
        replacements: "Optional[list[tuple[int, int, int, int]]]" = None,
    ) -> None:
        self.text = text
        self.parameter_count = parameter_count
        self.replacements = replacements or []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(text={self.text!r}, parameter_count={self.parameter_count!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        return self.text == other.text and self.parameter_count == other.parameter_count

    __hash__ = None  # type: ignore[assignment]

    def null_arguments(self) -> "list[None]":
        """Positional arguments for executing :attr:`text`."""
        return [None] * self.parameter_count

    def source_offset(self, offset: int) -> int:
        """Map a 0-based offset in :attr:`text` onto the unsanitized statement.

        An offset inside a positional marker maps to the start of the
        placeholder it replaced.
        """
        shift = 0
        for start, end, source_start, source_end in self.replacements:
            if offset < start:
                break
            if offset < end:
                return source_start
            shift = source_end - end
        return offset + shift


def _rewrite(statement: str, masked: str, parameters: "list[str]") -> SanitizedStatement:
    if not parameters:
        return SanitizedStatement(statement, 0)

    # Longest first, so "$10" is never read as "$1" followed by "0".
    pattern = re.compile("|".join(re.escape(p) for p in sorted(parameters, key=len, reverse=True)))
    matches = [
        found for found in pattern.finditer(masked) if statement[found.start() : found.end()] == found.group(0)
    ]
    # A parameter swallowed by a longer one is never sent, so it gets no index.
    matched = {found.group(0) for found in matches}
    indexes = {parameter: index for index, parameter in enumerate(p for p in parameters if p in matched)}

    pieces: "list[str]" = []
    replacements: "list[tuple[int, int, int, int]]" = []
    last = 0
    length = 0
    for found in matches:
        source_start, source_end = found.span()
        pieces.append(statement[last:source_start])
        length += source_start - last
        marker = make_positional_parameter(indexes[found.group(0)])
        replacements.append((length, length + len(marker), source_start, source_end))
        pieces.append(marker)
        length += len(marker)
        last = source_end
    pieces.append(statement[last:])
    return SanitizedStatement("".join(pieces), len(indexes), replacements)


def sanitize_statement(
    statement: str,
    convention: "Optional[ParameterConvention]",
) -> SanitizedStatement:
    """Rewrite every parameter occurrence into a positional marker.

    Parameters are numbered in first-seen order; repeats of a parameter share its
    marker. Occurrences inside string literals are left alone, and parameters
    that only occur there are not counted. When no parameter of the convention
    is left, native ``$n`` markers already in the statement are counted instead.

    Args:
        statement: Statement text.
        convention: The statement's resolved convention, or None.

    Returns:
        The rewritten statement and its parameter count.
    """
    if convention is None:
        return SanitizedStatement(statement, 0)
    if isinstance(convention, PositionalParameters):
        return SanitizedStatement(statement, convention.parameter_count)
    if isinstance(convention, (DefaultParameters, KeywordParameters)):
        masked, pruned = mask_parameters(statement, convention)
        if not pruned.parameters:  # type: ignore[union-attr]
            # Native markers, such as the output of an earlier pass, still need arguments.
            positional = get_positional_query_parameter_info(strip_sql_comments(statement))
            if positional is not None:
                return SanitizedStatement(statement, positional.parameter_count)
        return _rewrite(statement, masked, pruned.parameters)  # type: ignore[union-attr]
    assert_never(convention)
