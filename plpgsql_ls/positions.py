"""Mapping of validator-reported positions onto the source document.

PostgreSQL reports errors against the statement that was sent to it. These
helpers turn such a position into an editor range in the original document.
Mapping is best effort: any inconsistency degrades to the whole-document range,
so a diagnostic is never dropped because its position could not be computed.
"""

from typing import Optional

from lsprotocol.types import Position, Range

from plpgsql_ls.exceptions import PositionMappingError
from plpgsql_ls.utils.logging import get_logger
from plpgsql_ls.utils.text import get_non_space_character, split_lines

__all__ = (
    "Position",
    "Range",
    "get_line_range",
    "get_range",
    "get_statement_range",
    "get_text_all_range",
    "map_error_position",
)

logger = get_logger("positions")


def get_text_all_range(document: str) -> Range:
    """Range covering the whole document."""
    lines = split_lines(document)
    return Range(
        start=Position(line=0, character=0),
        end=Position(line=len(lines) - 1, character=len(lines[-1])),
    )


def get_line_range(lines: "list[str]", line: int) -> Range:
    """Range from the first non-space character of ``line`` to its end.

    Raises:
        PositionMappingError: If ``line`` does not exist.
    """
    if line < 0 or line >= len(lines):
        msg = f"line {line} is outside of a document with {len(lines)} lines"
        raise PositionMappingError(msg)
    text = lines[line]
    return Range(
        start=Position(line=line, character=get_non_space_character(text)),
        end=Position(line=line, character=len(text)),
    )


def get_range(document: str, offset: int) -> Range:
    """Widen the character before ``offset`` to the non-space span of its line.

    PostgreSQL positions are 1-based, so ``statement_offset + position`` is the
    offset just past the offending character.

    Raises:
        PositionMappingError: If ``offset`` is outside ``[0, len(document)]``.
    """
    if offset < 0 or offset > len(document):
        msg = f"offset {offset} is outside of a document of length {len(document)}"
        raise PositionMappingError(msg)
    return get_line_range(split_lines(document), document.count("\n", 0, offset))


def map_error_position(
    document: str,
    statement_offset: int,
    position: Optional[int] = None,
    line: Optional[int] = None,
) -> Range:
    """Map a statement-relative error location onto ``document``.

    Args:
        document: Original document text.
        statement_offset: Offset of the statement within ``document``.
        position: Character position reported against the statement, if any.
        line: 1-based statement-relative line reported by the validator, if any.

    Returns:
        The best range that can be computed, the whole document at worst.
    """
    if position is None and line is None:
        return get_text_all_range(document)
    try:
        if position is not None:
            return get_range(document, statement_offset + position)
        lines = split_lines(document)
        first_line = document.count("\n", 0, statement_offset)
        return get_line_range(lines, first_line + line - 1)  # type: ignore[operator]
    except (PositionMappingError, IndexError, TypeError, ValueError) as exc:
        logger.debug("Falling back to the whole document range: %s", exc)
        return get_text_all_range(document)


def get_statement_range(document: str, statement_offset: int) -> Range:
    """Range of the line where the statement starting at ``statement_offset`` begins.

    Leading whitespace of the statement is skipped, so a statement that starts
    right after a separator is reported on the line holding its first word.
    """
    try:
        start = statement_offset
        while start < len(document) and document[start].isspace():
            start += 1
        return get_line_range(split_lines(document), document.count("\n", 0, start))
    except PositionMappingError as exc:
        logger.debug("Falling back to the whole document range: %s", exc)
        return get_text_all_range(document)
