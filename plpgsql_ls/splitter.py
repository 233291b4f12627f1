"""Document statement splitter.

Splits a document on a configurable separator pattern while keeping the exact
start offset of every piece, so positions reported against one statement can
be mapped back onto the document.
"""

import re
from typing import Final, Optional

from mypy_extensions import mypyc_attr

from plpgsql_ls.utils.logging import get_logger

__all__ = (
    "DuplicateStatementTracker",
    "Statement",
    "is_insert_statement",
    "neutralize_transaction_control",
    "split_statements",
)

logger = get_logger("splitter")

TRANSACTION_CONTROL_RE: Final["re.Pattern[str]"] = re.compile(
    r"^([\s]*(?:begin|commit|rollback)[\s]*;)", re.IGNORECASE | re.MULTILINE
)
INSERT_RE: Final["re.Pattern[str]"] = re.compile(r"^[\s]*insert\b", re.IGNORECASE | re.MULTILINE)
NEUTRALIZE_CHARACTER: Final[str] = "-"
_NOT_NEWLINE_RE: Final["re.Pattern[str]"] = re.compile(r"[^\n]")


class Statement:
    """A piece of the document and where it starts."""

    __slots__ = ("is_separator", "offset", "text")

    def __init__(self, text: str, offset: int, is_separator: bool = False) -> None:
        self.text = text
        self.offset = offset
        self.is_separator = is_separator

    def __repr__(self) -> str:
        return f"{type(self).__name__}(text={self.text!r}, offset={self.offset!r}, is_separator={self.is_separator!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        return (self.text, self.offset, self.is_separator) == (other.text, other.offset, other.is_separator)

    __hash__ = None  # type: ignore[assignment]

    @property
    def end(self) -> int:
        return self.offset + len(self.text)

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


def split_statements(document: str, separator_pattern: Optional[str] = None) -> "list[Statement]":
    """Split ``document`` into statements.

    The separator is split on with a capturing group, so separators are kept as
    their own entries (``is_separator=True``). Joining every entry's text gives
    back the document.

    Args:
        document: Full document text.
        separator_pattern: Regex separating statements, or None for a single statement.

    Returns:
        Statements in document order.
    """
    if not separator_pattern:
        return [Statement(document, 0)]

    separator_re = re.compile(f"({separator_pattern})")
    statements: "list[Statement]" = []
    offset = 0
    # re.split with one extra capture group alternates statement, separator, statement, ...
    pieces = separator_re.split(document)
    stride = separator_re.groups + 1
    for index in range(0, len(pieces), stride):
        text = pieces[index]
        statements.append(Statement(text, offset))
        offset += len(text)
        if index + 1 < len(pieces):
            separator = pieces[index + 1]
            statements.append(Statement(separator, offset, is_separator=True))
            offset += len(separator)
    return statements


def neutralize_transaction_control(text: str) -> str:
    """Blank out ``BEGIN;``, ``COMMIT;`` and ``ROLLBACK;`` lines.

    Each is overwritten with ``-`` of the same length, so the statement keeps
    every offset and line break but can no longer end the validation transaction.
    """
    return TRANSACTION_CONTROL_RE.sub(lambda found: _NOT_NEWLINE_RE.sub(NEUTRALIZE_CHARACTER, found.group(0)), text)


def is_insert_statement(text: str) -> bool:
    """Whether any line of ``text`` starts an INSERT statement."""
    return INSERT_RE.search(text) is not None


@mypyc_attr(allow_interpreted_subclasses=True)
class DuplicateStatementTracker:
    """Remembers statement texts seen during one validation pass."""

    __slots__ = ("_seen",)

    def __init__(self) -> None:
        self._seen: "set[str]" = set()

    def __len__(self) -> int:
        return len(self._seen)

    def is_duplicate(self, text: str) -> bool:
        """Record ``text``; return True if it was already seen."""
        key = text.strip()
        if key in self._seen:
            logger.debug("Duplicated statement %r", key)
            return True
        self._seen.add(key)
        return False
