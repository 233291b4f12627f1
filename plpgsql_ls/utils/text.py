"""General text utility functions."""

import re
from functools import lru_cache
from typing import Union

__all__ = (
    "first_line",
    "get_non_space_character",
    "natural_sort_key",
    "split_lines",
)

_NATURAL_SORT_SPLIT_RE = re.compile(r"(\d+)")
_NON_SPACE_RE = re.compile(r"\S")


@lru_cache(maxsize=1000)
def natural_sort_key(value: str) -> "tuple[Union[int, str], ...]":
    """Build a numeric-aware sort key.

    Runs of digits compare as integers, so ``"2_b"`` sorts before ``"10_a"``.
    Text runs compare case-insensitively.

    Args:
        value: The string to build the key for.

    Returns:
        A tuple usable as a ``sorted`` key.
    """
    parts = _NATURAL_SORT_SPLIT_RE.split(value)
    # re.split with a capture group alternates text, digits, text, ...
    return tuple(int(part) if index % 2 else part.casefold() for index, part in enumerate(parts))


def get_non_space_character(line: str) -> int:
    """Return the column of the first non-whitespace character of ``line``.

    A line made only of whitespace returns 0.
    """
    found = _NON_SPACE_RE.search(line)
    if found is None:
        return 0
    return found.start()


def first_line(text: str) -> str:
    """Return the first line of ``text`` without its line ending."""
    return text.split("\n", 1)[0].rstrip("\r")


def split_lines(text: str) -> "list[str]":
    """Split on ``\\n`` keeping a trailing empty line, as editors count lines."""
    return text.split("\n")
