"""Diagnostic records produced by the analyses."""

from typing import Final, Optional

from lsprotocol import types
from lsprotocol.types import DiagnosticSeverity

__all__ = (
    "DIAGNOSTIC_SOURCE",
    "DiagnosticRow",
    "DiagnosticSeverity",
    "QueryDiagnostic",
    "severity_for_level",
)

DIAGNOSTIC_SOURCE: Final[str] = "plpgsql-ls"


_SEVERITY_BY_LEVEL: Final["dict[str, DiagnosticSeverity]"] = {
    "error": DiagnosticSeverity.Error,
    "warning": DiagnosticSeverity.Warning,
    "warning extra": DiagnosticSeverity.Warning,
    "security": DiagnosticSeverity.Warning,
    "performance": DiagnosticSeverity.Information,
    "info": DiagnosticSeverity.Information,
    "notice": DiagnosticSeverity.Information,
}


def severity_for_level(level: Optional[str]) -> DiagnosticSeverity:
    """Map a validator level such as ``"warning extra"`` to an LSP severity.

    Unknown levels are reported as errors.
    """
    if level is None:
        return DiagnosticSeverity.Error
    return _SEVERITY_BY_LEVEL.get(level.strip().lower(), DiagnosticSeverity.Error)


class DiagnosticRow:
    """An error reported by the external validator.

    ``line`` is 1-based and relative to the checked statement or function;
    ``position`` is PostgreSQL's 1-based character position within the sent text.
    """

    __slots__ = ("level", "line", "message", "position")

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        position: Optional[int] = None,
        level: str = "error",
    ) -> None:
        self.message = message
        self.line = line
        self.position = position
        self.level = level

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, line={self.line!r}, "
            f"position={self.position!r}, level={self.level!r})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        return (self.message, self.line, self.position, self.level) == (
            other.message,
            other.line,
            other.position,
            other.level,
        )

    __hash__ = None  # type: ignore[assignment]


class QueryDiagnostic:
    """A message attached to a range of the analyzed document."""

    __slots__ = ("level", "message", "range")

    def __init__(self, range: types.Range, message: str, level: Optional[str] = None) -> None:  # noqa: A002
        self.range = range
        self.message = message
        self.level = level

    def __repr__(self) -> str:
        return f"{type(self).__name__}(range={self.range!r}, message={self.message!r}, level={self.level!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        return (self.range, self.message, self.level) == (other.range, other.message, other.level)

    __hash__ = None  # type: ignore[assignment]

    def to_lsp(self, default_severity: DiagnosticSeverity = DiagnosticSeverity.Error) -> types.Diagnostic:
        """Convert to a Language Server Protocol ``Diagnostic`` object.

        ``level``, when set, decides the severity; otherwise ``default_severity`` is used.
        """
        severity = default_severity if self.level is None else severity_for_level(self.level)
        return types.Diagnostic(
            range=self.range,
            message=self.message,
            severity=severity,
            source=DIAGNOSTIC_SOURCE,
        )
