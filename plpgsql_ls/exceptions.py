from typing import Any, Optional

__all__ = (
    "DatabaseQueryError",
    "ImproperConfigurationError",
    "KeywordQueryParameterPatternsNotDefinedError",
    "MigrationError",
    "PlpgsqlLSError",
    "PositionMappingError",
    "UnknownParameterConventionError",
)


class PlpgsqlLSError(Exception):
    """Base exception class from which all plpgsql-ls exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``PlpgsqlLSError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class ImproperConfigurationError(PlpgsqlLSError):
    """Improper Configuration error.

    Raised when a settings value cannot be used, e.g. a parameter pattern that is
    not a valid regular expression.
    """


class KeywordQueryParameterPatternsNotDefinedError(ImproperConfigurationError):
    """A keyword parameter directive was used without keyword parameter patterns."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "'plpgsqlLanguageServer.keywordQueryParameterPattern' does not set in the settings."
        super().__init__(message)


class UnknownParameterConventionError(PlpgsqlLSError):
    """Raised when a parameter convention variant is not handled."""


class DatabaseQueryError(PlpgsqlLSError):
    """A statement was rejected by the database.

    ``position`` is the 1-based character position reported by PostgreSQL, relative
    to the statement that was sent.
    """

    message: str
    sqlstate: Optional[str]
    position: Optional[int]

    def __init__(self, message: str, sqlstate: Optional[str] = None, position: Optional[int] = None) -> None:
        super().__init__(detail=message)
        self.message = message
        self.sqlstate = sqlstate
        self.position = position


class MigrationError(PlpgsqlLSError):
    """A migration file could not be replayed."""

    file_name: str

    def __init__(self, file_name: str, message: str) -> None:
        super().__init__(detail=f"Stopping migration execution at {file_name}: {message}")
        self.file_name = file_name


class PositionMappingError(PlpgsqlLSError):
    """A validator position could not be mapped onto the source document."""
