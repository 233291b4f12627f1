"""Workspace settings consumed by the validation engine.

The editor sends settings as a flat JSON object with camelCase keys. Pattern
settings accept either a single string or a list of strings.
"""

import re
from collections.abc import Mapping, Sequence
from typing import Any, Final, Optional, Union

from plpgsql_ls.exceptions import ImproperConfigurationError

__all__ = (
    "DEFAULT_QUERY_PARAMETER_PATTERN",
    "Settings",
    "settings_from_dict",
)

DEFAULT_QUERY_PARAMETER_PATTERN: Final[str] = r"\$[1-9][0-9]*"
KEYWORD_PLACEHOLDER: Final[str] = "{keyword}"

_CAMEL_CASE_KEYS: Final[dict[str, str]] = {
    "defaultSchema": "default_schema",
    "queryParameterPattern": "query_parameter_pattern",
    "keywordQueryParameterPattern": "keyword_query_parameter_pattern",
    "statementSeparatorPattern": "statement_separator_pattern",
    "migrationsFolder": "migrations_folder",
    "plpgsqlCheckSchema": "plpgsql_check_schema",
}

PatternSetting = Union[str, Sequence[str]]


def _normalize_patterns(name: str, value: "Optional[PatternSetting]") -> "Optional[tuple[str, ...]]":
    if value is None:
        return None
    patterns = (value,) if isinstance(value, str) else tuple(value)
    for pattern in patterns:
        if not isinstance(pattern, str) or not pattern:
            msg = f"{name} must be a non-empty string or a list of non-empty strings, got {pattern!r}"
            raise ImproperConfigurationError(msg)
        try:
            re.compile(pattern.replace(KEYWORD_PLACEHOLDER, "x"))
        except re.error as exc:
            msg = f"{name} contains an invalid regular expression {pattern!r}: {exc}"
            raise ImproperConfigurationError(msg) from exc
    return patterns


class Settings:
    """Runtime settings for one workspace."""

    __slots__ = (
        "database",
        "default_schema",
        "host",
        "keyword_query_parameter_pattern",
        "migrations_folder",
        "password",
        "plpgsql_check_schema",
        "port",
        "query_parameter_pattern",
        "statement_separator_pattern",
        "user",
    )

    def __init__(
        self,
        *,
        host: str = "localhost",
        port: int = 5432,
        database: Optional[str] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        default_schema: str = "public",
        query_parameter_pattern: "Optional[PatternSetting]" = DEFAULT_QUERY_PARAMETER_PATTERN,
        keyword_query_parameter_pattern: "Optional[PatternSetting]" = None,
        statement_separator_pattern: Optional[str] = None,
        migrations_folder: Optional[str] = None,
        plpgsql_check_schema: Optional[str] = None,
    ) -> None:
        self.host = host
        self.port = int(port)
        self.database = database
        self.user = user
        self.password = password
        self.default_schema = default_schema
        self.query_parameter_pattern = _normalize_patterns("queryParameterPattern", query_parameter_pattern) or ()
        self.keyword_query_parameter_pattern = _normalize_patterns(
            "keywordQueryParameterPattern", keyword_query_parameter_pattern
        )
        if statement_separator_pattern is not None:
            try:
                re.compile(statement_separator_pattern)
            except re.error as exc:
                msg = f"statementSeparatorPattern is not a valid regular expression: {exc}"
                raise ImproperConfigurationError(msg) from exc
        self.statement_separator_pattern = statement_separator_pattern or None
        self.migrations_folder = migrations_folder or None
        self.plpgsql_check_schema = plpgsql_check_schema or None

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={getattr(self, name)!r}" for name in self.__slots__ if name != "password")
        return f"{type(self).__name__}({fields})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return False
        return all(getattr(self, name) == getattr(other, name) for name in self.__slots__)

    __hash__ = None  # type: ignore[assignment]

    def pool_config(self) -> "dict[str, Any]":
        """Get pool configuration as plain dict for asyncpg.

        Returns:
            Dictionary with connection parameters, filtering out None values.
        """
        config: "dict[str, Any]" = {
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "user": self.user,
            "password": self.password,
        }
        return {k: v for k, v in config.items() if v is not None}


def settings_from_dict(data: "Mapping[str, Any]") -> Settings:
    """Build :class:`Settings` from the editor's configuration object.

    Both camelCase and snake_case keys are accepted; unknown keys are ignored.

    Raises:
        ImproperConfigurationError: If a value has the wrong type or is not a valid pattern.

    Returns:
        The validated settings.
    """
    kwargs: "dict[str, Any]" = {}
    for key, value in data.items():
        name = _CAMEL_CASE_KEYS.get(key, key)
        if name in Settings.__slots__:
            kwargs[name] = value
    try:
        return Settings(**kwargs)
    except (TypeError, ValueError) as exc:
        msg = f"Invalid configuration values: {exc}"
        raise ImproperConfigurationError(msg) from exc
