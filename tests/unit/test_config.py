"""Unit tests for workspace settings."""

import pytest

from plpgsql_ls.config import DEFAULT_QUERY_PARAMETER_PATTERN, Settings, settings_from_dict
from plpgsql_ls.exceptions import ImproperConfigurationError


def test_defaults() -> None:
    settings = Settings()

    assert settings.host == "localhost"
    assert settings.port == 5432
    assert settings.default_schema == "public"
    assert settings.query_parameter_pattern == (DEFAULT_QUERY_PARAMETER_PATTERN,)
    assert settings.keyword_query_parameter_pattern is None
    assert settings.statement_separator_pattern is None
    assert settings.migrations_folder is None


def test_pattern_settings_accept_a_list() -> None:
    settings = Settings(query_parameter_pattern=[":[a-z]+", "@[a-z]+"], keyword_query_parameter_pattern="@{keyword}")

    assert settings.query_parameter_pattern == (":[a-z]+", "@[a-z]+")
    assert settings.keyword_query_parameter_pattern == ("@{keyword}",)


def test_no_default_pattern() -> None:
    assert Settings(query_parameter_pattern=None).query_parameter_pattern == ()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"query_parameter_pattern": "("},
        {"query_parameter_pattern": [""]},
        {"keyword_query_parameter_pattern": "{keyword}["},
        {"statement_separator_pattern": "[;"},
    ],
)
def test_invalid_patterns_are_rejected(kwargs: dict) -> None:
    with pytest.raises(ImproperConfigurationError):
        Settings(**kwargs)


def test_settings_from_camel_case_dict() -> None:
    settings = settings_from_dict({
        "host": "db",
        "port": "5433",
        "database": "app",
        "defaultSchema": "app",
        "queryParameterPattern": ":[a-z_]+",
        "keywordQueryParameterPattern": ["@{keyword}", "{keyword}_val"],
        "statementSeparatorPattern": ";",
        "migrationsFolder": "migrations",
        "plpgsqlCheckSchema": "extensions",
        "enableExecuteFileQueryCommand": True,
    })

    assert settings == Settings(
        host="db",
        port=5433,
        database="app",
        default_schema="app",
        query_parameter_pattern=":[a-z_]+",
        keyword_query_parameter_pattern=("@{keyword}", "{keyword}_val"),
        statement_separator_pattern=";",
        migrations_folder="migrations",
        plpgsql_check_schema="extensions",
    )


def test_settings_from_snake_case_dict() -> None:
    settings = settings_from_dict({"statement_separator_pattern": ";", "user": "postgres"})

    assert settings.statement_separator_pattern == ";"
    assert settings.user == "postgres"


def test_settings_from_dict_wraps_bad_values() -> None:
    with pytest.raises(ImproperConfigurationError, match="Invalid configuration values"):
        settings_from_dict({"port": "not-a-port"})


def test_pool_config_drops_unset_values() -> None:
    settings = Settings(user="postgres")

    assert settings.pool_config() == {"host": "localhost", "port": 5432, "user": "postgres"}


def test_repr_hides_password() -> None:
    settings = Settings(password="hunter2")

    assert "hunter2" not in repr(settings)
    assert "host='localhost'" in repr(settings)
