# FlagDeck/flagdeck/tests/test_settings.py
"""Unit tests for environment-based Settings parsing."""


import pytest

from flagdeck.settings import Settings


def test_defaults_from_empty_environment():
    settings = Settings.from_env({})

    assert settings.storage_backend == "memory"
    assert settings.database_url is None
    assert settings.api_keys == frozenset()
    assert settings.rate_limit_enabled is True
    assert settings.rate_limit_per_minute == 100
    assert settings.seed_example_data is False
    assert settings.port == 8000
    assert settings.cors_origins == ("http://localhost:3000", "http://localhost:5173")


def test_values_are_parsed():
    settings = Settings.from_env(
        {
            "STORAGE_BACKEND": "Postgres",
            "DATABASE_URL": "postgresql://u:p@localhost/flagdeck",
            "API_KEYS": "one, two,,three ",
            "RATE_LIMIT_ENABLED": "false",
            "RATE_LIMIT_PER_MINUTE": "5",
            "SEED_EXAMPLE_DATA": "yes",
            "BACKEND_PORT": "9000",
            "DEBUG": "1",
            "CORS_ORIGINS": "https://app.example.com",
        }
    )

    assert settings.storage_backend == "postgres"
    assert settings.api_keys == frozenset({"one", "two", "three"})
    assert settings.rate_limit_enabled is False
    assert settings.rate_limit_per_minute == 5
    assert settings.seed_example_data is True
    assert settings.port == 9000
    assert settings.debug is True
    assert settings.cors_origins == ("https://app.example.com",)


@pytest.mark.parametrize(
    "environ",
    [
        {"STORAGE_BACKEND": "redis"},
        {"STORAGE_BACKEND": "postgres"},
        {"RATE_LIMIT_PER_MINUTE": "0"},
        {"RATE_LIMIT_PER_MINUTE": "many"},
        {"BACKEND_PORT": "http"},
    ],
)
def test_invalid_values_raise(environ):
    with pytest.raises(RuntimeError):
        Settings.from_env(environ)


def test_from_env_reads_process_environment(monkeypatch):
    monkeypatch.setenv("API_KEYS", "from-env")
    monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "7")
    monkeypatch.delenv("STORAGE_BACKEND", raising=False)

    settings = Settings.from_env()

    assert settings.api_keys == frozenset({"from-env"})
    assert settings.rate_limit_per_minute == 7
    assert settings.storage_backend == "memory"
