# FlagDeck/flagdeck/tests/conftest.py
"""Shared pytest fixtures: settings, Flask app/client and in-memory stores."""


import pytest

from flagdeck.app import create_app
from flagdeck.repositories.memory_repo import (
    InMemoryEnvironmentRepository,
    InMemoryExposureRepository,
    InMemoryFlagRepository,
)
from flagdeck.settings import Settings


API_KEY = "test-key"
AUTH_HEADERS = {"Authorization": f"ApiKey {API_KEY}"}


@pytest.fixture
def settings():
    return Settings(
        api_keys=frozenset({API_KEY}),
        log_level="warning",
        log_format="console",
    )


@pytest.fixture
def app(settings):
    flask_app = create_app(settings)
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def auth_headers():
    return dict(AUTH_HEADERS)


# ---------- In-memory stores ----------


@pytest.fixture
def environments():
    repo = InMemoryEnvironmentRepository()
    for key in ("dev", "staging", "production"):
        repo.create(key, key.capitalize())
    return repo


@pytest.fixture
def flags(environments):
    return InMemoryFlagRepository(environments)


@pytest.fixture
def exposures():
    return InMemoryExposureRepository()
