# FlagDeck/flagdeck/services/container.py
"""Per-application wiring of repositories and services.

``create_app`` builds one :class:`Services` instance for the configured
storage backend and stores it in ``app.extensions``; views retrieve it with
:func:`get_services`.
"""


from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from flagdeck.repositories.interfaces import (
    EnvironmentRepository,
    ExposureRepository,
    FlagRepository,
)
from flagdeck.services.flag_service import FlagEvaluationEngine
from flagdeck.settings import Settings


EXTENSION_KEY = "flagdeck.services"


@dataclass
class Services:
    """Repositories and the evaluation engine bound to one backend."""
    environments: EnvironmentRepository
    flags: FlagRepository
    exposures: ExposureRepository
    engine: FlagEvaluationEngine


def build_services(settings: Settings) -> Services:
    """Instantiate the repositories for ``settings.storage_backend``."""
    if settings.storage_backend == "postgres":
        from flagdeck.repositories.postgres_analytics_repo import (
            PostgresExposureRepository,
        )
        from flagdeck.repositories.postgres_environments_repo import (
            PostgresEnvironmentRepository,
        )
        from flagdeck.repositories.postgres_flags_repo import (
            PostgresFlagRepository,
        )

        environments = PostgresEnvironmentRepository(settings.database_url)
        flags = PostgresFlagRepository(settings.database_url)
        exposures = PostgresExposureRepository(settings.database_url)
    else:
        from flagdeck.repositories.memory_repo import (
            InMemoryEnvironmentRepository,
            InMemoryExposureRepository,
            InMemoryFlagRepository,
        )

        environments = InMemoryEnvironmentRepository()
        flags = InMemoryFlagRepository(environments)
        exposures = InMemoryExposureRepository()

    return Services(
        environments=environments,
        flags=flags,
        exposures=exposures,
        engine=FlagEvaluationEngine(environments, flags),
    )


def get_services() -> Services:
    """Return the services of the current Flask application."""
    return current_app.extensions[EXTENSION_KEY]
