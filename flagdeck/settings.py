# FlagDeck/flagdeck/settings.py
"""Runtime configuration for FlagDeck.

All settings come from environment variables (optionally loaded from a
``.env`` file via python-dotenv) and are frozen into a :class:`Settings`
instance at startup.
"""


from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional, Tuple

from dotenv import load_dotenv


STORAGE_BACKENDS = ("memory", "postgres")
DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:5173"


def _as_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _as_list(raw: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Application settings.

    Attributes:
        storage_backend: ``"memory"`` or ``"postgres"``.
        database_url: PostgreSQL DSN, required for the postgres backend.
        api_keys: Plaintext API keys accepted in ``Authorization: ApiKey``.
        rate_limit_enabled: Whether per-client rate limiting is active.
        rate_limit_per_minute: Requests allowed per client per minute.
        seed_example_data: Load example environments/flags at startup.
        log_level: Root log level name.
        log_format: ``"json"`` or ``"console"``.
        port: HTTP port used when running ``app.py`` directly.
        debug: Flask debug mode.
        cors_origins: Origins allowed to call the API from a browser.
    """
    storage_backend: str = "memory"
    database_url: Optional[str] = None
    api_keys: FrozenSet[str] = field(default_factory=frozenset)
    rate_limit_enabled: bool = True
    rate_limit_per_minute: int = 100
    seed_example_data: bool = False
    log_level: str = "info"
    log_format: str = "json"
    port: int = 8000
    debug: bool = False
    cors_origins: Tuple[str, ...] = _as_list(DEFAULT_CORS_ORIGINS)

    def __post_init__(self) -> None:
        if self.storage_backend not in STORAGE_BACKENDS:
            raise RuntimeError(
                f"STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}."
            )
        if self.storage_backend == "postgres" and not self.database_url:
            raise RuntimeError(
                "DATABASE_URL is not set. Make sure .env is configured."
            )
        if self.rate_limit_per_minute <= 0:
            raise RuntimeError("RATE_LIMIT_PER_MINUTE must be positive.")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``environ`` (defaults to ``os.environ``).

        Raises:
            RuntimeError: If a value is missing or malformed.
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        def get(name: str, default: str) -> str:
            return environ.get(name, default)

        try:
            rate_limit = int(get("RATE_LIMIT_PER_MINUTE", "100"))
            port = int(get("BACKEND_PORT", "8000"))
        except ValueError as exc:
            raise RuntimeError(
                "RATE_LIMIT_PER_MINUTE and BACKEND_PORT must be integers."
            ) from exc

        return cls(
            storage_backend=get("STORAGE_BACKEND", "memory").strip().lower(),
            database_url=environ.get("DATABASE_URL") or None,
            api_keys=frozenset(_as_list(get("API_KEYS", ""))),
            rate_limit_enabled=_as_bool(get("RATE_LIMIT_ENABLED", "true")),
            rate_limit_per_minute=rate_limit,
            seed_example_data=_as_bool(get("SEED_EXAMPLE_DATA", "false")),
            log_level=get("LOG_LEVEL", "info"),
            log_format=get("LOG_FORMAT", "json"),
            port=port,
            debug=_as_bool(get("DEBUG", "false")),
            cors_origins=_as_list(get("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)),
        )
