# FlagDeck/flagdeck/app.py

"""FlagDeck application entrypoint.

This module creates and configures the Flask application: logging, storage
backend, authentication keys, rate limiting, CORS and blueprints.
It then starts the HTTP server using environment-based configuration.

Run the development server from the project root with::

    python -m flagdeck.app

The module uses absolute ``flagdeck.*`` imports, so running the file
directly (``python flagdeck/app.py``) is not supported.
"""

from __future__ import annotations

from typing import Optional

from flask import Flask
from flask_cors import CORS

from flagdeck.blueprints.admin.environments_admin import environments_admin_bp
from flagdeck.blueprints.admin.flags_admin import flags_admin_bp
from flagdeck.blueprints.analytics.analytics import analytics_bp
from flagdeck.blueprints.docs.docs import docs_bp
from flagdeck.blueprints.sdk.sdk import sdk_bp
from flagdeck.blueprints.system.health import health_bp
from flagdeck.errors.handlers import register_error_handlers
from flagdeck.logging_config import configure_logging, get_logger
from flagdeck.repositories.seed import seed_example_data
from flagdeck.services import auth_service, container, rate_limit_service
from flagdeck.services.rate_limit_service import RateLimiter
from flagdeck.settings import Settings


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> Flask:
    """Create and configure the FlagDeck Flask application instance.

    Args:
        settings: Explicit settings (tests); read from the environment and
            ``.env`` when omitted.

    Returns:
        Flask: A configured Flask application instance.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level, settings.log_format)

    app = Flask(__name__)
    app.config["FLAGDECK_SETTINGS"] = settings
    app.config[auth_service.CONFIG_KEY] = auth_service.hash_api_keys(
        settings.api_keys
    )
    if not settings.api_keys:
        logger.warning("no_api_keys_configured", hint="set API_KEYS")

    services = container.build_services(settings)
    app.extensions[container.EXTENSION_KEY] = services
    app.extensions[rate_limit_service.EXTENSION_KEY] = RateLimiter(
        limit_per_minute=settings.rate_limit_per_minute,
        enabled=settings.rate_limit_enabled,
    )

    # Register JSON error handlers (400/404/409/429/500, etc.).
    register_error_handlers(app)

    # System & health
    app.register_blueprint(health_bp)             # /health/

    # Admin APIs
    app.register_blueprint(environments_admin_bp)  # /v1/environments
    app.register_blueprint(flags_admin_bp)        # /v1/flags

    # Public SDK + analytics endpoints
    app.register_blueprint(sdk_bp)                # /v1/sdk/config, /v1/sdk/evaluate
    app.register_blueprint(analytics_bp)          # /v1/analytics/*

    # Documentation (OpenAPI + Swagger UI)
    app.register_blueprint(docs_bp)               # /openapi.yaml and /docs

    # Browser clients (dashboards, web SDKs) call the API directly.
    CORS(
        app,
        resources={r"/*": {"origins": list(settings.cors_origins)}},
        supports_credentials=False,
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )

    if settings.seed_example_data:
        seed_example_data(services.environments, services.flags, services.exposures)

    logger.info(
        "app_created",
        storage_backend=settings.storage_backend,
        rate_limit_enabled=settings.rate_limit_enabled,
    )
    return app


if __name__ == "__main__":
    settings = Settings.from_env()
    app = create_app(settings)

    app.run(
        host="0.0.0.0",
        port=settings.port,
        debug=settings.debug,
    )
