# FlagDeck/flagdeck/blueprints/admin/environments_admin.py
"""Admin-facing environment endpoints (list, create, delete)."""


from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request

from flagdeck.logging_config import get_logger
from flagdeck.models.environment import Environment
from flagdeck.services.auth_service import require_api_key
from flagdeck.services.container import get_services
from flagdeck.services.environment_service import delete_environment
from flagdeck.services.rate_limit_service import rate_limited
from flagdeck.validators.environment_validator import validate_environment_create


logger = get_logger(__name__)

environments_admin_bp = Blueprint(
    "environments_admin",
    __name__,
    url_prefix="/v1/environments",
)


def _serialize_environment(env: Environment) -> dict:
    return {
        "id": env.id,
        "key": env.key,
        "name": env.name,
        "description": env.description,
        "createdAt": env.created_at.isoformat(),
    }


@environments_admin_bp.get("")
@require_api_key
@rate_limited
def list_environments() -> tuple[Any, int]:
    """Return every environment as ``{"environments": [...]}``."""
    environments = get_services().environments.list_all()
    return (
        jsonify({"environments": [_serialize_environment(e) for e in environments]}),
        200,
    )


@environments_admin_bp.post("")
@require_api_key
@rate_limited
def create_environment() -> tuple[Any, int]:
    """Create an environment.

    Body JSON:
    {
        "key": "staging",
        "name": "Staging",
        "description": "Staging/QA environment"
    }

    Behaviour:
        - 201 + environment on success
        - 400 if the body is invalid
        - 409 if the key already exists
    """
    payload = request.get_json(silent=True)
    validate_environment_create(payload)

    env = get_services().environments.create(
        payload["key"], payload["name"], payload.get("description", "")
    )
    logger.info("environment_created", environment=env.key, id=env.id)
    return jsonify(_serialize_environment(env)), 201


@environments_admin_bp.delete("/<string:env_id>")
@require_api_key
@rate_limited
def remove_environment(env_id: str) -> tuple[str, int]:
    """Delete an environment.

    Returns 404 for an unknown id and 409 while flags or targeting rules
    still reference the environment.
    """
    services = get_services()
    delete_environment(services.environments, services.flags, env_id)
    return "", 204
