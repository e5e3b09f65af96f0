"""Runtime SDK endpoints for FlagDeck feature flags.

This blueprint exposes the public API used by client SDKs:

- ``GET /v1/sdk/config``: raw per-environment defaults (bootstrap config).
- ``POST /v1/sdk/evaluate``: personalized evaluation with targeting rules.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request

from flagdeck.models.flag import EvaluationContext
from flagdeck.services.auth_service import require_api_key
from flagdeck.services.container import get_services
from flagdeck.services.rate_limit_service import rate_limited
from flagdeck.validators.evaluate_validator import validate_eval_payload


sdk_bp = Blueprint("sdk_bp", __name__, url_prefix="/v1/sdk")


@sdk_bp.get("/config")
@require_api_key
@rate_limited
def get_config() -> tuple[Any, int]:
    """Return the default state of every flag in one environment.

    Query params:
        - environment (required)

    Returns:
        tuple: ({"environment", "flags", "updatedAt"}, 200), or 400 with
        ``invalid_request`` if the environment is missing or unknown.
    """
    environment = request.args.get("environment", "")
    config = get_services().engine.get_config(environment)

    return (
        jsonify(
            {
                "environment": config.environment,
                "flags": config.flags,
                "updatedAt": config.updated_at.isoformat(),
            }
        ),
        200,
    )


@sdk_bp.post("/evaluate")
@require_api_key
@rate_limited
def post_evaluate() -> tuple[Any, int]:
    """Evaluate every flag for a user (public API).

    Request JSON body (EvaluateRequest):
        {
            "environment": "production",
            "user": {
                "id": "u-1",
                "email": "a@company.com",
                "groups": ["beta"],
                "country": "CA"
            }
        }

    Behaviour:
        - Flags without a state for the environment are omitted.
        - Targeting rules for the environment can only turn a flag on.
        - Returns 400 with ``invalid_request`` if the environment is
            missing or unknown.

    Returns:
        tuple: ({"environment", "flags", "evaluatedAt"}, 200).
    """
    payload = request.get_json(silent=True)
    validate_eval_payload(payload)

    ctx = EvaluationContext.from_dict(payload.get("user"))
    result = get_services().engine.evaluate(payload["environment"], ctx)

    return (
        jsonify(
            {
                "environment": result.environment,
                "flags": result.flags,
                "evaluatedAt": result.evaluated_at.isoformat(),
            }
        ),
        200,
    )
