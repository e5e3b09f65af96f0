"""Exposure analytics endpoints for FlagDeck."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request

from flagdeck.services import analytics_service
from flagdeck.services.auth_service import require_api_key
from flagdeck.services.container import get_services
from flagdeck.services.rate_limit_service import rate_limited
from flagdeck.validators.exposure_validator import validate_exposure


analytics_bp = Blueprint("analytics_bp", __name__, url_prefix="/v1/analytics")


@analytics_bp.post("/exposure")
@require_api_key
@rate_limited
def post_exposure() -> tuple[str, int]:
    """Record that a user was exposed to a flag.

    Body JSON:
    {
        "flagKey": "new-checkout-flow",
        "environment": "production",
        "userId": "u-1",
        "timestamp": "2024-05-01T12:00:00Z",   (optional, defaults to now)
        "clientId": "web-app"                  (optional, defaults to "unknown")
    }

    Returns:
        tuple: ("", 204), or 400 if a required field is missing.
    """
    payload = request.get_json(silent=True)
    validate_exposure(payload)

    analytics_service.record_exposure(
        get_services().exposures,
        flag_key=payload.get("flagKey") or "",
        environment=payload.get("environment") or "",
        user_id=payload.get("userId") or "",
        timestamp=analytics_service.parse_timestamp(payload.get("timestamp")),
        client_id=payload.get("clientId"),
    )
    return "", 204


@analytics_bp.get("/flags/<string:flag_id>/stats")
@require_api_key
@rate_limited
def get_flag_stats(flag_id: str) -> tuple[Any, int]:
    """Return exposure counts for a flag over a period.

    Query params:
        - environment (required)
        - period (optional, ``"<N>d"``, default ``"7d"``)

    Returns:
        tuple: (stats JSON, 200); 404 for an unknown flag; 400 for a
        missing environment or malformed period.
    """
    services = get_services()
    stats = analytics_service.flag_stats(
        services.flags,
        services.exposures,
        flag_id,
        environment=request.args.get("environment", ""),
        period=request.args.get("period", analytics_service.DEFAULT_PERIOD),
    )

    return (
        jsonify(
            {
                "flagId": stats.flag_id,
                "flagKey": stats.flag_key,
                "environment": stats.environment,
                "period": stats.period,
                "exposures": {
                    "total": stats.total,
                    "breakdown": stats.breakdown,
                },
            }
        ),
        200,
    )
