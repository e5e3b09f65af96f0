# FlagDeck/flagdeck/blueprints/admin/flags_admin.py
"""Admin-facing feature flag management endpoints for FlagDeck.

Provides CRUD on feature flags, per-environment state toggles and targeting
rule management.
"""


from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request

from flagdeck.errors.exceptions import NotFound
from flagdeck.logging_config import get_logger
from flagdeck.models.flag import FeatureFlag, TargetingRule
from flagdeck.services.auth_service import require_api_key
from flagdeck.services.container import get_services
from flagdeck.services.rate_limit_service import rate_limited
from flagdeck.validators.flag_validator import (
    validate_flag_create,
    validate_flag_state_update,
    validate_flag_update,
    validate_rule_create,
)


logger = get_logger(__name__)

flags_admin_bp = Blueprint("flags_admin", __name__, url_prefix="/v1/flags")

DEFAULT_LIMIT = 20


def serialize_rule(rule: TargetingRule) -> dict:
    """Serialize a TargetingRule into a JSON-safe dict."""
    return {
        "id": rule.id,
        "type": rule.type,
        "attribute": rule.attribute,
        "operator": rule.operator,
        "values": list(rule.values),
        "environment": rule.environment,
        "createdAt": rule.created_at.isoformat(),
    }


def serialize_flag(flag: FeatureFlag) -> dict:
    """Serialize a FeatureFlag (with its rules) into a JSON-safe dict."""
    return {
        "id": flag.id,
        "key": flag.key,
        "name": flag.name,
        "description": flag.description,
        "state": dict(flag.state),
        "tags": list(flag.tags),
        "rules": [serialize_rule(r) for r in flag.rules],
        "createdAt": flag.created_at.isoformat(),
        "updatedAt": flag.updated_at.isoformat(),
    }


def _int_arg(name: str, default: int) -> int:
    """Read a non-negative integer query parameter, falling back to default."""
    try:
        value = int(request.args.get(name, str(default)))
    except ValueError:
        return default
    return value if value >= 0 else default


@flags_admin_bp.get("")
@require_api_key
@rate_limited
def list_flags() -> tuple[Any, int]:
    """
    List flags.

    Query params:
        - environment_id (optional): only flags with a state for it
        - project_id (optional): accepted and ignored
        - limit (optional, default 20)
        - offset (optional, default 0)

    Returns:
        tuple: ({"flags", "total", "limit", "offset"}, 200).
    """
    flags = get_services().flags
    environment = request.args.get("environment_id") or None
    limit = _int_arg("limit", DEFAULT_LIMIT)
    offset = _int_arg("offset", 0)

    page = flags.list_page(environment=environment, limit=limit, offset=offset)
    return (
        jsonify(
            {
                "flags": [serialize_flag(f) for f in page],
                "total": flags.count(environment=environment),
                "limit": limit,
                "offset": offset,
            }
        ),
        200,
    )


@flags_admin_bp.get("/<string:flag_id>")
@require_api_key
@rate_limited
def get_flag(flag_id: str) -> tuple[Any, int]:
    """Retrieve a flag by id; 404 if it does not exist."""
    flag = get_services().flags.get_by_id(flag_id)
    if flag is None:
        raise NotFound("Feature flag not found")

    return jsonify(serialize_flag(flag)), 200


@flags_admin_bp.post("")
@require_api_key
@rate_limited
def create_flag() -> tuple[Any, int]:
    """Create a flag.

    Returns:
        tuple: (JSON flag, 201). 409 on duplicate key, 400 when a state
        entry names an unknown environment.
    """
    payload = request.get_json(silent=True)
    validate_flag_create(payload)

    flag = get_services().flags.create(
        key=payload["key"],
        name=payload["name"],
        description=payload.get("description", ""),
        state=payload.get("state", {}),
        tags=payload.get("tags", []),
    )
    logger.info("flag_created", flag_key=flag.key, id=flag.id)
    return jsonify(serialize_flag(flag)), 201


@flags_admin_bp.put("/<string:flag_id>")
@require_api_key
@rate_limited
def update_flag(flag_id: str) -> tuple[Any, int]:
    """Partially update name, description and tags (null fields are kept)."""
    payload = request.get_json(silent=True)
    validate_flag_update(payload)

    flag = get_services().flags.update_metadata(
        flag_id,
        name=payload.get("name"),
        description=payload.get("description"),
        tags=payload.get("tags"),
    )
    logger.info("flag_updated", flag_key=flag.key, id=flag.id)
    return jsonify(serialize_flag(flag)), 200


@flags_admin_bp.patch("/<string:flag_id>/state")
@require_api_key
@rate_limited
def update_flag_state(flag_id: str) -> tuple[Any, int]:
    """Set a flag's default state in one environment.

    Body: ``{"environment": "production", "enabled": true}``
    """
    payload = request.get_json(silent=True)
    validate_flag_state_update(payload)

    flag = get_services().flags.update_state(
        flag_id, payload["environment"], payload["enabled"]
    )
    logger.info(
        "flag_state_updated",
        flag_key=flag.key,
        environment=payload["environment"],
        enabled=payload["enabled"],
    )
    return (
        jsonify(
            {
                "id": flag.id,
                "key": flag.key,
                "state": dict(flag.state),
                "updatedAt": flag.updated_at.isoformat(),
            }
        ),
        200,
    )


@flags_admin_bp.delete("/<string:flag_id>")
@require_api_key
@rate_limited
def delete_flag(flag_id: str) -> tuple[str, int]:
    """Delete a flag and its targeting rules; 404 if unknown."""
    get_services().flags.delete(flag_id)
    logger.info("flag_deleted", id=flag_id)
    return "", 204


@flags_admin_bp.post("/<string:flag_id>/rules")
@require_api_key
@rate_limited
def add_targeting_rule(flag_id: str) -> tuple[Any, int]:
    """Append a targeting rule to a flag.

    Body: ``{"type", "attribute", "operator", "values", "environment"}``

    Returns:
        tuple: (JSON rule, 201).
    """
    payload = request.get_json(silent=True)
    validate_rule_create(payload)

    rule = get_services().flags.add_rule(
        flag_id,
        rule_type=payload["type"],
        attribute=payload["attribute"],
        operator=payload["operator"],
        values=payload["values"],
        environment=payload["environment"],
    )
    logger.info(
        "targeting_rule_added",
        flag_id=flag_id,
        rule_id=rule.id,
        environment=rule.environment,
    )
    return jsonify(serialize_rule(rule)), 201


@flags_admin_bp.delete("/<string:flag_id>/rules/<string:rule_id>")
@require_api_key
@rate_limited
def delete_targeting_rule(flag_id: str, rule_id: str) -> tuple[str, int]:
    """Remove one targeting rule; 404 if the flag or rule is unknown."""
    get_services().flags.delete_rule(flag_id, rule_id)
    logger.info("targeting_rule_deleted", flag_id=flag_id, rule_id=rule_id)
    return "", 204
