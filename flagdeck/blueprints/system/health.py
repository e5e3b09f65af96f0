# FlagDeck/flagdeck/blueprints/system/health.py
"""Liveness probe. Not authenticated and not rate limited."""


from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify


health_bp = Blueprint("health", __name__, url_prefix="/health")


@health_bp.get("/")
def health() -> tuple[Any, int]:
    """Return ``{"status": "ok"}`` while the process is serving requests."""
    return jsonify({"status": "ok"}), 200
