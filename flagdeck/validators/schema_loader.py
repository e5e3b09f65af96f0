# FlagDeck/flagdeck/validators/schema_loader.py
"""Shared helpers to load JSON Schemas and validate request payloads."""


from __future__ import annotations

import json
from pathlib import Path

from jsonschema import ValidationError, validate as js_validate

from flagdeck.errors.exceptions import InvalidRequest


# Resolve schema directory
SCHEMAS_DIR = Path(__file__).resolve().parent.parent / "schemas"


def load_schema(filename: str) -> dict:
    """Load a JSON Schema from ``flagdeck/schemas``."""
    with (SCHEMAS_DIR / filename).open("r", encoding="utf-8") as f:
        return json.load(f)


def validate_against(payload: object, schema: dict) -> None:
    """Validate ``payload`` against ``schema``.

    Args:
        payload: Parsed JSON body.
        schema: A loaded JSON Schema; its ``title`` names the payload in
            error messages.

    Raises:
        InvalidRequest: If payload is not an object or violates the schema.
    """
    title = schema.get("title", "request")
    if not isinstance(payload, dict):
        raise InvalidRequest("Payload must be a JSON object.")

    try:
        js_validate(instance=payload, schema=schema)
    except ValidationError as e:
        msg = getattr(e, "message", None) or str(e)
        details = {"path": "/".join(str(p) for p in e.absolute_path)}
        raise InvalidRequest(f"Invalid {title}: {msg}", details) from e
