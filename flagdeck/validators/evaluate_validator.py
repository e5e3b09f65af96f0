# FlagDeck/flagdeck/validators/evaluate_validator.py
"""
Validator for SDK evaluation requests using JSON Schema.

This module loads the EvaluateRequest JSON Schema once at import time and
exposes a helper to validate incoming payloads, raising InvalidRequest on
error.
"""


from flagdeck.validators.schema_loader import load_schema, validate_against


EVALUATE_REQUEST_SCHEMA = load_schema("EvaluateRequest.schema.json")


def validate_eval_payload(payload: dict) -> None:
    """
    Validate the evaluation request body against the EvaluateRequest schema.

    Args:
        payload: Parsed JSON body.

    Raises:
        InvalidRequest: If payload is not JSON or doesn't match the schema.
    """
    validate_against(payload, EVALUATE_REQUEST_SCHEMA)
