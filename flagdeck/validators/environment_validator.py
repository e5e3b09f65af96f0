# FlagDeck/flagdeck/validators/environment_validator.py
"""Validator for environment creation payloads."""


from flagdeck.validators.schema_loader import load_schema, validate_against


ENVIRONMENT_CREATE_SCHEMA = load_schema("EnvironmentCreateRequest.schema.json")


def validate_environment_create(payload: dict) -> None:
    """
    Validate an environment creation body.

    Raises:
        InvalidRequest: If payload is not an object or violates the schema.
    """
    validate_against(payload, ENVIRONMENT_CREATE_SCHEMA)
