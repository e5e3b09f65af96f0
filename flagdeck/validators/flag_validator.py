# FlagDeck/flagdeck/validators/flag_validator.py
"""Validators for feature flag and targeting rule admin payloads."""


from flagdeck.validators.schema_loader import load_schema, validate_against


FLAG_CREATE_SCHEMA = load_schema("FlagCreateRequest.schema.json")
FLAG_UPDATE_SCHEMA = load_schema("FlagUpdateRequest.schema.json")
FLAG_STATE_UPDATE_SCHEMA = load_schema("FlagStateUpdateRequest.schema.json")
RULE_CREATE_SCHEMA = load_schema("TargetingRuleCreateRequest.schema.json")


def validate_flag_create(payload: dict) -> None:
    """
    Validate a flag creation body.

    Raises:
        InvalidRequest: If payload is not an object or violates the schema.
    """
    validate_against(payload, FLAG_CREATE_SCHEMA)


def validate_flag_update(payload: dict) -> None:
    """Validate a partial metadata update (name, description, tags)."""
    validate_against(payload, FLAG_UPDATE_SCHEMA)


def validate_flag_state_update(payload: dict) -> None:
    validate_against(payload, FLAG_STATE_UPDATE_SCHEMA)


def validate_rule_create(payload: dict) -> None:
    """
    Validate a targeting rule body.

    Only ``user``/``group`` types and the six known operators are accepted
    here; anything else is rejected before it reaches storage.
    """
    validate_against(payload, RULE_CREATE_SCHEMA)
