# FlagDeck/flagdeck/validators/exposure_validator.py
"""Validator for exposure analytics payloads.

The schema only checks types; missing required fields are reported by
:func:`flagdeck.services.analytics_service.record_exposure` with a single
"Missing required fields" message.
"""


from flagdeck.validators.schema_loader import load_schema, validate_against


EXPOSURE_REQUEST_SCHEMA = load_schema("ExposureRequest.schema.json")


def validate_exposure(payload: dict) -> None:
    validate_against(payload, EXPOSURE_REQUEST_SCHEMA)
