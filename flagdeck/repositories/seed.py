# FlagDeck/flagdeck/repositories/seed.py
"""Example data for local development.

Creates three environments, three flags (one with a targeting rule) and a
handful of production exposures so that the SDK and analytics endpoints
return something meaningful out of the box.
"""


from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from flagdeck.logging_config import get_logger
from flagdeck.models.exposure import Exposure
from flagdeck.repositories.interfaces import (
    EnvironmentRepository,
    ExposureRepository,
    FlagRepository,
)


logger = get_logger(__name__)

EXAMPLE_ENVIRONMENTS = [
    {"key": "dev", "name": "Development", "description": "Development environment"},
    {"key": "staging", "name": "Staging", "description": "Staging/QA environment"},
    {"key": "production", "name": "Production", "description": "Production environment"},
]

EXAMPLE_FLAGS = [
    {
        "key": "new-checkout-flow",
        "name": "New Checkout Flow",
        "description": "Enables the new checkout experience",
        "state": {"dev": True, "staging": True, "production": False},
        "tags": ["checkout", "beta"],
        "rules": [
            {
                "type": "user",
                "attribute": "email",
                "operator": "ends_with",
                "values": ["@company.com"],
                "environment": "staging",
            },
        ],
    },
    {
        "key": "dark-mode",
        "name": "Dark Mode",
        "description": "Enables dark mode UI",
        "state": {"dev": True, "staging": True, "production": True},
        "tags": ["ui", "theme"],
    },
    {
        "key": "recommendation-engine",
        "name": "Recommendation Engine",
        "description": "Enables the new ML-based recommendation engine",
        "state": {"dev": True, "staging": True, "production": True},
        "tags": ["ai", "recommendations"],
    },
]

EXPOSURES_PER_FLAG = 10


def seed_example_data(
    environments: EnvironmentRepository,
    flags: FlagRepository,
    exposures: ExposureRepository,
) -> bool:
    """Load the example data set unless environments already exist.

    Returns:
        bool: ``True`` if data was seeded, ``False`` if it was skipped.
    """
    if environments.list_all():
        logger.info("seed_skipped", reason="environments already exist")
        return False

    for env in EXAMPLE_ENVIRONMENTS:
        environments.create(env["key"], env["name"], env["description"])

    now = datetime.now(timezone.utc)
    for example in EXAMPLE_FLAGS:
        flag = flags.create(
            key=example["key"],
            name=example["name"],
            description=example["description"],
            state=example["state"],
            tags=example["tags"],
        )
        for rule in example.get("rules", []):
            flags.add_rule(
                flag.id,
                rule_type=rule["type"],
                attribute=rule["attribute"],
                operator=rule["operator"],
                values=rule["values"],
                environment=rule["environment"],
            )

        for i in range(EXPOSURES_PER_FLAG):
            exposures.record(
                Exposure(
                    id="",
                    flag_key=flag.key,
                    environment="production",
                    user_id=f"user-{uuid4()}",
                    timestamp=now - timedelta(hours=i),
                    client_id="web-app",
                )
            )

    logger.info(
        "seed_completed",
        environments=len(EXAMPLE_ENVIRONMENTS),
        flags=len(EXAMPLE_FLAGS),
    )
    return True
