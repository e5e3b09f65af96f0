# FlagDeck/flagdeck/models/exposure.py
"""Exposure analytics data models."""


from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict


@dataclass(frozen=True)
class Exposure:
    """A record that ``user_id`` saw ``flag_key`` in ``environment``."""
    id: str
    flag_key: str
    environment: str
    user_id: str
    timestamp: datetime
    client_id: str


@dataclass(frozen=True)
class FlagStats:
    """Exposure counts for one flag over a period of days.

    ``breakdown`` maps ``YYYY-MM-DD`` dates to exposure counts, including
    days without any exposure.
    """
    flag_id: str
    flag_key: str
    environment: str
    period: str
    total: int
    breakdown: Dict[str, int]
