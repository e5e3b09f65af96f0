# FlagDeck/flagdeck/services/analytics_service.py
"""Exposure analytics for FlagDeck.

Records which users were exposed to which flags and aggregates those
exposures into per-day statistics.
"""


from __future__ import annotations

import re
from datetime import datetime, time, timedelta, timezone
from typing import Callable, Optional

from flagdeck.errors.exceptions import InvalidEnvironment, InvalidRequest, NotFound
from flagdeck.models.exposure import Exposure, FlagStats
from flagdeck.repositories.interfaces import ExposureRepository, FlagRepository


DEFAULT_CLIENT_ID = "unknown"
DEFAULT_PERIOD = "7d"
MAX_PERIOD_DAYS = 3650

_PERIOD_RE = re.compile(r"^(\d+)d$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Raises:
        InvalidRequest: If ``raw`` is not a valid ISO-8601 timestamp.
    """
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as exc:
        raise InvalidRequest(
            f"Invalid timestamp '{raw}'", {"field": "timestamp"}
        ) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def record_exposure(
    repo: ExposureRepository,
    flag_key: str,
    environment: str,
    user_id: str,
    timestamp: Optional[datetime] = None,
    client_id: Optional[str] = None,
    clock: Callable[[], datetime] = _utcnow,
) -> Exposure:
    """Validate and store one exposure event.

    Raises:
        InvalidRequest: If ``flag_key``, ``environment`` or ``user_id`` is
            empty.
    """
    if not flag_key or not environment or not user_id:
        raise InvalidRequest("Missing required fields")

    exposure = Exposure(
        id="",
        flag_key=flag_key,
        environment=environment,
        user_id=user_id,
        timestamp=timestamp or clock(),
        client_id=client_id or DEFAULT_CLIENT_ID,
    )
    return repo.record(exposure)


def parse_period(period: str) -> int:
    """Convert a ``"<N>d"`` period into a number of days.

    Raises:
        InvalidRequest: For any other format, or when ``N`` exceeds
            ``MAX_PERIOD_DAYS``.
    """
    match = _PERIOD_RE.match(period or "")
    if match is None or int(match.group(1)) > MAX_PERIOD_DAYS:
        raise InvalidRequest(
            "Invalid period format. Use 'Nd' where N is the number of days",
            {"field": "period"},
        )
    return int(match.group(1))


def flag_stats(
    flags: FlagRepository,
    exposures: ExposureRepository,
    flag_id: str,
    environment: str,
    period: str = DEFAULT_PERIOD,
    clock: Callable[[], datetime] = _utcnow,
) -> FlagStats:
    """Aggregate a flag's exposures per day over the last ``period``.

    The window starts at UTC midnight ``N`` days ago and the breakdown covers
    ``N + 1`` calendar days, today included.

    Raises:
        NotFound: If ``flag_id`` is unknown.
        InvalidEnvironment: If ``environment`` is empty.
        InvalidRequest: If ``period`` is malformed.
    """
    flag = flags.get_by_id(flag_id)
    if flag is None:
        raise NotFound("Feature flag not found")
    if not environment:
        raise InvalidEnvironment(environment)

    days = parse_period(period)
    today = clock().astimezone(timezone.utc).date()
    start_date = today - timedelta(days=days)
    since = datetime.combine(start_date, time.min, tzinfo=timezone.utc)

    matching = exposures.list_for_flag(flag.key, environment, since)

    breakdown = {
        (start_date + timedelta(days=i)).isoformat(): 0 for i in range(days + 1)
    }
    for exposure in matching:
        day = exposure.timestamp.astimezone(timezone.utc).date().isoformat()
        if day in breakdown:
            breakdown[day] += 1

    return FlagStats(
        flag_id=flag.id,
        flag_key=flag.key,
        environment=environment,
        period=period,
        total=len(matching),
        breakdown=breakdown,
    )
