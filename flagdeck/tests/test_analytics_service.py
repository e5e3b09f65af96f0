# FlagDeck/flagdeck/tests/test_analytics_service.py
"""
Unit tests for the analytics_service module.

These tests cover exposure recording defaults, timestamp and period parsing,
and the per-day statistics window.
"""


from datetime import datetime, timezone

import pytest

from flagdeck.errors.exceptions import InvalidEnvironment, InvalidRequest, NotFound
from flagdeck.services.analytics_service import (
    DEFAULT_CLIENT_ID,
    flag_stats,
    parse_period,
    parse_timestamp,
    record_exposure,
)


NOW = datetime(2024, 5, 10, 15, 30, tzinfo=timezone.utc)


def _clock():
    return NOW


# ---------- record_exposure ----------


def test_record_exposure_applies_defaults(exposures):
    exposure = record_exposure(exposures, "f", "production", "u-1", clock=_clock)

    assert exposure.id
    assert exposure.timestamp == NOW
    assert exposure.client_id == DEFAULT_CLIENT_ID


def test_record_exposure_keeps_explicit_values(exposures):
    ts = datetime(2024, 5, 9, tzinfo=timezone.utc)
    exposure = record_exposure(
        exposures, "f", "production", "u-1", timestamp=ts, client_id="ios-app"
    )

    assert exposure.timestamp == ts
    assert exposure.client_id == "ios-app"


@pytest.mark.parametrize(
    "flag_key, environment, user_id",
    [("", "production", "u-1"), ("f", "", "u-1"), ("f", "production", "")],
)
def test_record_exposure_requires_fields(exposures, flag_key, environment, user_id):
    with pytest.raises(InvalidRequest) as exc_info:
        record_exposure(exposures, flag_key, environment, user_id)
    assert exc_info.value.message == "Missing required fields"


# ---------- parse_timestamp / parse_period ----------


def test_parse_timestamp_accepts_z_suffix():
    assert parse_timestamp("2024-05-01T12:00:00Z") == datetime(
        2024, 5, 1, 12, tzinfo=timezone.utc
    )


def test_parse_timestamp_treats_naive_as_utc():
    assert parse_timestamp("2024-05-01T12:00:00").tzinfo == timezone.utc


def test_parse_timestamp_empty_and_invalid():
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None
    with pytest.raises(InvalidRequest):
        parse_timestamp("yesterday")


@pytest.mark.parametrize(
    "period, days", [("7d", 7), ("0d", 0), ("30d", 30), ("3650d", 3650)]
)
def test_parse_period_valid(period, days):
    assert parse_period(period) == days


@pytest.mark.parametrize(
    "period", ["", "7", "d", "-1d", "7w", "7D", "1.5d", "3651d", "1000000d", "9999999999d"]
)
def test_parse_period_invalid(period):
    with pytest.raises(InvalidRequest):
        parse_period(period)


# ---------- flag_stats ----------


def test_flag_stats_counts_per_day(flags, exposures):
    flag = flags.create("f", "F", state={"production": True})
    for ts in (
        datetime(2024, 5, 10, 9, tzinfo=timezone.utc),
        datetime(2024, 5, 10, 1, tzinfo=timezone.utc),
        datetime(2024, 5, 8, 23, 59, tzinfo=timezone.utc),
        datetime(2024, 5, 7, 0, 0, tzinfo=timezone.utc),
        datetime(2024, 5, 6, 23, 59, tzinfo=timezone.utc),  # outside the window
    ):
        record_exposure(exposures, "f", "production", "u-1", timestamp=ts)
    record_exposure(
        exposures, "f", "dev", "u-1", timestamp=datetime(2024, 5, 10, tzinfo=timezone.utc)
    )

    stats = flag_stats(flags, exposures, flag.id, "production", "3d", clock=_clock)

    assert stats.flag_key == "f"
    assert stats.period == "3d"
    assert stats.total == 4
    assert stats.breakdown == {
        "2024-05-07": 1,
        "2024-05-08": 1,
        "2024-05-09": 0,
        "2024-05-10": 2,
    }


def test_flag_stats_zero_days_covers_today(flags, exposures):
    flag = flags.create("f", "F")
    stats = flag_stats(flags, exposures, flag.id, "production", "0d", clock=_clock)

    assert stats.total == 0
    assert stats.breakdown == {"2024-05-10": 0}


def test_flag_stats_errors(flags, exposures):
    flag = flags.create("f", "F")

    with pytest.raises(NotFound):
        flag_stats(flags, exposures, "missing", "production")
    with pytest.raises(InvalidEnvironment):
        flag_stats(flags, exposures, flag.id, "")
    with pytest.raises(InvalidRequest):
        flag_stats(flags, exposures, flag.id, "production", "week")
    with pytest.raises(InvalidRequest):
        flag_stats(flags, exposures, flag.id, "production", "9999999999d")
