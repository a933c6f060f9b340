"""Tests for review host type helpers."""

from datetime import UTC, datetime

from subprop_shared.gateway.review_host.types import Check, parse_host_timestamp


def test_parses_utc_timestamp() -> None:
    assert parse_host_timestamp("2025-01-15T12:30:00Z") == datetime(
        2025, 1, 15, 12, 30, tzinfo=UTC
    )


def test_truncates_seven_digit_fractions() -> None:
    parsed = parse_host_timestamp("2025-01-15T12:30:00.9876543Z")

    assert parsed is not None
    assert parsed.microsecond == 987654


def test_missing_and_zero_timestamps_are_none() -> None:
    assert parse_host_timestamp(None) is None
    assert parse_host_timestamp("") is None
    assert parse_host_timestamp("0001-01-01T00:00:00Z") is None


def test_unparseable_timestamp_is_none() -> None:
    assert parse_host_timestamp("yesterday") is None


def test_unknown_blocking_counts_as_blocking() -> None:
    assert Check(name="ci", status="running").blocks
    assert Check(name="ci", status="running", is_blocking=True).blocks
    assert not Check(name="ci", status="running", is_blocking=False).blocks
