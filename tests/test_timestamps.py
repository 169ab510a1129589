"""Tests for timestamp conversion."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from smello_project_storage.timestamps import (
    latest_iso,
    parse_timestamp,
    to_iso8601,
    to_store_timestamp,
)

EPOCH = 1_700_000_000
EXPECTED = datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)


class TestParseTimestamp:
    @pytest.mark.parametrize(
        "value",
        [
            EXPECTED,
            EXPECTED.replace(tzinfo=None),
            EPOCH,
            float(EPOCH),
            "2023-11-14T22:13:20Z",
            "2023-11-14T22:13:20+00:00",
            "2023-11-14T23:13:20+01:00",
            {"seconds": EPOCH, "nanos": 0},
            {"seconds": EPOCH, "nanoseconds": 0},
            {"_seconds": EPOCH, "_nanoseconds": 0},
            SimpleNamespace(seconds=EPOCH, nanos=0),
        ],
    )
    def test_supported_forms(self, value):
        assert parse_timestamp(value) == EXPECTED

    def test_nanos_become_microseconds(self):
        parsed = parse_timestamp({"seconds": EPOCH, "nanos": 123_456_789})
        assert parsed.microsecond == 123_456

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_values(self, value):
        assert parse_timestamp(value) is None

    @pytest.mark.parametrize("value", ["yesterday", True, {"nanos": 5}, ["2023"]])
    def test_invalid_values_raise(self, value):
        with pytest.raises(ValueError):
            parse_timestamp(value)


class TestToIso8601:
    def test_store_timestamp(self):
        assert to_iso8601({"seconds": EPOCH, "nanos": 0}) == "2023-11-14T22:13:20+00:00"

    def test_offset_is_normalized_to_utc(self):
        local = datetime(2023, 11, 14, 23, 13, 20, tzinfo=timezone(timedelta(hours=1)))
        assert to_iso8601(local) == "2023-11-14T22:13:20+00:00"

    def test_default_for_missing(self):
        assert to_iso8601(None, default="fallback") == "fallback"


class TestToStoreTimestamp:
    def test_round_trips_through_parse(self):
        value = datetime(2024, 1, 2, 3, 4, 5, 678_000, tzinfo=UTC)
        stored = to_store_timestamp(value)
        assert stored == {"seconds": int(value.timestamp()), "nanos": 678_000_000}
        assert parse_timestamp(stored) == value

    def test_naive_datetime_is_utc(self):
        assert to_store_timestamp(datetime(2023, 11, 14, 22, 13, 20)) == {
            "seconds": EPOCH,
            "nanos": 0,
        }


class TestLatestIso:
    def test_current_wins_when_later(self):
        assert latest_iso("2024-01-02T00:00:00+00:00", "2024-01-01T00:00:00+00:00") == (
            "2024-01-02T00:00:00+00:00"
        )

    def test_previous_wins_when_clock_lags(self):
        assert latest_iso("2024-01-01T00:00:00+00:00", "2024-01-02T00:00:00Z") == (
            "2024-01-02T00:00:00+00:00"
        )

    def test_missing_previous(self):
        assert latest_iso("2024-01-01T00:00:00+00:00", None) == "2024-01-01T00:00:00+00:00"

    def test_malformed_previous_is_ignored(self):
        assert latest_iso("2024-01-01T00:00:00+00:00", "last tuesday") == (
            "2024-01-01T00:00:00+00:00"
        )
