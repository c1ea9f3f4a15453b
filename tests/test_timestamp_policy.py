"""Tests for the capture-timestamp priority chain."""

import pytest

from timestamp_policy import (
    FALLBACK_TAGS,
    PRIMARY_TAGS,
    QUERY_TAGS,
    SENTINEL_TAG,
    SENTINEL_TIMESTAMP,
    STATUS_ADDED,
    STATUS_PRESENT,
    clean_value,
    first_value,
    resolve_timestamp,
)


class TestTrustedFiles:
    def test_date_time_original(self) -> None:
        r = resolve_timestamp({"DateTimeOriginal": "2021-06-01 10:00:00"})

        assert r.trusted is True
        assert r.value == "2021-06-01 10:00:00"
        assert r.used_tags == ("DateTimeOriginal",)
        assert r.tag_status == STATUS_PRESENT

    @pytest.mark.parametrize("tag", PRIMARY_TAGS)
    def test_any_primary_tag_makes_file_trusted(self, tag: str) -> None:
        r = resolve_timestamp({tag: "2020:01:02 03:04:05", "FileModifyDate": "2024:01:01 00:00:00"})

        assert r.trusted is True
        assert tag in r.used_tags
        assert "FileModifyDate" not in r.used_tags

    def test_display_order_prefers_date_time_created(self) -> None:
        r = resolve_timestamp({
            "CreateDate": "2003:03:03 03:03:03",
            "DateTimeOriginal": "2002:02:02 02:02:02",
            "DateTimeCreated": "2001:01:01 01:01:01",
        })
        assert r.value == "2001:01:01 01:01:01"

    def test_display_order_original_before_create_date(self) -> None:
        r = resolve_timestamp({
            "CreateDate": "2003:03:03 03:03:03",
            "DateTimeOriginal": "2002:02:02 02:02:02",
        })
        assert r.value == "2002:02:02 02:02:02"

    def test_all_present_primary_tags_are_recorded_in_priority_order(self) -> None:
        r = resolve_timestamp({
            "MediaCreateDate": "2010:01:01 00:00:00",
            "DateTimeOriginal": "2010:01:01 00:00:00",
            "SubSecDateTimeOriginal": "2010:01:01 00:00:00.12",
        })
        assert r.used_tags == ("SubSecDateTimeOriginal", "DateTimeOriginal", "MediaCreateDate")

    def test_primary_present_but_display_scan_empty_uses_first_primary(self) -> None:
        # Only a tag outside DateTimeCreated/DateTimeOriginal/CreateDate is set:
        # the file stays trusted and is named after that tag, not the sentinel.
        r = resolve_timestamp({"SubSecMediaCreateDate": "2018:07:04 12:30:45.500"})

        assert r.trusted is True
        assert r.value == "2018:07:04 12:30:45.500"
        assert r.used_tags == ("SubSecMediaCreateDate",)
        assert not r.is_sentinel


class TestFallbackFiles:
    @pytest.mark.parametrize("index", range(len(FALLBACK_TAGS)))
    def test_first_fallback_in_priority_order_wins(self, index: int) -> None:
        tags = {t: f"20{10 + i}:01:01 00:00:00" for i, t in enumerate(FALLBACK_TAGS) if i >= index}
        r = resolve_timestamp(tags)

        assert r.trusted is False
        assert r.used_tags == (FALLBACK_TAGS[index],)
        assert r.value == f"20{10 + index}:01:01 00:00:00"
        assert r.tag_status == STATUS_ADDED

    def test_plain_modify_date_beats_subsec_modify_date(self) -> None:
        r = resolve_timestamp({
            "SubSecModifyDate": "2019:03:02 08:15:30.25",
            "ModifyDate": "2019:03:02 08:15:30",
        })
        assert r.used_tags == ("ModifyDate",)

    def test_file_modify_date_only(self) -> None:
        r = resolve_timestamp({"FileModifyDate": "2019-03-02 08:15:30"})

        assert r.value == "2019-03-02 08:15:30"
        assert r.used_tag_label == "FileModifyDate"


class TestSentinel:
    def test_no_tags_at_all(self) -> None:
        r = resolve_timestamp({})

        assert r.value == SENTINEL_TIMESTAMP == "1970-01-01 00:00:01"
        assert r.trusted is False
        assert r.used_tags == (SENTINEL_TAG,)
        assert r.is_sentinel

    def test_blank_values_count_as_missing(self) -> None:
        r = resolve_timestamp({"DateTimeOriginal": "   ", "FileModifyDate": ""})
        assert r.is_sentinel

    def test_zero_dates_count_as_missing(self) -> None:
        r = resolve_timestamp({
            "DateTimeOriginal": "0000:00:00 00:00:00",
            "FileModifyDate": "2019:03:02 08:15:30+01:00",
        })
        assert r.trusted is False
        assert r.used_tags == ("FileModifyDate",)


class TestHelpers:
    def test_query_tags_cover_every_candidate_once(self) -> None:
        assert set(QUERY_TAGS) == set(PRIMARY_TAGS) | set(FALLBACK_TAGS)
        assert len(QUERY_TAGS) == len(set(QUERY_TAGS))

    def test_clean_value(self) -> None:
        assert clean_value(None) == ""
        assert clean_value("  2020:01:01 00:00:00 ") == "2020:01:01 00:00:00"
        assert clean_value("0000:00:00") == ""

    def test_first_value_returns_tag_and_value(self) -> None:
        assert first_value({"B": "x", "A": "y"}, ("A", "B")) == ("A", "y")
        assert first_value({"B": ""}, ("A", "B")) is None
