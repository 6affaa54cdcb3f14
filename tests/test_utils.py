"""Unit tests for utility functions."""

from datetime import datetime

import pytest

from pymoveit.utils import (
    PARTIAL_PREFIX,
    PARTIAL_SUFFIX,
    format_size,
    is_partial_download,
    is_safe_filename,
    parse_iso_timestamp,
)


class TestFormatSize:
    """Tests for format_size function."""

    def test_bytes(self):
        assert format_size(0) == "0 B"
        assert format_size(512) == "512 B"

    def test_larger_units(self):
        assert format_size(1536) == "1.5 KB"
        assert format_size(5 * 1024 * 1024) == "5.0 MB"
        assert format_size(3 * 1024**4) == "3.0 TB"


class TestParseIsoTimestamp:
    def test_utc_suffix(self):
        result = parse_iso_timestamp("2025-01-15T10:30:00Z")
        assert isinstance(result, datetime)
        assert result.tzinfo is None

    def test_naive(self):
        assert parse_iso_timestamp("2025-01-15T10:30:00") == datetime(
            2025, 1, 15, 10, 30
        )

    @pytest.mark.parametrize("value", [None, "", "yesterday"])
    def test_unparseable(self, value):
        assert parse_iso_timestamp(value) is None


class TestFilenames:
    def test_partial_download(self):
        assert is_partial_download(f"{PARTIAL_PREFIX}abc{PARTIAL_SUFFIX}")
        assert not is_partial_download("report.part")
        assert not is_partial_download(".pymoveit-config")

    @pytest.mark.parametrize("name", ["report.pdf", ".hidden", "a b.txt", "ü.txt"])
    def test_safe_names(self, name):
        assert is_safe_filename(name)

    @pytest.mark.parametrize(
        "name",
        [
            "",
            ".",
            "..",
            "a/b",
            "..\\evil",
            "nul\x00",
            f"{PARTIAL_PREFIX}x{PARTIAL_SUFFIX}",
        ],
    )
    def test_unsafe_names(self, name):
        assert not is_safe_filename(name)
