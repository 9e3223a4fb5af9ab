"""Tests for formatting utilities."""

import pytest

from brick_tally.utils.formatters import (
    format_color_swatch,
    format_progress,
    progress_percent,
    time_ago,
)


class TestProgressPercent:
    def test_rounded(self):
        assert progress_percent(12, 15) == 80

    def test_half_rounds_up(self):
        assert progress_percent(1, 8) == 13  # 12.5

    def test_rounds_down(self):
        assert progress_percent(1, 3) == 33

    def test_complete(self):
        assert progress_percent(7, 7) == 100

    def test_nothing_needed(self):
        assert progress_percent(0, 0) == 0


class TestFormatProgress:
    def test_basic(self):
        assert format_progress(12, 15) == "12/15 (80%)"

    def test_with_unit(self):
        assert format_progress(1, 2, "parts") == "1/2 parts (50%)"


class TestFormatColorSwatch:
    def test_adds_hash(self):
        assert format_color_swatch("C91A09") == "#C91A09"

    def test_keeps_hash(self):
        assert format_color_swatch("#0055BF") == "#0055BF"

    @pytest.mark.parametrize("value", ["", None, "  "])
    def test_fallback(self, value):
        assert format_color_swatch(value) == "#cccccc"


class TestTimeAgo:
    NOW = 1_700_000_000

    @pytest.mark.parametrize("age,expected", [
        (5, "just now"),
        (59, "just now"),
        (60, "1m ago"),
        (45 * 60, "45m ago"),
        (3 * 3600, "3h ago"),
        (26 * 3600, "yesterday"),
        (5 * 86400, "5d ago"),
        (65 * 86400, "2mo ago"),
    ])
    def test_buckets(self, age, expected):
        assert time_ago(self.NOW - age, now=self.NOW) == expected
