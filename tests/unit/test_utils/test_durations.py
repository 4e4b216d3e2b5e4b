"""Unit tests for duration parsing."""

import pytest

from lgtm_reviewer.utils.durations import parse_duration


class TestParseDuration:
    """Tests for parse_duration."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("15s", 15.0),
            ("500ms", 0.5),
            ("1m30s", 90.0),
            ("2h45m", 9900.0),
            ("1.5s", 1.5),
            ("0", 0.0),
            (" 3s ", 3.0),
        ],
    )
    def test_valid_durations(self, value, expected):
        """Test valid duration strings convert to seconds."""
        assert parse_duration(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["", "15", "s", "1d", "-1s", "abc", "1s junk"])
    def test_invalid_durations(self, value):
        """Test malformed strings raise ValueError."""
        with pytest.raises(ValueError):
            parse_duration(value)
