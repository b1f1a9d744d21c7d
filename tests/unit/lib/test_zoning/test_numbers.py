"""Unit tests for house-number parsing and label normalization."""

import pytest

from patrol_zones.lib.zoning import hundred_block, normalize_house_number, normalize_label, parse_house_number


class TestParseHouseNumber:
    """Tests for parse_house_number."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("250", 250),
            ("250-A", 250),
            ("Nº 12", 12),
            ("#450", 450),
            (" 0 ", 0),
            (250, 250),
        ],
    )
    def test_digits_are_extracted(self, value: str | int, expected: int) -> None:
        assert parse_house_number(value) == expected

    @pytest.mark.parametrize("value", [None, "", "S/N", "abc", -5, True])
    def test_non_numeric_yields_none(self, value: object) -> None:
        assert parse_house_number(value) is None  # type: ignore[arg-type]


class TestHundredBlock:
    def test_hundred_block(self) -> None:
        assert hundred_block(450) == 4
        assert hundred_block(99) == 0
        assert hundred_block(1200) == 12


class TestNormalization:
    """Label and house-number normalization."""

    def test_label_trimmed_and_upper(self) -> None:
        assert normalize_label(" b ") == "B"
        assert normalize_label("a1") == "A1"

    def test_blank_label_is_none(self) -> None:
        assert normalize_label("   ") is None
        assert normalize_label(None) is None

    def test_house_number_whitespace_removed(self) -> None:
        assert normalize_house_number("250 - a") == "250-A"
        assert normalize_house_number(None) is None
