"""Tests for money coercion and Indian-style number formatting."""

from decimal import Decimal

import pytest

from utils.formatting import format_inr, format_rupee, money_to_json, round_half_up, to_money


class TestToMoney:
    def test_float_goes_through_str(self):
        assert to_money(0.09) == Decimal("0.09")

    def test_decimal_passes_through(self):
        value = Decimal("12.50")
        assert to_money(value) is value

    @pytest.mark.parametrize("bad", [True, None, "abc", [1]])
    def test_rejects_non_numbers(self, bad):
        with pytest.raises(ValueError):
            to_money(bad)


class TestRounding:
    def test_half_rounds_up(self):
        assert round_half_up(Decimal("2.5")) == Decimal("3")
        assert round_half_up(Decimal("106199.5")) == Decimal("106200")

    def test_money_to_json_prefers_int(self):
        assert money_to_json(Decimal("9180.00")) == 9180
        assert isinstance(money_to_json(Decimal("9180.00")), int)
        assert money_to_json(Decimal("12.5")) == 12.5


class TestFormatInr:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (0, "0"),
            (999, "999"),
            (1000, "1,000"),
            (118000, "1,18,000"),
            (1234567, "12,34,567"),
            (123456789, "12,34,56,789"),
            (-118000, "-1,18,000"),
        ],
    )
    def test_lakh_grouping(self, value, expected):
        assert format_inr(value) == expected

    def test_decimals(self):
        assert format_inr(Decimal("9180.5"), decimals=2) == "9,180.50"

    def test_rupee_prefix(self):
        assert format_rupee(120360) == "₹1,20,360"
