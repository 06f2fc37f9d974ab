"""Tests for currency detection."""

import pytest

from spendtalk.interpreter.currency import detect_currency
from spendtalk.models.command import CurrencyCode


class TestDetectCurrency:
    """Tests for detect_currency."""

    @pytest.mark.parametrize("text, expected", [
        ("20€ lunch", CurrencyCode.EUR),
        ("£5 coffee", CurrencyCode.GBP),
        ("20 INR lunch", CurrencyCode.INR),
        ("₹300 auto", CurrencyCode.INR),
        ("15 CAD parking", CurrencyCode.CAD),
        ("15 AUD parking", CurrencyCode.AUD),
        ("900 JPY ramen", CurrencyCode.JPY),
        ("¥900 ramen", CurrencyCode.JPY),
        ("20 lunch", CurrencyCode.USD),
        ("$20 lunch", CurrencyCode.USD),
    ])
    def test_detects_currency(self, text, expected):
        """Test each currency's evidence."""
        assert detect_currency(text) == expected

    def test_priority_not_frequency(self):
        """Test that the fixed priority decides, not the count of hits."""
        assert detect_currency("£1 £2 £3 and €4") == CurrencyCode.EUR
        assert detect_currency("10 CAD or 5 INR") == CurrencyCode.INR

    def test_codes_are_case_sensitive(self):
        """Test that lowercase codes are not currency evidence."""
        assert detect_currency("20 eur lunch") == CurrencyCode.USD

    def test_code_inside_word_ignored(self):
        """Test that a code embedded in a longer word does not count."""
        assert detect_currency("10 CADILLAC wash") == CurrencyCode.USD
