"""
Unit tests for submitter mobile normalization and matching.

Tests cover:
- Characters removed by normalization
- Characters deliberately kept (documented behavior)
- Country-code tolerant matching
- Digit counting used by entry validation
"""

import pytest

from app.registry.modules.submitters.utils import mobile_digit_count, mobiles_match, normalize_mobile


class TestNormalizeMobile:
    """Tests for normalize_mobile()"""

    def test_removes_spaces(self):
        assert normalize_mobile("98765 43210") == "9876543210"
        assert normalize_mobile(" 98765\t43210 ") == "9876543210"

    def test_removes_plus_dash_parens(self):
        assert normalize_mobile("+91-98765-43210") == "919876543210"
        assert normalize_mobile("(022) 2345 6789") == "02223456789"

    def test_keeps_other_characters(self):
        """Only whitespace and + - ( ) are removed"""
        assert normalize_mobile("98765.43210") == "98765.43210"
        assert normalize_mobile("98765/43210") == "98765/43210"

    def test_empty_and_none(self):
        assert normalize_mobile("") == ""
        assert normalize_mobile(None) == ""
        assert normalize_mobile("  -  ") == ""

    @pytest.mark.parametrize("raw", ["+91 98765 43210", "(98765) 43210", "9876543210", "98765.43210"])
    def test_idempotent(self, raw):
        once = normalize_mobile(raw)
        assert normalize_mobile(once) == once


class TestMobilesMatch:
    """Tests for mobiles_match()"""

    def test_same_number_different_formatting(self):
        assert mobiles_match("98765 43210", "9876543210")
        assert mobiles_match("98765-43210", "(98765) 43210")

    def test_country_code_on_either_side(self):
        assert mobiles_match("+91 98765 43210", "9876543210")
        assert mobiles_match("9876543210", "+91 98765 43210")

    def test_different_country_codes_do_not_match(self):
        """Suffix matching needs one side to be a bare national number"""
        assert not mobiles_match("+91 98765 43210", "+44 98765 43210")
        assert not mobiles_match("919876543210", "449876543210")
        assert not mobiles_match("+91 98765 43210", "+1 (987) 654-3210")

    def test_different_numbers(self):
        assert not mobiles_match("9876543210", "9876543211")

    def test_short_numbers_need_exact_match(self):
        assert mobiles_match("12345", "123 45")
        assert not mobiles_match("912345", "12345")

    def test_empty_never_matches(self):
        assert not mobiles_match("", "")
        assert not mobiles_match(None, "9876543210")
        assert not mobiles_match("9876543210", "   ")


class TestMobileDigitCount:
    """Tests for mobile_digit_count()"""

    def test_counts_digits_only(self):
        assert mobile_digit_count("+91 98765 43210") == 12
        assert mobile_digit_count("98765") == 5
        assert mobile_digit_count("abc") == 0
        assert mobile_digit_count(None) == 0
