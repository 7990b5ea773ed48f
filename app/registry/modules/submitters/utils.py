from __future__ import annotations

import re

_STRIP_CHARS = re.compile(r"[\s+\-()]+")
_NON_DIGITS = re.compile(r"\D+")

# Length of a national mobile number; longer normalized forms carry a country code.
NATIONAL_NUMBER_LENGTH = 10


def normalize_mobile(mobile: str | None) -> str:
    """
    Reduce a free-text phone number to the form used for matching.

    Algorithm:
    1. Remove all whitespace
    2. Remove the characters + - ( )
    3. Trim

    Examples:
        >>> normalize_mobile("+91 98765-43210")
        '919876543210'
        >>> normalize_mobile("(022) 2345 6789")
        '02223456789'
        >>> normalize_mobile("")
        ''

    Edge Cases (Documented Behavior):
    - Only the listed characters are removed. Dots, slashes and letters are
      kept, so "98765.43210" stays "98765.43210".
    - Country codes are NOT stripped: "+91 98765 43210" -> "919876543210".
      Use mobiles_match() when a bare national number must find it.

    Idempotent: normalize_mobile(normalize_mobile(x)) == normalize_mobile(x).
    """
    return _STRIP_CHARS.sub("", mobile or "").strip()


def mobile_digit_count(mobile: str | None) -> int:
    """Number of digits in the input, ignoring everything else."""
    return len(_NON_DIGITS.sub("", mobile or ""))


def mobiles_match(stored: str | None, wanted: str | None) -> bool:
    """
    True if two phone strings refer to the same number.

    Normalized forms must be equal, or one side must be a bare national
    number (exactly NATIONAL_NUMBER_LENGTH characters) that the other, longer
    side ends with ("919876543210" matches "9876543210"). Two numbers that
    both carry a prefix only match when equal, so "919876543210" does not
    match "449876543210".
    """
    a = normalize_mobile(stored)
    b = normalize_mobile(wanted)
    if not a or not b:
        return False
    if a == b:
        return True
    short, long_ = sorted((a, b), key=len)
    if len(short) != NATIONAL_NUMBER_LENGTH or len(long_) <= NATIONAL_NUMBER_LENGTH:
        return False
    return long_.endswith(short)
