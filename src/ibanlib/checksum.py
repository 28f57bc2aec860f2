"""ISO/IEC 7064 MOD97-10 check digits, as used by ISO 13616."""

from __future__ import annotations

import string

from ibanlib.errors import BbanValidationError

PLACEHOLDER = "00"

_LETTER_VALUES = {
    ch: str(i + 10) for i, ch in enumerate(string.ascii_uppercase)
}
_LETTER_VALUES.update({ch.lower(): v for ch, v in _LETTER_VALUES.items()})
_DIGITS = frozenset(string.digits)


def transcode(text: str) -> str:
    """Replace every letter by its two-digit value (A=10 .. Z=35).

    Digits pass through unchanged. Anything else raises BbanValidationError.
    """
    out = []
    for ch in text:
        if ch in _DIGITS:
            out.append(ch)
            continue
        value = _LETTER_VALUES.get(ch)
        if value is None:
            raise BbanValidationError(
                f"Illegal character {ch!r} in BBAN. May only contain digits and letters"
            )
        out.append(value)
    return "".join(out)


def mod97(digits: str) -> int:
    # python int is arbitrary precision, no chunking needed
    return int(digits) % 97


def compute_check_digits(country_code: str, bban: str) -> str:
    """Fresh check digits for BBAN + country code, always in 02..98."""
    remainder = mod97(transcode(bban + country_code + PLACEHOLDER))
    return f"{98 - remainder:02d}"


def verify_check_digits(country_code: str, check_digits: str, bban: str) -> bool:
    """ISO 7064 verification of the rotated IBAN: valid iff remainder is 1."""
    return mod97(transcode(bban + country_code + check_digits)) == 1


def is_canonical_check_digits(check_digits: str) -> bool:
    """Only 02..98 can come out of compute_check_digits."""
    if len(check_digits) != 2 or not all(ch in _DIGITS for ch in check_digits):
        return False
    return 2 <= int(check_digits) <= 98
