"""The IBAN value type (ISO 13616-1) and its two construction paths.

``parse`` takes a full IBAN string, possibly with blanks, and checks the
generic envelope, the MOD97-10 check digits, the country code and the
country-specific BBAN, in that order. ``construct`` takes a country and a
BBAN and derives fresh check digits. Either way the resulting ``Iban`` is
immutable and fully valid; a failure raises one of the ``ibanlib.errors``
exceptions and nothing is built.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

from ibanlib.checksum import (
    compute_check_digits,
    is_canonical_check_digits,
    verify_check_digits,
)
from ibanlib.errors import (
    BbanValidationError,
    IbanError,
    IbanFormatError,
    InvalidArgumentError,
    InvalidChecksumError,
)
from ibanlib.registry import CountryFormat, CountryRegistry, lookup

log = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
# ISO 13616 envelope, checked before anything country specific
_ENVELOPE_RE = re.compile(r"^[A-Z]{2}[0-9]{2}[A-Z0-9]{1,30}$")
_CHECK_DIGITS_RE = re.compile(r"^[0-9]{2}$")

MIN_RELAXED_LENGTH = 5
GROUP_SIZE = 4

CountryArg = Union[CountryFormat, str]


def normalize_iban(s: Optional[str]) -> str:
    """Remove all whitespace. Case is left alone."""
    return _WHITESPACE_RE.sub("", s or "")


def _validate_bban(country: CountryFormat, bban: str) -> None:
    if len(bban) != country.bban_length:
        raise BbanValidationError(
            f"BBAN for country {country.code} must have {country.bban_length} characters, but was {len(bban)}",
            country=country.code,
        )
    mismatch = country.bban_pattern.first_mismatch(bban)
    if mismatch is not None:
        raise BbanValidationError(
            f"BBAN [{bban}] does not match the required pattern {country.bban_pattern.notation} "
            f"for country code {country.code}: {mismatch.character!r} at position {mismatch.position} "
            f"is not a {mismatch.expected}",
            country=country.code,
        )


@dataclass(frozen=True, eq=False, repr=False)
class Iban:
    """An international bank account number.

    Instances are immutable and always valid: the constructor re-checks the
    BBAN against the country format and verifies the check digits. Prefer
    ``Iban.parse`` and ``Iban.from_bban``.
    """

    country_code: CountryFormat
    checksum: str
    bban: str

    def __post_init__(self) -> None:
        if not isinstance(self.country_code, CountryFormat):
            raise InvalidArgumentError(f"country_code must be a CountryFormat, got {self.country_code!r}")
        if not isinstance(self.bban, str):
            raise BbanValidationError("BBAN must be a string", country=self.country_code.code)
        _validate_bban(self.country_code, self.bban)
        if (
            not isinstance(self.checksum, str)
            or not _CHECK_DIGITS_RE.match(self.checksum)
            or not is_canonical_check_digits(self.checksum)
            or not verify_check_digits(self.country_code.code, self.checksum, self.bban)
        ):
            raise InvalidChecksumError(
                f"{self.country_code.code}{self.checksum}{self.bban}",
                str(self.checksum),
                compute_check_digits(self.country_code.code, self.bban),
            )

    @classmethod
    def parse(
        cls, raw: Optional[str], strict: bool = True, registry: Optional[CountryRegistry] = None
    ) -> "Iban":
        return parse(raw, strict=strict, registry=registry)

    @classmethod
    def from_bban(
        cls, country: Optional[CountryArg], bban: Optional[str], registry: Optional[CountryRegistry] = None
    ) -> "Iban":
        return construct(country, bban, registry=registry)

    @property
    def canonical(self) -> str:
        return f"{self.country_code.code}{self.checksum}{self.bban}"

    @property
    def formatted(self) -> str:
        """Canonical form with a blank after every four characters."""
        s = self.canonical
        return " ".join(s[i:i + GROUP_SIZE] for i in range(0, len(s), GROUP_SIZE))

    @property
    def bban_prefix(self) -> Optional[str]:
        return self.country_code.slice_bban(self.bban)["prefix"]

    @property
    def bank_identifier(self) -> str:
        return self.country_code.slice_bban(self.bban)["bank"] or ""

    @property
    def branch_identifier(self) -> Optional[str]:
        return self.country_code.slice_bban(self.bban)["branch"]

    @property
    def account_number(self) -> str:
        return self.country_code.slice_bban(self.bban)["account"] or ""

    def __str__(self) -> str:
        return self.canonical

    def __repr__(self) -> str:
        return f"Iban({self.canonical!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Iban):
            return NotImplemented
        return self.canonical == other.canonical

    def __hash__(self) -> int:
        return hash(self.canonical)


def parse(raw: Optional[str], strict: bool = True, registry: Optional[CountryRegistry] = None) -> Iban:
    """Parse a full IBAN string; blanks anywhere are ignored.

    With ``strict`` (the default) the compact string must first look like an
    IBAN at all: two upper case letters, two digits, 1-30 upper case letters or
    digits. The relaxed mode skips that and lets the checksum and BBAN checks
    report the problem instead.

    Raises:
        IbanFormatError: empty input or envelope mismatch.
        BbanValidationError: illegal character, wrong BBAN length or structure.
        InvalidChecksumError: check digits do not verify.
        UnknownCountryCodeError: first two characters are not a known country.
    """
    try:
        return _parse(raw, strict, registry)
    except IbanError as exc:
        log.debug("IBAN rejected (%s): %s", type(exc).__name__, exc)
        raise


def _parse(raw: Any, strict: bool, registry: Optional[CountryRegistry]) -> Iban:
    compact = normalize_iban(raw) if isinstance(raw, str) else ""
    if not compact:
        raise IbanFormatError("IBAN must not be empty")

    if strict:
        if not _ENVELOPE_RE.match(compact):
            raise IbanFormatError(
                f"{compact!r} is not a well-formed IBAN: expected 2 upper case letters, "
                f"2 digits and 1 to 30 upper case letters or digits, got {len(compact)} characters"
            )
    elif len(compact) < MIN_RELAXED_LENGTH:
        raise IbanFormatError(f"{compact!r} is too short to be an IBAN")

    code, given, bban = compact[:2], compact[2:4], compact[4:]
    if not _CHECK_DIGITS_RE.match(given):
        raise IbanFormatError(f"Check digits of {compact!r} must be two decimal digits, got {given!r}")

    if not verify_check_digits(code, given, bban) or not is_canonical_check_digits(given):
        raise InvalidChecksumError(compact, given, compute_check_digits(code, bban))

    country = lookup(code, registry)
    _validate_bban(country, bban)
    return Iban(country, given, bban)


def construct(
    country: Optional[CountryArg], bban: Optional[str], registry: Optional[CountryRegistry] = None
) -> Iban:
    """Build an IBAN from a country and a BBAN, computing the check digits.

    ``country`` may be a CountryFormat or its two-letter code. Blanks in the
    BBAN are ignored.
    """
    if country is None:
        raise InvalidArgumentError("Country code must be a valid ISO 3166-1 two-letter ID")
    if not isinstance(country, CountryFormat):
        country = lookup(country, registry)

    flat = normalize_iban(bban) if isinstance(bban, str) else ""
    if not flat:
        raise BbanValidationError("BBAN must not be empty", country=country.code)

    _validate_bban(country, flat)
    iban = Iban(country, compute_check_digits(country.code, flat), flat)
    log.debug("IBAN built for %s: %s", country.code, iban.canonical)
    return iban


def is_valid_iban(raw: Optional[str], strict: bool = True, registry: Optional[CountryRegistry] = None) -> bool:
    try:
        parse(raw, strict=strict, registry=registry)
    except IbanError:
        return False
    return True


def format_iban(raw: Optional[str], strict: bool = True, registry: Optional[CountryRegistry] = None) -> str:
    return parse(raw, strict=strict, registry=registry).formatted


def compact_iban(raw: Optional[str], strict: bool = True, registry: Optional[CountryRegistry] = None) -> str:
    return parse(raw, strict=strict, registry=registry).canonical
