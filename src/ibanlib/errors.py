from __future__ import annotations

from typing import Optional


class IbanError(ValueError):
    """Base class for every validation failure raised by ibanlib."""


class InvalidArgumentError(IbanError):
    pass


class IbanFormatError(IbanError):
    pass


class UnknownCountryCodeError(IbanError):
    def __init__(self, code: object):
        self.code = code
        super().__init__(f"Unknown IBAN country code: {code!r}")


class BbanValidationError(IbanError):
    def __init__(self, message: str, country: Optional[str] = None):
        self.country = country
        super().__init__(message)


class InvalidChecksumError(IbanError):
    def __init__(self, iban: str, given: str, expected: str):
        self.iban = iban
        self.given = given
        self.expected = expected
        super().__init__(
            f"Invalid check digits for IBAN {iban}: got {given}, expected {expected}"
        )


class RegistryError(IbanError):
    """Broken country format data (never raised for user input)."""
