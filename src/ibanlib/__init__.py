"""IBAN parsing, validation and formatting per ISO 13616-1 and the IBAN Registry."""

from .checksum import compute_check_digits, transcode, verify_check_digits
from .errors import (
    BbanValidationError,
    IbanError,
    IbanFormatError,
    InvalidArgumentError,
    InvalidChecksumError,
    RegistryError,
    UnknownCountryCodeError,
)
from .iban import (
    Iban,
    compact_iban,
    construct,
    format_iban,
    is_valid_iban,
    normalize_iban,
    parse,
)
from .registry import (
    CountryFormat,
    CountryRegistry,
    countries,
    default_registry,
    load_registry,
    lookup,
)
from .structure import BbanStructure, Field, parse_notation

__version__ = "0.3.0"

__all__ = [
    'BbanStructure',
    'BbanValidationError',
    'CountryFormat',
    'CountryRegistry',
    'Field',
    'Iban',
    'IbanError',
    'IbanFormatError',
    'InvalidArgumentError',
    'InvalidChecksumError',
    'RegistryError',
    'UnknownCountryCodeError',
    'compact_iban',
    'compute_check_digits',
    'construct',
    'countries',
    'default_registry',
    'format_iban',
    'is_valid_iban',
    'load_registry',
    'lookup',
    'normalize_iban',
    'parse',
    'parse_notation',
    'transcode',
    'verify_check_digits',
]
