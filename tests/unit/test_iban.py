from __future__ import annotations

import pytest

from ibanlib import (
    Iban,
    compact_iban,
    construct,
    format_iban,
    is_valid_iban,
    lookup,
    normalize_iban,
    parse,
)
from ibanlib.errors import (
    BbanValidationError,
    IbanError,
    IbanFormatError,
    InvalidArgumentError,
    InvalidChecksumError,
    UnknownCountryCodeError,
)


def test_parse_with_blanks() -> None:
    iban = parse("DE44 5001 0517 5407 3249 31")
    assert iban.country_code is lookup("DE")
    assert iban.bban == "500105175407324931"
    assert iban.checksum == "44"
    assert iban.canonical == "DE44500105175407324931"
    assert str(iban) == "DE44500105175407324931"


def test_parse_more_countries() -> None:
    iban = parse("VG96VPVG0000012345678901")
    assert iban.country_code.code == "VG"
    assert iban.bban == "VPVG0000012345678901"
    assert iban.checksum == "96"

    iban = parse("MT84 MALT 0110 0001 2345 MTLC AST0 01S")
    assert iban.country_code.code == "MT"
    assert iban.bban == "MALT011000012345MTLCAST001S"
    assert iban.checksum == "84"


def test_formatted_output() -> None:
    assert parse("XK051212012345678906").formatted == "XK05 1212 0123 4567 8906"
    jo = construct(lookup("JO"), "CBJO0010000000000131000302")
    assert jo.formatted == "JO94 CBJO 0010 0000 0000 0131 0003 02"
    assert jo.formatted.replace(" ", "") == jo.canonical


def test_construct_computes_check_digits() -> None:
    iban = construct(lookup("JO"), "CBJO0010000000000131000302")
    assert iban.checksum == "94"
    assert iban.canonical == "JO94CBJO0010000000000131000302"

    iban = construct("DE", "5001 0517 5407 3249 31")
    assert iban.country_code.code == "DE"
    assert iban.checksum == "44"
    assert iban.bban == "500105175407324931"


def test_construct_strips_leading_and_trailing_blanks() -> None:
    iban = construct(lookup("LV"), " BANK 0000 4351 9500 1 ")
    assert iban.checksum == "80"
    assert iban.bban == "BANK0000435195001"


def test_construct_is_deterministic() -> None:
    a = construct("GB", "NWBK60161331926819")
    b = construct("GB", "NWBK 6016 1331 9268 19")
    assert a.checksum == b.checksum == "29"
    assert a == b
    assert hash(a) == hash(b)


def test_construct_then_parse_round_trip() -> None:
    built = construct("IT", "X0542811101000000123456")
    parsed = parse(built.canonical)
    assert parsed == built
    assert (parsed.country_code, parsed.bban, parsed.checksum) == (built.country_code, built.bban, built.checksum)


@pytest.mark.parametrize(
    "spaced",
    [
        "DE44500105175407324931",
        " DE44 5001 0517 5407 3249 31 ",
        "D E 4 4 5 0 0 1 0 5 1 7 5 4 0 7 3 2 4 9 3 1",
        "DE44\t5001\n0517 5407  3249 31",
    ],
)
def test_whitespace_does_not_change_result(spaced: str) -> None:
    assert parse(spaced).canonical == "DE44500105175407324931"


def test_structural_accessors() -> None:
    gb = parse("GB29 NWBK 6016 1331 9268 19")
    assert gb.bban_prefix is None
    assert gb.bank_identifier == "NWBK"
    assert gb.branch_identifier == "601613"
    assert gb.account_number == "31926819"

    it = parse("IT60X0542811101000000123456")
    assert it.bban_prefix == "X"
    assert it.bank_identifier == "05428"
    assert it.branch_identifier == "11101"
    assert it.account_number == "000000123456"

    de = parse("DE89370400440532013000")
    assert de.branch_identifier is None
    assert de.bank_identifier == "37040044"


def test_equality_and_repr() -> None:
    a = parse("DE44500105175407324931")
    b = parse("de44500105175407324931".upper())
    assert a == b
    assert a != parse("DE89370400440532013000")
    assert a != "DE44500105175407324931"
    assert len({a, b}) == 1
    assert repr(a) == "Iban('DE44500105175407324931')"


def test_iban_is_immutable() -> None:
    iban = parse("DE44500105175407324931")
    with pytest.raises(AttributeError):
        iban.checksum = "45"  # type: ignore[misc]


def test_direct_construction_is_validated() -> None:
    de = lookup("DE")
    assert Iban(de, "44", "500105175407324931").canonical == "DE44500105175407324931"
    with pytest.raises(InvalidChecksumError):
        Iban(de, "45", "500105175407324931")
    with pytest.raises(BbanValidationError):
        Iban(de, "44", "50010517540732493")
    with pytest.raises(InvalidArgumentError):
        Iban("DE", "44", "500105175407324931")  # type: ignore[arg-type]


def test_classmethod_aliases() -> None:
    assert Iban.parse("XK051212012345678906").canonical == "XK051212012345678906"
    assert Iban.from_bban("XK", "1212012345678906").checksum == "05"


# --- parse failures ---------------------------------------------------------


@pytest.mark.parametrize("raw", [None, "", "   ", "\t\n"])
def test_parse_empty_input(raw) -> None:
    with pytest.raises(IbanFormatError):
        parse(raw)


def test_parse_wrong_check_digits() -> None:
    with pytest.raises(InvalidChecksumError) as exc:
        parse("DE17 5001 0517 5407 3249 31")
    assert exc.value.given == "17"
    assert exc.value.expected == "44"
    assert "expected 44" in str(exc.value)


def test_parse_unknown_country() -> None:
    with pytest.raises(UnknownCountryCodeError) as exc:
        parse("ZZ82500105175407324931789123789237")
    assert exc.value.code == "ZZ"


def test_parse_bban_too_long() -> None:
    # check digits are valid, only the German length rule fails
    with pytest.raises(BbanValidationError) as exc:
        parse("DE19 5001 0517 5407 3249 310")
    assert exc.value.country == "DE"
    assert "must have 18 characters, but was 19" in str(exc.value)


def test_parse_bban_too_short() -> None:
    with pytest.raises(BbanValidationError) as exc:
        parse("DE88 5001 0517 5407 3249 3")
    assert "but was 17" in str(exc.value)


def test_parse_bban_pattern_mismatch() -> None:
    with pytest.raises(BbanValidationError) as exc:
        parse("GB58123460161331926819")
    msg = str(exc.value)
    assert "4!a6!n8!n" in msg
    assert "position 0" in msg
    assert "GB" in msg


def test_parse_overlong_input_fails_envelope() -> None:
    with pytest.raises(IbanFormatError):
        parse("DE445001051754073249317891237892378")


def test_parse_illegal_character() -> None:
    with pytest.raises(IbanFormatError):
        parse("DE44 5001 0517 54$7 3249 31")
    with pytest.raises(BbanValidationError) as exc:
        parse("DE44 5001 0517 54$7 3249 31", strict=False)
    assert "'$'" in str(exc.value)


def test_parse_lower_case_country() -> None:
    with pytest.raises(IbanFormatError):
        parse("de44500105175407324931")
    # relaxed mode transcodes lower case letters, then the lookup is exact
    with pytest.raises(UnknownCountryCodeError):
        parse("de44500105175407324931", strict=False)


def test_parse_relaxed_needs_digit_check_digits() -> None:
    with pytest.raises(IbanFormatError):
        parse("DEXX500105175407324931", strict=False)
    with pytest.raises(IbanFormatError):
        parse("DE44", strict=False)


def test_parse_rejects_congruent_but_non_canonical_check_digits() -> None:
    assert parse("DE02500105175407324911").checksum == "02"
    # 99 = 2 (mod 97): passes the remainder test but is never generated
    with pytest.raises(InvalidChecksumError) as exc:
        parse("DE99500105175407324911")
    assert exc.value.expected == "02"


def test_all_errors_are_value_errors() -> None:
    for exc_type in (
        IbanFormatError,
        UnknownCountryCodeError,
        BbanValidationError,
        InvalidChecksumError,
        InvalidArgumentError,
    ):
        assert issubclass(exc_type, IbanError)
        assert issubclass(exc_type, ValueError)


# --- construct failures -----------------------------------------------------


def test_construct_requires_country() -> None:
    with pytest.raises(InvalidArgumentError):
        construct(None, "500105175407324931")


def test_construct_unknown_country() -> None:
    with pytest.raises(UnknownCountryCodeError):
        construct("XX", "500105175407324931")


@pytest.mark.parametrize("bban", [None, "", "   "])
def test_construct_empty_bban(bban) -> None:
    with pytest.raises(BbanValidationError):
        construct("DE", bban)


def test_construct_bban_too_long() -> None:
    with pytest.raises(BbanValidationError) as exc:
        construct(lookup("DE"), "5001 0517 5407 3249 310")
    assert "must have 18 characters, but was 19" in str(exc.value)


def test_construct_wrong_field_types() -> None:
    with pytest.raises(BbanValidationError) as exc:
        construct(lookup("BG"), "1234567890123456 78")
    assert "does not match the required pattern" in str(exc.value)


def test_construct_rejects_lower_case_alphanumerics() -> None:
    with pytest.raises(BbanValidationError):
        construct("MT", "MALT011000012345mtlcast001S")


# --- helpers ----------------------------------------------------------------


def test_normalize_iban() -> None:
    assert normalize_iban(" DE44 5001\t0517 ") == "DE4450010517"
    assert normalize_iban(None) == ""
    assert normalize_iban("de44") == "de44"


def test_is_valid_iban() -> None:
    assert is_valid_iban("DE44 5001 0517 5407 3249 31")
    assert not is_valid_iban("DE17 5001 0517 5407 3249 31")
    assert not is_valid_iban("")
    assert not is_valid_iban(None)
    assert not is_valid_iban("ZZ82500105175407324931789123789237")


def test_format_and_compact_helpers() -> None:
    assert format_iban("XK051212012345678906") == "XK05 1212 0123 4567 8906"
    assert compact_iban("XK05 1212 0123 4567 8906") == "XK051212012345678906"
    with pytest.raises(InvalidChecksumError):
        format_iban("XK061212012345678906")
