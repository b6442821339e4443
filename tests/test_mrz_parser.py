import pytest
from pydantic import ValidationError

from mrz_fields import DocumentFormat
from mrz_parser import MRZParser, parse_mrz, parse_mrz_text
from mrz_samples import (
    MRVA_LINES,
    MRVB_LINES,
    TD1_LINES,
    TD1_LONG_NUMBER_LINES,
    TD1_LONG_NUMBER_MISREAD_LINES,
    TD2_LINES,
    TD3_EMPTY_PERSONAL_NUMBER,
    TD3_LINES,
    bump_digit,
    replace_char,
)


def test_parse_td3_specimen():
    result = parse_mrz(TD3_LINES)

    assert result.mrz_format == DocumentFormat.TD3
    assert result.document_type == "P"
    assert result.document_subtype == ""
    assert result.issuing_state == "UTO"
    assert result.surname == "ERIKSSON"
    assert result.given_names == "ANNA MARIA"
    assert result.document_number == "L898902C3"
    assert result.nationality == "UTO"
    assert result.birth_date == "740812"
    assert result.sex == "F"
    assert result.expiry_date == "120415"
    assert result.optional_data == "ZE184226B"
    assert result.optional_data_2 is None
    assert result.document_number_valid
    assert result.birth_date_valid
    assert result.expiry_date_valid
    assert result.optional_data_valid
    assert result.composite_valid
    assert result.all_check_digits_valid
    assert result.mrz_lines == tuple(TD3_LINES)


def test_parse_td3_empty_personal_number():
    result = parse_mrz(TD3_EMPTY_PERSONAL_NUMBER)
    assert result.optional_data == ""
    assert result.optional_data_valid is True
    assert result.all_check_digits_valid


def test_parse_td1_specimen():
    result = parse_mrz(TD1_LINES)

    assert result.mrz_format == DocumentFormat.TD1
    assert result.document_type == "I"
    assert result.document_number == "D23145890"
    assert result.surname == "ERIKSSON"
    assert result.given_names == "ANNA MARIA"
    assert result.birth_date == "740812"
    assert result.expiry_date == "120415"
    assert result.nationality == "UTO"
    assert result.optional_data == ""
    assert result.optional_data_2 == ""
    assert result.optional_data_valid is None
    assert result.composite_valid is True
    assert result.all_check_digits_valid


def test_parse_td1_long_document_number():
    result = parse_mrz(TD1_LONG_NUMBER_LINES)
    assert result.document_number == "D23145890123"
    assert result.document_number_valid
    assert result.composite_valid
    assert result.all_check_digits_valid


def test_parse_td1_long_document_number_with_misread_check_digit():
    result = MRZParser(ocr_correction=True).parse(TD1_LONG_NUMBER_MISREAD_LINES)
    assert result.document_number == "D23145890125"
    assert result.document_number_valid
    assert result.composite_valid
    assert result.all_check_digits_valid

    uncorrected = MRZParser(ocr_correction=False).parse(TD1_LONG_NUMBER_MISREAD_LINES)
    assert uncorrected.document_number_valid is False
    assert uncorrected.composite_valid is False


def test_parse_td2_specimen():
    result = parse_mrz(TD2_LINES)
    assert result.mrz_format == DocumentFormat.TD2
    assert result.document_number == "D23145890"
    assert result.surname == "ERIKSSON"
    assert result.composite_valid is True
    assert result.all_check_digits_valid


def test_parse_mrva_specimen():
    result = parse_mrz(MRVA_LINES)
    assert result.mrz_format == DocumentFormat.MRVA
    assert result.document_type == "V"
    assert result.document_number == "L8988901C"
    assert result.nationality == "XXX"
    assert result.birth_date == "400907"
    assert result.expiry_date == "961210"
    assert result.optional_data == "6ZE184226B"
    assert result.optional_data_valid is None
    assert result.composite_valid is None
    assert result.all_check_digits_valid


def test_parse_mrvb_specimen():
    result = parse_mrz(MRVB_LINES)
    assert result.mrz_format == DocumentFormat.MRVB
    assert result.optional_data == ""
    assert result.composite_valid is None
    assert result.all_check_digits_valid


@pytest.mark.parametrize("position, flag", [
    (9, "document_number_valid"),
    (19, "birth_date_valid"),
    (27, "expiry_date_valid"),
    (42, "optional_data_valid"),
    (43, "composite_valid"),
])
def test_wrong_check_digit_fails_its_field_and_the_aggregate(position, flag):
    lines = [TD3_LINES[0], bump_digit(TD3_LINES[1], position)]
    result = parse_mrz(lines)

    assert result is not None
    assert getattr(result, flag) is False
    assert result.all_check_digits_valid is False


def test_aggregate_is_conjunction_of_present_flags():
    lines = [TD3_LINES[0], bump_digit(TD3_LINES[1], 43)]
    result = parse_mrz(lines)
    assert result.document_number_valid
    assert result.birth_date_valid
    assert result.expiry_date_valid
    assert result.optional_data_valid
    assert result.composite_valid is False
    assert result.all_check_digits_valid is False


def test_ocr_correction_fixes_confused_characters():
    line2 = replace_char(TD3_LINES[1], 15, "O")   # birth date 74O812
    line2 = replace_char(line2, 12, "0")          # nationality UT0
    line2 = replace_char(line2, 20, "P")          # sex P
    lines = [TD3_LINES[0], line2]

    corrected = MRZParser(ocr_correction=True).parse(lines)
    assert corrected.birth_date == "740812"
    assert corrected.nationality == "UTO"
    assert corrected.sex == "F"
    assert corrected.all_check_digits_valid

    uncorrected = MRZParser(ocr_correction=False).parse(lines)
    assert uncorrected.birth_date == "74O812"
    assert uncorrected.birth_date_valid is False
    assert uncorrected.all_check_digits_valid is False


def test_invalid_characters_yield_none():
    lines = [TD3_LINES[0], replace_char(TD3_LINES[1], 30, "#")]
    assert parse_mrz(lines) is None


def test_unsupported_shape_yields_none():
    assert parse_mrz([TD3_LINES[0]]) is None
    assert parse_mrz([TD3_LINES[0], TD3_LINES[1][:-1]]) is None
    assert parse_mrz([]) is None


def test_calendar_invalid_dates_are_accepted_as_written():
    # Month 99 with matching check digit
    line2 = TD3_LINES[1][:13] + "749940" + "5" + TD3_LINES[1][20:]
    result = parse_mrz([TD3_LINES[0], line2])
    assert result.birth_date == "749940"
    assert result.birth_date_valid
    assert result.birth_date_iso == ""


def test_parse_text_with_ocr_noise():
    text = "UTOPIA PASSPORT\n" + TD3_LINES[0].replace("<<<<", "<< <<") + "\n\n" + TD3_LINES[1] + "\n"
    result = parse_mrz_text(text)
    assert result.mrz_format == DocumentFormat.TD3
    assert result.all_check_digits_valid


def test_parse_text_without_mrz():
    assert parse_mrz_text("") is None
    assert parse_mrz_text("hello world") is None


def test_result_is_immutable():
    result = parse_mrz(TD3_LINES)
    with pytest.raises(ValidationError):
        result.surname = "SMITH"


def test_to_dict():
    data = parse_mrz(TD3_LINES).to_dict()
    assert data["mrz_format"] == "TD3"
    assert data["all_check_digits_valid"] is True
    assert data["date_of_birth"] == "1974-08-12"
    assert data["date_of_expiry"] == "2012-04-15"
    assert data["mrz_lines"] == TD3_LINES
