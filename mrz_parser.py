"""
MRZ parser: format detection, field extraction and check digit validation
"""
import re
from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, computed_field
from config import config
from check_digit import validate_check_digit
from mrz_fields import (
    DocumentFormat,
    MRZField,
    display_optional_data,
    parse_fields,
    split_names,
    strip_fillers,
)
from mrz_format import detect_mrz_format
from mrz_lines import extract_mrz_lines
from utils import format_mrz_date

MRZ_LINE_PATTERN = re.compile(r'[A-Z0-9<]+')


class MRZResult(BaseModel):
    """Parsed MRZ with per-field check digit validity"""
    model_config = ConfigDict(frozen=True)

    mrz_format: DocumentFormat
    document_type: str
    document_subtype: str
    issuing_state: str
    surname: str
    given_names: str
    document_number: str
    document_number_valid: bool
    nationality: str
    birth_date: str
    birth_date_valid: bool
    sex: str
    expiry_date: str
    expiry_date_valid: bool
    optional_data: str
    optional_data_valid: Optional[bool] = None
    optional_data_2: Optional[str] = None
    composite_valid: Optional[bool] = None
    mrz_lines: Tuple[str, ...]

    @computed_field
    @property
    def all_check_digits_valid(self) -> bool:
        """True when every check digit present in the MRZ is valid"""
        flags = [
            self.document_number_valid,
            self.birth_date_valid,
            self.expiry_date_valid,
            self.optional_data_valid,
            self.composite_valid,
        ]
        return all(flag for flag in flags if flag is not None)

    @property
    def birth_date_iso(self) -> str:
        return format_mrz_date(self.birth_date)

    @property
    def expiry_date_iso(self) -> str:
        return format_mrz_date(self.expiry_date, is_expiry=True)

    def to_dict(self) -> Dict:
        """Serialize to a JSON friendly dictionary"""
        data = self.model_dump(mode="json")
        data["mrz_lines"] = list(self.mrz_lines)
        data["date_of_birth"] = self.birth_date_iso
        data["date_of_expiry"] = self.expiry_date_iso
        return data


def validate_fields(fields: Dict[str, MRZField]) -> Dict[str, MRZField]:
    """
    Run the check digit validation for every field that carries a check digit

    Args:
        fields: Fields as returned by parse_fields

    Returns:
        New dictionary with `is_valid` filled in for checked fields
    """
    validated = {}
    for name, field in fields.items():
        if field.check_digit is not None:
            is_valid = validate_check_digit(field.value, field.check_digit, field.allow_filler_check)
            field = field.model_copy(update={"is_valid": is_valid})
        validated[name] = field
    return validated


def build_result(mrz_format: DocumentFormat, lines: List[str], fields: Dict[str, MRZField]) -> MRZResult:
    """Assemble an MRZResult from validated fields"""
    surname, given_names = split_names(fields["names"].value)
    document_code = fields["document_code"].value
    composite = fields.get("composite")
    optional_data_2 = fields.get("optional_data_2")

    return MRZResult(
        mrz_format=mrz_format,
        document_type=document_code[0],
        document_subtype=strip_fillers(document_code[1:]),
        issuing_state=strip_fillers(fields["issuing_state"].value),
        surname=surname,
        given_names=given_names,
        document_number=strip_fillers(fields["document_number"].value),
        document_number_valid=fields["document_number"].is_valid,
        nationality=strip_fillers(fields["nationality"].value),
        birth_date=fields["birth_date"].value,
        birth_date_valid=fields["birth_date"].is_valid,
        sex=fields["sex"].value,
        expiry_date=fields["expiry_date"].value,
        expiry_date_valid=fields["expiry_date"].is_valid,
        optional_data=display_optional_data(fields["optional_data"].value),
        optional_data_valid=fields["optional_data"].is_valid,
        optional_data_2=display_optional_data(optional_data_2.value) if optional_data_2 else None,
        composite_valid=composite.is_valid if composite else None,
        mrz_lines=tuple(lines),
    )


class MRZParser:
    """
    Parses MRZ lines into an MRZResult

    Anything that does not structurally match a supported format yields
    None; check digit mismatches still produce a result.
    """

    def __init__(self, ocr_correction: Optional[bool] = None):
        self.ocr_correction = config.OCR_CORRECTION if ocr_correction is None else ocr_correction

    def parse(self, mrz_lines: List[str], verbose: bool = False) -> Optional[MRZResult]:
        """
        Parse cleaned MRZ lines

        Args:
            mrz_lines: MRZ lines in reading order
            verbose: Print detailed logs

        Returns:
            MRZResult or None
        """
        try:
            detected = detect_mrz_format(mrz_lines)
            if detected is None:
                if verbose:
                    print(f"    ⚠ No MRZ format matches {len(mrz_lines or [])} line(s): {[len(line) for line in mrz_lines or []]}")
                return None

            mrz_format, lines = detected
            if not all(MRZ_LINE_PATTERN.fullmatch(line) for line in lines):
                if verbose:
                    print(f"    ⚠ {mrz_format.value}: unexpected characters in MRZ lines")
                return None

            fields = validate_fields(parse_fields(mrz_format, lines, self.ocr_correction))
            result = build_result(mrz_format, lines, fields)

            if verbose:
                print(f"    ✓ {mrz_format.value} parsed, all check digits valid: {result.all_check_digits_valid}")

            return result

        except Exception as e:
            if verbose:
                print(f"    ⚠ MRZ parsing failed: {e}")
            return None

    def parse_text(self, text: str, verbose: bool = False) -> Optional[MRZResult]:
        """Clean raw OCR text into MRZ lines and parse them"""
        mrz_lines = extract_mrz_lines(text)
        if mrz_lines is None:
            return None
        return self.parse(mrz_lines, verbose=verbose)


def parse_mrz(mrz_lines: List[str], ocr_correction: Optional[bool] = None) -> Optional[MRZResult]:
    """Parse MRZ lines (convenience function)"""
    return MRZParser(ocr_correction=ocr_correction).parse(mrz_lines)


def parse_mrz_text(text: str, ocr_correction: Optional[bool] = None) -> Optional[MRZResult]:
    """Parse raw OCR text (convenience function)"""
    return MRZParser(ocr_correction=ocr_correction).parse_text(text)
