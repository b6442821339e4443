"""
MRZ field layouts for TD1, TD2, TD3, MRV-A and MRV-B documents
Slices fixed-width MRZ lines into fields and applies OCR corrections per field kind
"""
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict


class DocumentFormat(str, Enum):
    """Supported MRZ document formats"""
    TD1 = "TD1"    # ID cards, 3 lines x 30
    TD2 = "TD2"    # ID cards, 2 lines x 36
    TD3 = "TD3"    # Passports, 2 lines x 44
    MRVA = "MRVA"  # Visas, 2 lines x 44
    MRVB = "MRVB"  # Visas, 2 lines x 36


class FieldKind(str, Enum):
    """Semantic kind of an MRZ field, selects the OCR correction table"""
    TEXT = "text"      # names, never corrected
    ALPHA = "alpha"    # document code, issuing state, nationality
    ALNUM = "alnum"    # document number, optional data
    DATE = "date"      # YYMMDD
    SEX = "sex"
    DIGIT = "digit"    # check digits


# Common OCR character confusions
TO_DIGIT = MappingProxyType({
    'O': '0', 'Q': '0', 'U': '0', 'D': '0',
    'I': '1',
    'Z': '2',
    'S': '5',
    'G': '6',
    'B': '8',
})

TO_LETTER = MappingProxyType({
    '0': 'O',
    '1': 'I',
    '2': 'Z',
    '5': 'S',
    '6': 'G',
    '8': 'B',
})

SEX_FIXES = MappingProxyType({
    'P': 'F',
})

OCR_CORRECTIONS = MappingProxyType({
    FieldKind.ALPHA: TO_LETTER,
    FieldKind.DATE: TO_DIGIT,
    FieldKind.DIGIT: TO_DIGIT,
    FieldKind.SEX: SEX_FIXES,
})


# Field layouts. "pos" is (start, end) on the given line, end exclusive;
# "check" is the position of the field's check digit on the same line.
_NAMES_TD3 = {"line": 0, "pos": (5, 44), "kind": FieldKind.TEXT}
_NAMES_TD2 = {"line": 0, "pos": (5, 36), "kind": FieldKind.TEXT}

_LINE1_HEADER = {
    "document_code": {"line": 0, "pos": (0, 2), "kind": FieldKind.ALPHA},
    "issuing_state": {"line": 0, "pos": (2, 5), "kind": FieldKind.ALPHA},
}

_LINE2_COMMON = {
    "document_number": {"line": 1, "pos": (0, 9), "kind": FieldKind.ALNUM, "check": 9},
    "nationality": {"line": 1, "pos": (10, 13), "kind": FieldKind.ALPHA},
    "birth_date": {"line": 1, "pos": (13, 19), "kind": FieldKind.DATE, "check": 19},
    "sex": {"line": 1, "pos": (20, 21), "kind": FieldKind.SEX},
    "expiry_date": {"line": 1, "pos": (21, 27), "kind": FieldKind.DATE, "check": 27},
}

MRZ_LAYOUTS = MappingProxyType({
    DocumentFormat.TD1: {
        "line_count": 3,
        "line_length": 30,
        "fields": {
            **_LINE1_HEADER,
            "document_number": {"line": 0, "pos": (5, 14), "kind": FieldKind.ALNUM, "check": 14},
            "optional_data": {"line": 0, "pos": (15, 30), "kind": FieldKind.ALNUM},
            "birth_date": {"line": 1, "pos": (0, 6), "kind": FieldKind.DATE, "check": 6},
            "sex": {"line": 1, "pos": (7, 8), "kind": FieldKind.SEX},
            "expiry_date": {"line": 1, "pos": (8, 14), "kind": FieldKind.DATE, "check": 14},
            "nationality": {"line": 1, "pos": (15, 18), "kind": FieldKind.ALPHA},
            "optional_data_2": {"line": 1, "pos": (18, 29), "kind": FieldKind.ALNUM},
            "names": {"line": 2, "pos": (0, 30), "kind": FieldKind.TEXT},
        },
        "composite": {"line": 1, "check": 29, "segments": [(0, 5, 30), (1, 0, 7), (1, 8, 15), (1, 18, 29)]},
    },
    DocumentFormat.TD2: {
        "line_count": 2,
        "line_length": 36,
        "fields": {
            **_LINE1_HEADER,
            "names": _NAMES_TD2,
            **_LINE2_COMMON,
            "optional_data": {"line": 1, "pos": (28, 35), "kind": FieldKind.ALNUM},
        },
        "composite": {"line": 1, "check": 35, "segments": [(1, 0, 10), (1, 13, 20), (1, 21, 35)]},
    },
    DocumentFormat.TD3: {
        "line_count": 2,
        "line_length": 44,
        "fields": {
            **_LINE1_HEADER,
            "names": _NAMES_TD3,
            **_LINE2_COMMON,
            # '<' in place of the check digit is permitted when the personal number is empty
            "optional_data": {"line": 1, "pos": (28, 42), "kind": FieldKind.ALNUM, "check": 42, "allow_filler": True},
        },
        "composite": {"line": 1, "check": 43, "segments": [(1, 0, 10), (1, 13, 20), (1, 21, 43)]},
    },
    DocumentFormat.MRVA: {
        "line_count": 2,
        "line_length": 44,
        "visa": True,
        "fields": {
            **_LINE1_HEADER,
            "names": _NAMES_TD3,
            **_LINE2_COMMON,
            "optional_data": {"line": 1, "pos": (28, 44), "kind": FieldKind.ALNUM},
        },
        "composite": None,
    },
    DocumentFormat.MRVB: {
        "line_count": 2,
        "line_length": 36,
        "visa": True,
        "fields": {
            **_LINE1_HEADER,
            "names": _NAMES_TD2,
            **_LINE2_COMMON,
            "optional_data": {"line": 1, "pos": (28, 36), "kind": FieldKind.ALNUM},
        },
        "composite": None,
    },
})


class MRZField(BaseModel):
    """
    A positioned substring of the MRZ

    For the composite field, `raw`/`value` hold the concatenated composite
    data and the position is that of the composite check digit.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    line: int
    start: int
    end: int
    kind: FieldKind
    raw: str
    value: str
    check_digit: Optional[str] = None
    allow_filler_check: bool = False
    is_valid: Optional[bool] = None


def correct_value(value: str, kind: FieldKind) -> str:
    """
    Fix common OCR errors in a field according to what the field may contain

    Args:
        value: Raw field text
        kind: Field kind

    Returns:
        Corrected field text (unchanged for names and alphanumeric fields)
    """
    fixes = OCR_CORRECTIONS.get(kind)
    if not fixes:
        return value
    return ''.join(fixes.get(char, char) for char in value)


def _make_field(name: str, field_spec: Dict, lines: List[str], ocr_correction: bool) -> MRZField:
    line = lines[field_spec["line"]]
    start, end = field_spec["pos"]
    raw = line[start:end]
    value = correct_value(raw, field_spec["kind"]) if ocr_correction else raw

    check_digit = None
    if "check" in field_spec:
        check_digit = line[field_spec["check"]]
        if ocr_correction:
            check_digit = correct_value(check_digit, FieldKind.DIGIT)

    return MRZField(
        name=name,
        line=field_spec["line"],
        start=start,
        end=end,
        kind=field_spec["kind"],
        raw=raw,
        value=value,
        check_digit=check_digit,
        allow_filler_check=field_spec.get("allow_filler", False),
    )


def _split_long_document_number(
    fields: Dict[str, MRZField], lines: List[str], ocr_correction: bool
) -> Optional[Tuple[int, int]]:
    """
    TD1 document numbers longer than 9 characters

    A filler in the check digit position means the number continues in the
    optional data; the last character before the next filler is the check digit.

    Returns:
        (line, position) of the relocated check digit, or None if the number
        fits its field
    """
    number = fields["document_number"]
    optional = fields["optional_data"]
    if number.check_digit != '<':
        return None

    overflow = optional.raw.split('<', 1)[0]
    if not overflow:
        return None

    raw_number = number.raw + overflow[:-1]
    check_digit = overflow[-1]
    if ocr_correction:
        check_digit = correct_value(check_digit, FieldKind.DIGIT)

    fields["document_number"] = number.model_copy(update={
        "end": optional.start + len(overflow) - 1,
        "raw": raw_number,
        "value": raw_number,
        "check_digit": check_digit,
    })

    rest_start = optional.start + len(overflow) + 1
    rest = lines[optional.line][rest_start:optional.end]
    fields["optional_data"] = optional.model_copy(update={
        "start": rest_start,
        "raw": rest,
        "value": rest,
    })

    return optional.line, optional.start + len(overflow) - 1


def _composite_field(
    field_spec: Dict,
    layout_fields: Dict,
    lines: List[str],
    ocr_correction: bool,
    extra_checks: Tuple[Tuple[int, int], ...] = (),
) -> MRZField:
    raw = ''.join(lines[line][start:end] for line, start, end in field_spec["segments"])
    check_digit = lines[field_spec["line"]][field_spec["check"]]
    value = raw
    if ocr_correction:
        value = ''.join(
            _corrected_segment(lines, line, start, end, layout_fields, extra_checks)
            for line, start, end in field_spec["segments"]
        )
        check_digit = correct_value(check_digit, FieldKind.DIGIT)

    return MRZField(
        name="composite",
        line=field_spec["line"],
        start=field_spec["check"],
        end=field_spec["check"] + 1,
        kind=FieldKind.DIGIT,
        raw=raw,
        value=value,
        check_digit=check_digit,
    )


def _corrected_segment(
    lines: List[str],
    line_idx: int,
    start: int,
    end: int,
    layout_fields: Dict,
    extra_checks: Tuple[Tuple[int, int], ...] = (),
) -> str:
    """
    Apply per-position corrections to a slice of a line using the layout it belongs to

    `extra_checks` lists (line, position) pairs of check digits that moved out
    of their layout position (long TD1 document numbers).
    """
    chars = list(lines[line_idx][start:end])
    for field_spec in layout_fields.values():
        if field_spec["line"] != line_idx:
            continue
        f_start, f_end = field_spec["pos"]
        for pos in range(max(start, f_start), min(end, f_end)):
            chars[pos - start] = correct_value(chars[pos - start], field_spec["kind"])
        check = field_spec.get("check")
        if check is not None and start <= check < end:
            chars[check - start] = correct_value(chars[check - start], FieldKind.DIGIT)
    for check_line, check in extra_checks:
        if check_line == line_idx and start <= check < end:
            chars[check - start] = correct_value(chars[check - start], FieldKind.DIGIT)
    return ''.join(chars)


def parse_fields(mrz_format: DocumentFormat, lines: List[str], ocr_correction: bool = True) -> Dict[str, MRZField]:
    """
    Slice MRZ lines into fields for the given document format

    Check digits are read but not validated here.

    Args:
        mrz_format: Detected document format
        lines: Normalized MRZ lines matching the format's shape
        ocr_correction: Apply OCR corrections to numeric and alphabetic fields

    Returns:
        Dictionary of field name to MRZField, including "composite" when the
        format has a composite check digit
    """
    layout = MRZ_LAYOUTS[mrz_format]
    fields = {
        name: _make_field(name, field_spec, lines, ocr_correction)
        for name, field_spec in layout["fields"].items()
    }

    extra_checks = ()
    if mrz_format == DocumentFormat.TD1:
        moved_check = _split_long_document_number(fields, lines, ocr_correction)
        if moved_check is not None:
            extra_checks = (moved_check,)

    if layout["composite"] is not None:
        fields["composite"] = _composite_field(
            layout["composite"], layout["fields"], lines, ocr_correction, extra_checks
        )

    return fields


def split_names(names: str) -> Tuple[str, str]:
    """
    Split the MRZ name field into surname and given names

    Args:
        names: Name field, e.g. "ERIKSSON<<ANNA<MARIA<<<<"

    Returns:
        (surname, given_names) with fillers turned into single spaces
    """
    parts = names.split("<<", 1)
    surname = _fillers_to_spaces(parts[0])
    given_names = _fillers_to_spaces(parts[1]) if len(parts) > 1 else ""
    return surname, given_names


def strip_fillers(value: str) -> str:
    """Remove every filler character (document numbers)"""
    return value.replace('<', '')


def _fillers_to_spaces(value: str) -> str:
    return ' '.join(word for word in value.split('<') if word)


def display_optional_data(value: str) -> str:
    """Optional data with fillers turned into spaces"""
    return _fillers_to_spaces(value)
