"""
MRZ document format detection by line count and line length
"""
from typing import Dict, List, Optional, Tuple
from mrz_fields import DocumentFormat, MRZ_LAYOUTS


def _format_shapes() -> Dict[Tuple[int, int], Tuple[DocumentFormat, Optional[DocumentFormat]]]:
    """Map (line count, line length) to (document format, visa variant with the same shape)"""
    documents = {}
    visas = {}
    for mrz_format, layout in MRZ_LAYOUTS.items():
        shape = (layout["line_count"], layout["line_length"])
        if layout.get("visa"):
            visas[shape] = mrz_format
        else:
            documents[shape] = mrz_format
    return {shape: (mrz_format, visas.get(shape)) for shape, mrz_format in documents.items()}


FORMAT_SHAPES = _format_shapes()


def detect_mrz_format(lines: List[str]) -> Optional[Tuple[DocumentFormat, List[str]]]:
    """
    Classify cleaned MRZ lines into a supported document format

    TD3 / MRV-A and TD2 / MRV-B share the same shape; visas are told apart by
    their document code, which starts with 'V'.

    Args:
        lines: Cleaned MRZ lines, in reading order

    Returns:
        (DocumentFormat, normalized lines) or None if the lines match no format
    """
    if not lines:
        return None

    normalized = [line.upper() for line in lines]
    line_length = len(normalized[0])
    if any(len(line) != line_length for line in normalized):
        return None

    shape = FORMAT_SHAPES.get((len(normalized), line_length))
    if shape is None:
        return None

    mrz_format, visa_format = shape
    if visa_format is not None and normalized[0].startswith('V'):
        mrz_format = visa_format

    return mrz_format, normalized
