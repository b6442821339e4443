"""
MRZ line extraction from raw OCR text
"""
from typing import List, Optional


def extract_mrz_lines(text: str) -> Optional[List[str]]:
    """
    Clean OCR output into candidate MRZ lines

    Steps:
    1. Remove spaces
    2. Split into lines and drop empty ones
    3. Drop lines shorter than the average line length (garbage picked up
       above or below the MRZ block)

    Args:
        text: Raw recognized text

    Returns:
        Surviving lines in their original order, or None if nothing is left
    """
    if not text:
        return None

    cleaned = text.replace(' ', '')
    lines = [line for line in cleaned.splitlines() if line]

    if lines:
        average_length = sum(len(line) for line in lines) // len(lines)
        lines = [line for line in lines if len(line) >= average_length]

    return lines or None
