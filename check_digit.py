"""
ICAO 9303 check digit computation
"""

CHECK_WEIGHTS = [7, 3, 1]
FILLER = '<'

# 0-9 -> 0..9, A-Z -> 10..35, '<' -> 0
CHECK_CODES = {str(i): i for i in range(10)}
CHECK_CODES.update({chr(i): i - 55 for i in range(ord('A'), ord('Z') + 1)})
CHECK_CODES[FILLER] = 0


def compute_check_digit(field: str) -> int:
    """
    Compute the 7-3-1 weighted modulo 10 check digit of an MRZ field

    Characters outside A-Z, 0-9 and '<' count as 0; they are rejected
    before parsing ever gets here.

    Args:
        field: MRZ field data (without its check digit)

    Returns:
        Check digit as an integer between 0 and 9
    """
    total = 0
    for i, char in enumerate(field):
        total += CHECK_CODES.get(char, 0) * CHECK_WEIGHTS[i % 3]
    return total % 10


def validate_check_digit(field: str, expected: str, allow_filler: bool = False) -> bool:
    """
    Validate MRZ field data against its check digit

    Args:
        field: MRZ field data
        expected: Check digit character read from the MRZ
        allow_filler: Whether '<' may stand in for the check digit of an empty field

    Returns:
        True if the check digit matches
    """
    if expected == FILLER:
        return allow_filler and field.strip(FILLER) == ""

    if len(expected) != 1 or expected not in "0123456789":
        return False

    return compute_check_digit(field) == int(expected)
