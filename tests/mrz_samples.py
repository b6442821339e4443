"""
Specimen MRZ lines shared by the tests
"""

TD3_LINES = [
    "P<UTOERIKSSON<<ANNA<MARIA<<<<<<<<<<<<<<<<<<<",
    "L898902C36UTO7408122F1204159ZE184226B<<<<<10",
]

# Personal number empty, filler in its check digit position
TD3_EMPTY_PERSONAL_NUMBER = [
    "P<UTOERIKSSON<<ANNA<MARIA<<<<<<<<<<<<<<<<<<<",
    "L898902C36UTO7408122F1204159<<<<<<<<<<<<<<<8",
]

TD1_LINES = [
    "I<UTOD231458907<<<<<<<<<<<<<<<",
    "7408122F1204159UTO<<<<<<<<<<<6",
    "ERIKSSON<<ANNA<MARIA<<<<<<<<<<",
]

# Document number D23145890123 continued in the optional data
TD1_LONG_NUMBER_LINES = [
    "I<UTOD23145890<1233<<<<<<<<<<<",
    "7408122F1204159UTO<<<<<<<<<<<2",
    "ERIKSSON<<ANNA<MARIA<<<<<<<<<<",
]

# Same number with its check digit read as S
TD1_LONG_NUMBER_MISREAD_LINES = [
    "I<UTOD23145890<125S<<<<<<<<<<<",
    "7408122F1204159UTO<<<<<<<<<<<2",
    "ERIKSSON<<ANNA<MARIA<<<<<<<<<<",
]

TD2_LINES = [
    "I<UTOERIKSSON<<ANNA<MARIA<<<<<<<<<<<",
    "D231458907UTO7408122F1204159<<<<<<<6",
]

MRVA_LINES = [
    "V<UTOERIKSSON<<ANNA<MARIA<<<<<<<<<<<<<<<<<<<",
    "L8988901C4XXX4009078F96121096ZE184226B<<<<<<",
]

MRVB_LINES = [
    "V<UTOERIKSSON<<ANNA<MARIA<<<<<<<<<<<",
    "L8988901C4XXX4009078F9612109<<<<<<<<",
]


def replace_char(line: str, position: int, char: str) -> str:
    return line[:position] + char + line[position + 1:]


def bump_digit(line: str, position: int) -> str:
    """Replace the digit at `position` with the next digit (mod 10)"""
    return replace_char(line, position, str((int(line[position]) + 1) % 10))
