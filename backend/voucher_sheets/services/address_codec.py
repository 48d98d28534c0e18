"""
Cell address codec.
Column letters use bijective base-26 (A..Z, AA..ZZ, AAA..): there is no zero digit,
so conversion back to letters decrements before every division.
"""

DIGITS = ("0", "1", "2", "3", "4", "5", "6", "7", "8", "9")

# Row numbers longer than this lie beyond any grid and all map to ROW_BEYOND_GRID
MAX_ROW_DIGITS = 18
ROW_BEYOND_GRID = 10 ** MAX_ROW_DIGITS


def is_column_letter(char: str) -> bool:
    return "A" <= char <= "Z"


def is_row_digit(char: str) -> bool:
    return char in DIGITS


def column_to_index(label: str) -> int:
    """Convert a column label (A, Z, AA, ...) to a zero-based column index."""
    if not label or not all(is_column_letter(c) for c in label):
        raise ValueError(f"Malformed column label: {label!r}. Expected uppercase letters A-Z.")
    value = 0
    for char in label:
        value = value * 26 + (ord(char) - ord("A") + 1)
    return value - 1


def index_to_column(index: int) -> str:
    """Convert a zero-based column index to its column label."""
    if index < 0:
        raise ValueError(f"Column index must be non-negative, got {index}")
    letters = []
    while index >= 0:
        letters.append(chr(ord("A") + index % 26))
        index = index // 26 - 1
    return "".join(reversed(letters))


def row_to_index(text: str) -> int:
    """Convert 1-based row digits to a zero-based row index ("1" -> 0, "0" -> -1)."""
    if not text or not all(is_row_digit(c) for c in text):
        raise ValueError(f"Malformed row number: {text!r}. Expected digits 0-9.")
    significant = text.lstrip("0")
    if len(significant) > MAX_ROW_DIGITS:
        return ROW_BEYOND_GRID
    return int(significant or "0") - 1


def index_to_row(index: int) -> str:
    if index < 0:
        raise ValueError(f"Row index must be non-negative, got {index}")
    return str(index + 1)


def cell_label(row: int, col: int) -> str:
    """Display label of a cell, e.g. (1, 1) -> "B2"."""
    return f"{index_to_column(col)}{index_to_row(row)}"
