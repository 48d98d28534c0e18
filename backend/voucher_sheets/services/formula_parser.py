"""
Formula recognition.

Two shapes are understood, checked in this order on the text after "=":
  SUM(B2:B13)   range aggregate, only when the formula starts with "SUM("
  B2*C2         pairwise multiply, anywhere in the formula

Both are searched for, not fully matched: text around a recognized shape is
ignored. Anything else is not a formula shape and evaluates to zero.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from voucher_sheets.services.address_codec import (
    column_to_index,
    is_column_letter,
    is_row_digit,
    row_to_index,
)

SUM_PREFIX = "SUM("

RANGE_SUM = "range_sum"
PAIRWISE_PRODUCT = "pairwise_product"


@dataclass(frozen=True)
class CellReference:
    column: str
    row_number: str

    @property
    def col(self) -> int:
        return column_to_index(self.column)

    @property
    def row(self) -> int:
        return row_to_index(self.row_number)

    def __str__(self) -> str:
        return f"{self.column}{self.row_number}"


@dataclass(frozen=True)
class RangeSum:
    start: CellReference
    end: CellReference

    shape = RANGE_SUM


@dataclass(frozen=True)
class PairwiseProduct:
    left: CellReference
    right: CellReference

    shape = PAIRWISE_PRODUCT


ParsedFormula = Union[RangeSum, PairwiseProduct]


class _Scanner:
    """Reads formula pieces from a fixed start position; every read returns None on mismatch."""

    __slots__ = ("text", "pos")

    def __init__(self, text: str, pos: int = 0):
        self.text = text
        self.pos = pos

    def _take_while(self, predicate) -> str:
        start = self.pos
        while self.pos < len(self.text) and predicate(self.text[self.pos]):
            self.pos += 1
        return self.text[start:self.pos]

    def literal(self, expected: str) -> bool:
        if self.text.startswith(expected, self.pos):
            self.pos += len(expected)
            return True
        return False

    def reference(self) -> Optional[CellReference]:
        column = self._take_while(is_column_letter)
        if not column:
            return None
        row_number = self._take_while(is_row_digit)
        if not row_number:
            return None
        return CellReference(column, row_number)


def _scan_range_sum(body: str, pos: int) -> Optional[RangeSum]:
    scanner = _Scanner(body, pos)
    if not scanner.literal(SUM_PREFIX):
        return None
    start = scanner.reference()
    if start is None or not scanner.literal(":"):
        return None
    end = scanner.reference()
    if end is None or not scanner.literal(")"):
        return None
    return RangeSum(start, end)


def _scan_pairwise_product(body: str, pos: int) -> Optional[PairwiseProduct]:
    scanner = _Scanner(body, pos)
    left = scanner.reference()
    if left is None or not scanner.literal("*"):
        return None
    right = scanner.reference()
    if right is None:
        return None
    return PairwiseProduct(left, right)


def _search(body: str, scan):
    # Leftmost match wins
    for pos in range(len(body)):
        found = scan(body, pos)
        if found is not None:
            return found
    return None


def formula_body(raw_text: str) -> Optional[str]:
    """Text after the leading "=", or None when raw_text is not a formula."""
    if not raw_text.startswith("="):
        return None
    return raw_text[1:]


def parse_formula(raw_text: str) -> Optional[ParsedFormula]:
    """Recognize raw_text as one of the two formula shapes, or None."""
    body = formula_body(raw_text)
    if body is None:
        return None

    if body.startswith(SUM_PREFIX):
        range_sum = _search(body, _scan_range_sum)
        if range_sum is not None:
            return range_sum

    return _search(body, _scan_pairwise_product)


def describe_formula(raw_text: str) -> Tuple[bool, Optional[str]]:
    """(is_formula, shape) for raw_text; shape is None for unrecognized formulas."""
    if formula_body(raw_text) is None:
        return False, None
    parsed = parse_formula(raw_text)
    return True, parsed.shape if parsed is not None else None
