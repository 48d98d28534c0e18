"""
Formula evaluator for the voucher grid.
Evaluates the two recognized formula shapes against a grid snapshot.

Unrecognized formulas and non-numeric operands produce numbers, never errors.
Only a raised FormulaEvaluationError (or any other exception) turns into the
cell's ERROR marker, and that is decided by the recomputation pass.
"""

import math
from typing import Optional

from voucher_sheets.core.exceptions import FormulaEvaluationError
from voucher_sheets.core.unified_data_models import Cell, Grid
from voucher_sheets.services.cell_values import (
    CellValue,
    ErrorValue,
    NumberValue,
    TextValue,
    parse_float_prefix,
)
from voucher_sheets.services.formula_parser import (
    PairwiseProduct,
    RangeSum,
    parse_formula,
)

# Operand text used when a multiply reference has nothing to offer
MISSING_OPERAND = "0"


def operand_number(cell: Optional[Cell], default: str = "") -> Optional[float]:
    """
    Numeric value of a referenced cell.

    The computed value wins when it is non-empty text or a non-zero number;
    otherwise the raw text is read, then default. None means "not numeric".
    """
    if cell is not None:
        computed = cell.computed
        if isinstance(computed, NumberValue):
            if computed.number and not math.isnan(computed.number):
                return computed.number
        elif isinstance(computed, TextValue):
            if computed.text:
                return parse_float_prefix(computed.text)
        elif isinstance(computed, ErrorValue):
            return parse_float_prefix(computed.marker)

        if cell.raw_text:
            return parse_float_prefix(cell.raw_text)

    if default:
        return parse_float_prefix(default)
    return None


def sum_range(formula: RangeSum, grid: Grid, raw_text: str = "") -> float:
    start_row, start_col = formula.start.row, formula.start.col
    end_row, end_col = formula.end.row, formula.end.col

    if start_row > end_row or start_col > end_col:
        raise FormulaEvaluationError(
            raw_text,
            f"Reversed range {formula.start}:{formula.end}",
            details={"start": str(formula.start), "end": str(formula.end)},
        )

    # Cells outside the grid contribute nothing; only walk the overlap
    first_row, last_row = max(start_row, 0), min(end_row, grid.row_count - 1)
    first_col, last_col = max(start_col, 0), min(end_col, grid.column_count - 1)

    total = 0.0
    for row in range(first_row, last_row + 1):
        for col in range(first_col, last_col + 1):
            cell = grid.cell_at(row, col)
            if cell is None:
                continue
            number = operand_number(cell)
            if number is not None and not math.isnan(number):
                total += number
    return total


def multiply_pair(formula: PairwiseProduct, grid: Grid) -> float:
    left = operand_number(grid.cell_at(formula.left.row, formula.left.col), MISSING_OPERAND)
    right = operand_number(grid.cell_at(formula.right.row, formula.right.col), MISSING_OPERAND)

    if left is None or right is None or math.isnan(left) or math.isnan(right):
        return 0.0
    return left * right


def evaluate(raw_text: str, grid: Grid) -> CellValue:
    """
    Evaluate a formula cell's raw text against the grid snapshot.

    Returns a NumberValue; raises FormulaEvaluationError for malformed ranges.
    """
    formula = parse_formula(raw_text)

    if isinstance(formula, RangeSum):
        return NumberValue(sum_range(formula, grid, raw_text))
    if isinstance(formula, PairwiseProduct):
        return NumberValue(multiply_pair(formula, grid))
    return NumberValue(0.0)
