"""
Spreadsheet Formula Engine Service
Whole-grid recomputation pass.

The pass is a single row-major sweep (top to bottom, left to right) over a
copy of the grid. Cells later in the sweep read values computed earlier in
the same pass; a reference to a cell further down or to the right reads that
cell's value from the previous pass. There is no cycle detection and no
iteration to a fixed point, so results are deterministic for a given grid
but forward references lag one edit behind.
"""

import logging

from voucher_sheets.core.unified_data_models import Grid
from voucher_sheets.services.address_codec import cell_label
from voucher_sheets.services.cell_values import ErrorValue, TextValue
from voucher_sheets.services.formula_evaluator import evaluate

logger = logging.getLogger(__name__)


def recompute(grid: Grid) -> Grid:
    """Return a new grid with every cell's computed value refreshed from its raw text."""
    result = grid.copy()

    errors = 0
    for row_index, row in enumerate(result.rows):
        for col_index, cell in enumerate(row):
            if not cell.raw_text.startswith("="):
                cell.computed = TextValue(cell.raw_text)
                continue
            try:
                cell.computed = evaluate(cell.raw_text, result)
            except Exception as e:
                # One bad formula never stops the rest of the sweep
                logger.warning(
                    f"[FORMULA_ENGINE] {cell_label(row_index, col_index)} "
                    f"{cell.raw_text!r} failed: {e}"
                )
                cell.computed = ErrorValue()
                errors += 1

    logger.debug(
        f"[FORMULA_ENGINE] Recomputed {result.row_count}x{result.column_count} grid, {errors} error cell(s)"
    )
    return result


class SpreadsheetFormulaEngine:
    """Evaluates formulas and refreshes whole grids"""

    def calculate(self, formula: str, grid: Grid):
        """Evaluate one formula against a grid that has already been recomputed"""
        return evaluate(formula, grid)

    def recompute(self, grid: Grid) -> Grid:
        return recompute(grid)


formula_engine = SpreadsheetFormulaEngine()
