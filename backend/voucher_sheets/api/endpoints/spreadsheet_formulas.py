"""
Spreadsheet Formulas Engine Endpoints
"""

from fastapi import APIRouter
import logging

from voucher_sheets.schemas.voucher_sheet import (
    FormulaEvaluationRequest,
    FormulaValidationRequest,
)
from voucher_sheets.services.cell_values import ErrorValue, format_value, value_to_json
from voucher_sheets.services.formula_parser import (
    PAIRWISE_PRODUCT,
    RANGE_SUM,
    describe_formula,
)
from voucher_sheets.services.grid_model import grid_from_snapshot
from voucher_sheets.services.spreadsheet_formula_engine import formula_engine

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/evaluate")
async def evaluate_formula(request: FormulaEvaluationRequest):
    """Evaluate a single formula against a raw grid snapshot"""
    grid = formula_engine.recompute(grid_from_snapshot(request.grid))

    if not request.formula.startswith("="):
        # Plain text is passed through unchanged
        return {"formula": request.formula, "result": request.formula, "display": request.formula, "type": "text"}

    try:
        value = formula_engine.calculate(request.formula, grid)
    except Exception as e:
        logger.warning(f"Formula evaluation error for {request.formula!r}: {e}")
        value = ErrorValue()

    return {
        "formula": request.formula,
        "result": value_to_json(value),
        "display": format_value(value),
        "type": "error" if isinstance(value, ErrorValue) else "number",
    }


@router.post("/validate")
async def validate_formula(request: FormulaValidationRequest):
    """Report which formula shape a text is recognized as, without evaluating it"""
    is_formula, shape = describe_formula(request.formula)

    if not is_formula:
        message = "Not a formula; the text is shown as entered"
    elif shape is None:
        message = "Unrecognized formula; it evaluates to 0"
    else:
        message = "Valid formula syntax"

    return {
        "formula": request.formula,
        "is_formula": is_formula,
        "valid": shape is not None,
        "shape": shape,
        "message": message,
    }


@router.get("/functions")
async def get_supported_functions():
    """Get the formula shapes the grid understands"""
    return {
        "shapes": {
            RANGE_SUM: "Sum of a rectangular block of cells; non-numeric cells are skipped",
            PAIRWISE_PRODUCT: "Product of two cells; 0 when either is not numeric",
        },
        "examples": {
            RANGE_SUM: "=SUM(B2:B13)",
            PAIRWISE_PRODUCT: "=B2*C2",
        },
    }
