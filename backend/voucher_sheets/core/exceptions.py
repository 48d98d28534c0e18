"""
Custom exception classes for better error handling
"""

from typing import Optional, Dict, Any


class VoucherSheetsException(Exception):
    """Base exception for all Voucher Sheets exceptions"""
    def __init__(self, message: str, code: str = "VOUCHER_SHEETS_ERROR", details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(VoucherSheetsException):
    """Raised when input validation fails"""
    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)
        self.field = field


class CellOutOfBoundsError(ValidationError):
    """Raised when a coordinate lies outside the current grid"""
    def __init__(self, row: int, col: int, rows: int, cols: int):
        super().__init__(
            f"Cell ({row}, {col}) is outside the {rows}x{cols} grid",
            details={"row": row, "col": col, "rows": rows, "cols": cols},
        )
        self.code = "CELL_OUT_OF_BOUNDS"
        self.row = row
        self.col = col


class SnapshotFormatError(ValidationError):
    """Raised when a stored or submitted grid snapshot is malformed"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, field="data", details=details)
        self.code = "SNAPSHOT_FORMAT_ERROR"


class DatabaseError(VoucherSheetsException):
    """Raised when database operations fail"""
    def __init__(self, message: str, operation: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "DATABASE_ERROR", details)
        self.operation = operation


class ResourceNotFoundError(VoucherSheetsException):
    """Raised when a resource is not found"""
    def __init__(self, resource_type: str, resource_id: str, details: Optional[Dict[str, Any]] = None):
        message = f"{resource_type} with id '{resource_id}' not found"
        super().__init__(message, "NOT_FOUND", details)
        self.resource_type = resource_type
        self.resource_id = resource_id


class FormulaEvaluationError(VoucherSheetsException):
    """Raised while evaluating a single formula; becomes the cell's ERROR marker"""
    def __init__(self, formula: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "FORMULA_ERROR", details)
        self.formula = formula


def status_code_for(error: VoucherSheetsException) -> int:
    """Map an application exception to an HTTP status code"""
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, ResourceNotFoundError):
        return 404
    if isinstance(error, DatabaseError):
        return 503
    return 500
