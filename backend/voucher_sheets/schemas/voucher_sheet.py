from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Union
from datetime import datetime


class SheetSummary(BaseModel):
    id: str
    owner_id: str
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Sheet(SheetSummary):
    data: List[List[Dict[str, Any]]] = []


class SheetCreate(BaseModel):
    owner_id: str = Field(..., min_length=1)
    name: str


class CellTextUpdate(BaseModel):
    text: str


class CellStylePatch(BaseModel):
    bold: Optional[bool] = None
    font_size: Optional[int] = Field(None, gt=0)


class CellPosition(BaseModel):
    row: int = Field(..., ge=0)
    col: int = Field(..., ge=0)


class FontSizeRequest(BaseModel):
    size: int = Field(..., gt=0)


class CellView(BaseModel):
    row: int
    col: int
    label: str
    raw: str
    display: str
    computed: Optional[Union[float, str]] = None
    style: Dict[str, Any] = {}


class GridView(BaseModel):
    sheet_id: str
    rows: int
    cols: int
    column_labels: List[str]
    row_labels: List[str]
    cells: List[List[CellView]]
    selected: Optional[CellPosition] = None
    editing: Optional[CellPosition] = None


class GridOperationResult(BaseModel):
    applied: bool
    grid: GridView


class FormulaEvaluationRequest(BaseModel):
    formula: str
    # Raw snapshot the formula is evaluated against; rows of {"value", "style"} cells
    grid: List[List[Dict[str, Any]]] = []


class FormulaValidationRequest(BaseModel):
    formula: str
