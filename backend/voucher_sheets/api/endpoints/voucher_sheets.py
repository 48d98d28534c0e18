"""
Voucher sheet endpoints
Sheet list/create/delete, grid editing sessions, save and CSV export
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from typing import List, Optional
import logging

from voucher_sheets.core.config import settings
from voucher_sheets.core.dependencies import get_sheet_service
from voucher_sheets.core.unified_data_models import CellCoordinate, CellStyle
from voucher_sheets.schemas.voucher_sheet import (
    CellPosition,
    CellStylePatch,
    CellTextUpdate,
    CellView,
    FontSizeRequest,
    GridOperationResult,
    GridView,
    Sheet,
    SheetCreate,
    SheetSummary,
)
from voucher_sheets.services.address_codec import cell_label
from voucher_sheets.services.cell_values import value_to_json
from voucher_sheets.services.grid_model import GridModel
from voucher_sheets.services.voucher_sheet_service import VoucherSheetService

router = APIRouter()
logger = logging.getLogger(__name__)


def _position(coordinate: Optional[CellCoordinate]) -> Optional[CellPosition]:
    if coordinate is None:
        return None
    return CellPosition(row=coordinate.row, col=coordinate.col)


def build_grid_view(sheet_id: str, model: GridModel) -> GridView:
    cells = []
    for row_index, row in enumerate(model.grid.rows):
        cells.append([
            CellView(
                row=row_index,
                col=col_index,
                label=cell_label(row_index, col_index),
                raw=cell.raw_text,
                display=model.display_value(row_index, col_index),
                computed=value_to_json(cell.computed),
                style=cell.style.to_dict(),
            )
            for col_index, cell in enumerate(row)
        ])
    return GridView(
        sheet_id=sheet_id,
        rows=model.row_count,
        cols=model.column_count,
        column_labels=model.column_labels(),
        row_labels=model.row_labels(),
        cells=cells,
        selected=_position(model.selected),
        editing=_position(model.editing),
    )


def _apply(service: VoucherSheetService, sheet_id: str, operation) -> GridOperationResult:
    def run(model: GridModel) -> GridOperationResult:
        applied = operation(model)
        return GridOperationResult(
            applied=True if applied is None else bool(applied),
            grid=build_grid_view(sheet_id, model),
        )
    return service.edit(sheet_id, run)


@router.get("/", response_model=List[SheetSummary])
async def list_sheets(
    owner_id: str = Query(..., min_length=1, description="Owner whose sheets to list"),
    service: VoucherSheetService = Depends(get_sheet_service),
):
    """List an owner's sheets, most recently updated first"""
    return service.list_sheets(owner_id)


@router.post("/", response_model=Sheet, status_code=201)
async def create_sheet(request: SheetCreate, service: VoucherSheetService = Depends(get_sheet_service)):
    """Create an empty sheet; it opens with the default voucher layout"""
    return service.create_sheet(request.owner_id, request.name)


@router.get("/{sheet_id}", response_model=Sheet)
async def get_sheet(sheet_id: str, service: VoucherSheetService = Depends(get_sheet_service)):
    """Stored snapshot of a sheet (unsaved session edits are not included)"""
    return service.get_sheet(sheet_id)


@router.delete("/{sheet_id}")
async def delete_sheet(sheet_id: str, service: VoucherSheetService = Depends(get_sheet_service)):
    service.delete_sheet(sheet_id)
    return {"message": "Sheet deleted successfully", "sheet_id": sheet_id}


@router.get("/{sheet_id}/grid", response_model=GridView)
async def get_grid(sheet_id: str, service: VoucherSheetService = Depends(get_sheet_service)):
    """Open (or reuse) the sheet's editing session and return the computed grid"""
    return service.view(sheet_id, lambda model: build_grid_view(sheet_id, model))


@router.delete("/{sheet_id}/session")
async def close_session(sheet_id: str, service: VoucherSheetService = Depends(get_sheet_service)):
    """Discard unsaved edits"""
    return {"closed": service.close_session(sheet_id)}


@router.put("/{sheet_id}/cells/{row}/{col}", response_model=GridOperationResult)
async def set_cell_text(
    sheet_id: str,
    row: int,
    col: int,
    request: CellTextUpdate,
    service: VoucherSheetService = Depends(get_sheet_service),
):
    return _apply(service, sheet_id, lambda model: model.set_cell_text(row, col, request.text))


@router.patch("/{sheet_id}/cells/{row}/{col}/style", response_model=GridOperationResult)
async def set_cell_style(
    sheet_id: str,
    row: int,
    col: int,
    request: CellStylePatch,
    service: VoucherSheetService = Depends(get_sheet_service),
):
    patch = CellStyle(bold=request.bold, font_size=request.font_size)

    def merge_style(model: GridModel) -> None:
        model.set_style(row, col, patch)

    return _apply(service, sheet_id, merge_style)


@router.post("/{sheet_id}/rows", response_model=GridOperationResult)
async def insert_row(sheet_id: str, service: VoucherSheetService = Depends(get_sheet_service)):
    return _apply(service, sheet_id, lambda model: model.insert_row())


@router.post("/{sheet_id}/columns", response_model=GridOperationResult)
async def insert_column(sheet_id: str, service: VoucherSheetService = Depends(get_sheet_service)):
    return _apply(service, sheet_id, lambda model: model.insert_column())


@router.delete("/{sheet_id}/rows/{row}", response_model=GridOperationResult)
async def delete_row(sheet_id: str, row: int, service: VoucherSheetService = Depends(get_sheet_service)):
    """Delete a row; "applied" is false when it is the only row left"""
    return _apply(service, sheet_id, lambda model: model.delete_row(row))


@router.delete("/{sheet_id}/columns/{col}", response_model=GridOperationResult)
async def delete_column(sheet_id: str, col: int, service: VoucherSheetService = Depends(get_sheet_service)):
    """Delete a column; "applied" is false when it is the only column left"""
    return _apply(service, sheet_id, lambda model: model.delete_column(col))


@router.put("/{sheet_id}/selection", response_model=GridOperationResult)
async def select_cell(
    sheet_id: str,
    request: CellPosition,
    service: VoucherSheetService = Depends(get_sheet_service),
):
    return _apply(service, sheet_id, lambda model: model.select(request.row, request.col))


@router.delete("/{sheet_id}/selection", response_model=GridOperationResult)
async def clear_selection(sheet_id: str, service: VoucherSheetService = Depends(get_sheet_service)):
    return _apply(service, sheet_id, lambda model: model.clear_selection())


@router.post("/{sheet_id}/selection/toggle-bold", response_model=GridOperationResult)
async def toggle_bold(sheet_id: str, service: VoucherSheetService = Depends(get_sheet_service)):
    return _apply(service, sheet_id, lambda model: model.toggle_bold())


@router.post("/{sheet_id}/selection/font-size", response_model=GridOperationResult)
async def change_font_size(
    sheet_id: str,
    request: FontSizeRequest,
    service: VoucherSheetService = Depends(get_sheet_service),
):
    return _apply(service, sheet_id, lambda model: model.change_font_size(request.size))


@router.delete("/{sheet_id}/selection/row", response_model=GridOperationResult)
async def delete_selected_row(sheet_id: str, service: VoucherSheetService = Depends(get_sheet_service)):
    return _apply(service, sheet_id, lambda model: model.delete_selected_row())


@router.delete("/{sheet_id}/selection/column", response_model=GridOperationResult)
async def delete_selected_column(sheet_id: str, service: VoucherSheetService = Depends(get_sheet_service)):
    return _apply(service, sheet_id, lambda model: model.delete_selected_column())


@router.put("/{sheet_id}/editing", response_model=GridOperationResult)
async def begin_editing(
    sheet_id: str,
    request: CellPosition,
    service: VoucherSheetService = Depends(get_sheet_service),
):
    return _apply(service, sheet_id, lambda model: model.begin_editing(request.row, request.col))


@router.delete("/{sheet_id}/editing", response_model=GridOperationResult)
async def end_editing(sheet_id: str, service: VoucherSheetService = Depends(get_sheet_service)):
    return _apply(service, sheet_id, lambda model: model.end_editing())


@router.post("/{sheet_id}/save", response_model=SheetSummary)
async def save_sheet(sheet_id: str, service: VoucherSheetService = Depends(get_sheet_service)):
    """Persist the session's whole grid"""
    return service.save(sheet_id)


@router.get("/{sheet_id}/export")
async def export_sheet(sheet_id: str, service: VoucherSheetService = Depends(get_sheet_service)):
    """Download the computed grid as CSV"""
    csv_text = service.export_csv(sheet_id)
    logger.info(f"[SHEETS_API] Exported sheet {sheet_id} ({len(csv_text)} bytes)")
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{settings.EXPORT_FILENAME}"'},
    )
