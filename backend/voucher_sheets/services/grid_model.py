"""
Grid model for a voucher sheet.

GridModel owns one rectangular Grid plus the selection/editing cursor of an
editing session. Every change to raw text or to the grid's shape is followed
by a full recomputation pass; style changes are not.
"""

import logging
from typing import Any, Dict, List, Optional

from voucher_sheets.core.exceptions import (
    CellOutOfBoundsError,
    SnapshotFormatError,
    ValidationError,
)
from voucher_sheets.core.unified_data_models import (
    Cell,
    CellCoordinate,
    CellStyle,
    Grid,
)
from voucher_sheets.services.address_codec import index_to_column, index_to_row
from voucher_sheets.services.cell_values import format_value
from voucher_sheets.services.spreadsheet_formula_engine import recompute

logger = logging.getLogger(__name__)

DEFAULT_ROWS = 14
DEFAULT_COLS = 13
DEFAULT_FONT_SIZE = 14

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def seed_grid() -> Grid:
    """Default voucher layout: headers, one row per month, per-month totals and a TOTAL row."""
    grid = Grid(rows=[[Cell() for _ in range(DEFAULT_COLS)] for _ in range(DEFAULT_ROWS)])
    bold = CellStyle(bold=True)

    for col, header in enumerate(["Month", "Data Plan", "Unit Price", "Total Sales"]):
        grid.rows[0][col] = Cell(header, bold)

    for idx, month in enumerate(MONTHS):
        grid.rows[idx + 1][0] = Cell(month)

    grid.rows[13][0] = Cell("TOTAL", bold)
    grid.rows[13][1] = Cell("=SUM(B2:B13)", bold)
    grid.rows[13][2] = Cell("=SUM(C2:C13)", bold)
    grid.rows[13][3] = Cell("=SUM(D2:D13)", bold)

    for i in range(1, 13):
        grid.rows[i][3] = Cell(f"=B{i + 1}*C{i + 1}")

    return grid


def _style_from_dict(data: Any) -> CellStyle:
    if data is None:
        return CellStyle()
    if not isinstance(data, dict):
        raise SnapshotFormatError(f"Cell style must be an object, got {type(data).__name__}")
    bold = data.get("bold")
    font_size = data.get("fontSize")
    if bold is not None and not isinstance(bold, bool):
        raise SnapshotFormatError(f"Style 'bold' must be a boolean, got {bold!r}")
    if font_size is not None and (isinstance(font_size, bool) or not isinstance(font_size, int)):
        raise SnapshotFormatError(f"Style 'fontSize' must be an integer, got {font_size!r}")
    return CellStyle(bold=bold, font_size=font_size)


def grid_from_snapshot(data: List[List[Dict[str, Any]]]) -> Grid:
    """
    Build a grid from a stored snapshot.

    Each cell is {"value": raw_text, "style": {...}}; any stored "computed"
    key is ignored since computed values are always rebuilt.
    """
    if not isinstance(data, list):
        raise SnapshotFormatError("Snapshot must be a list of rows")

    rows: List[List[Cell]] = []
    for row_index, row in enumerate(data):
        if not isinstance(row, list):
            raise SnapshotFormatError(f"Row {row_index} must be a list of cells")
        cells = []
        for col_index, item in enumerate(row):
            if not isinstance(item, dict):
                raise SnapshotFormatError(f"Cell ({row_index}, {col_index}) must be an object")
            raw_text = item.get("value", "")
            if raw_text is None:
                raw_text = ""
            if not isinstance(raw_text, str):
                raise SnapshotFormatError(
                    f"Cell ({row_index}, {col_index}) value must be text, got {type(raw_text).__name__}"
                )
            cells.append(Cell(raw_text, _style_from_dict(item.get("style"))))
        rows.append(cells)

    grid = Grid(rows=rows)
    if grid.row_count and grid.column_count == 0:
        raise SnapshotFormatError("Snapshot rows must contain at least one cell")
    if not grid.is_rectangular():
        raise SnapshotFormatError(
            "Snapshot rows must all have the same length",
            details={"row_lengths": [len(row) for row in rows]},
        )
    return grid


def grid_to_snapshot(grid: Grid) -> List[List[Dict[str, Any]]]:
    snapshot = []
    for row in grid.rows:
        cells = []
        for cell in row:
            item: Dict[str, Any] = {"value": cell.raw_text}
            style = cell.style.to_dict()
            if style:
                item["style"] = style
            cells.append(item)
        snapshot.append(cells)
    return snapshot


class GridModel:
    """Mutable grid of one editing session; recomputes after every content or shape change"""

    def __init__(self, grid: Optional[Grid] = None):
        grid = grid if grid is not None else seed_grid()
        if grid.row_count == 0 or grid.column_count == 0:
            raise SnapshotFormatError("A grid needs at least one row and one column")
        if not grid.is_rectangular():
            raise SnapshotFormatError("Grid rows must all have the same length")
        self.grid = recompute(grid)
        self.selected: Optional[CellCoordinate] = None
        self.editing: Optional[CellCoordinate] = None

    @classmethod
    def seeded(cls) -> "GridModel":
        return cls(seed_grid())

    @classmethod
    def from_snapshot(cls, data: List[List[Dict[str, Any]]]) -> "GridModel":
        """Load a stored snapshot; an empty snapshot starts from the default layout"""
        if not data:
            return cls.seeded()
        return cls(grid_from_snapshot(data))

    def to_snapshot(self) -> List[List[Dict[str, Any]]]:
        return grid_to_snapshot(self.grid)

    @property
    def row_count(self) -> int:
        return self.grid.row_count

    @property
    def column_count(self) -> int:
        return self.grid.column_count

    def _recompute(self) -> None:
        self.grid = recompute(self.grid)

    def _check_bounds(self, row: int, col: int) -> None:
        if not self.grid.contains(row, col):
            raise CellOutOfBoundsError(row, col, self.row_count, self.column_count)

    def cell(self, row: int, col: int) -> Cell:
        self._check_bounds(row, col)
        return self.grid.rows[row][col]

    # Content

    def set_cell_text(self, row: int, col: int, text: str) -> None:
        self._check_bounds(row, col)
        cell = self.grid.rows[row][col]
        cell.raw_text = text
        self._recompute()

    def display_value(self, row: int, col: int) -> str:
        cell = self.cell(row, col)
        if cell.computed is None:
            return cell.raw_text
        return format_value(cell.computed)

    # Shape

    def insert_row(self) -> None:
        self.grid.rows.append([Cell() for _ in range(self.column_count)])
        self._recompute()

    def insert_column(self) -> None:
        for row in self.grid.rows:
            row.append(Cell())
        self._recompute()

    def delete_row(self, row: int) -> bool:
        """Remove a row; returns False without touching the grid when it is the last one"""
        if self.row_count <= 1:
            logger.info("[GRID] Refusing to delete the only remaining row")
            return False
        if not 0 <= row < self.row_count:
            raise CellOutOfBoundsError(row, 0, self.row_count, self.column_count)
        del self.grid.rows[row]
        self._clear_cursor()
        self._recompute()
        return True

    def delete_column(self, col: int) -> bool:
        """Remove a column from every row; returns False when it is the last one"""
        if self.column_count <= 1:
            logger.info("[GRID] Refusing to delete the only remaining column")
            return False
        if not 0 <= col < self.column_count:
            raise CellOutOfBoundsError(0, col, self.row_count, self.column_count)
        for row in self.grid.rows:
            del row[col]
        self._clear_cursor()
        self._recompute()
        return True

    def delete_selected_row(self) -> bool:
        if self.selected is None:
            return False
        return self.delete_row(self.selected.row)

    def delete_selected_column(self) -> bool:
        if self.selected is None:
            return False
        return self.delete_column(self.selected.col)

    # Style

    def set_style(self, row: int, col: int, patch: CellStyle) -> CellStyle:
        if patch.font_size is not None and patch.font_size <= 0:
            raise ValidationError(f"Font size must be positive, got {patch.font_size}", field="font_size")
        cell = self.cell(row, col)
        cell.style = cell.style.merged(patch)
        return cell.style

    def toggle_bold(self) -> bool:
        if self.selected is None:
            return False
        cell = self.cell(self.selected.row, self.selected.col)
        self.set_style(self.selected.row, self.selected.col, CellStyle(bold=not cell.style.bold))
        return True

    def change_font_size(self, size: int) -> bool:
        if self.selected is None:
            return False
        self.set_style(self.selected.row, self.selected.col, CellStyle(font_size=size))
        return True

    # Cursor

    def select(self, row: int, col: int) -> None:
        self._check_bounds(row, col)
        self.selected = CellCoordinate(row, col)

    def clear_selection(self) -> None:
        self.selected = None

    def begin_editing(self, row: int, col: int) -> None:
        self._check_bounds(row, col)
        self.editing = CellCoordinate(row, col)

    def end_editing(self) -> None:
        self.editing = None

    def _clear_cursor(self) -> None:
        self.selected = None
        self.editing = None

    # Labels

    def column_labels(self) -> List[str]:
        return [index_to_column(col) for col in range(self.column_count)]

    def row_labels(self) -> List[str]:
        return [index_to_row(row) for row in range(self.row_count)]
