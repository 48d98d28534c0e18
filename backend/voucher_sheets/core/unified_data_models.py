"""
Unified Data Models
Single source of truth for the grid and sheet data structures
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field, replace
from datetime import datetime

from voucher_sheets.services.cell_values import CellValue


@dataclass(frozen=True)
class CellStyle:
    """Presentational style; never affects evaluation"""
    bold: Optional[bool] = None
    font_size: Optional[int] = None

    def merged(self, patch: "CellStyle") -> "CellStyle":
        """Apply the keys that are set in patch, keep the rest"""
        return CellStyle(
            bold=self.bold if patch.bold is None else patch.bold,
            font_size=self.font_size if patch.font_size is None else patch.font_size,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.bold is not None:
            data["bold"] = self.bold
        if self.font_size is not None:
            data["fontSize"] = self.font_size
        return data


@dataclass
class Cell:
    raw_text: str = ""
    style: CellStyle = field(default_factory=CellStyle)
    # Derived from raw_text by the recomputation pass
    computed: Optional[CellValue] = None

    def copy(self) -> "Cell":
        return replace(self)


@dataclass(frozen=True)
class CellCoordinate:
    row: int
    col: int


@dataclass
class Grid:
    """Rectangular matrix of cells, rows first"""
    rows: List[List[Cell]] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.rows[0]) if self.rows else 0

    def contains(self, row: int, col: int) -> bool:
        return 0 <= row < self.row_count and 0 <= col < len(self.rows[row])

    def cell_at(self, row: int, col: int) -> Optional[Cell]:
        """Cell at (row, col), or None when the coordinate is outside the grid"""
        if not self.contains(row, col):
            return None
        return self.rows[row][col]

    def copy(self) -> "Grid":
        return Grid(rows=[[cell.copy() for cell in row] for row in self.rows])

    def is_rectangular(self) -> bool:
        width = self.column_count
        return all(len(row) == width for row in self.rows)


@dataclass
class SheetRecord:
    """A named, persisted grid snapshot owned by one user"""
    id: str
    owner_id: str
    name: str
    data: List[List[Dict[str, Any]]] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
