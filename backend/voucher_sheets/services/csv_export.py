"""
CSV export of a voucher grid.
Every field is wrapped in double quotes; quotes inside a value are not escaped.
"""

from voucher_sheets.core.unified_data_models import Cell, Grid
from voucher_sheets.services.cell_values import format_value


def export_field(cell: Cell) -> str:
    text = cell.raw_text if cell.computed is None else format_value(cell.computed)
    return f'"{text}"'


def grid_to_csv(grid: Grid) -> str:
    return "\n".join(
        ",".join(export_field(cell) for cell in row)
        for row in grid.rows
    )
