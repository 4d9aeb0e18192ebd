import io
from typing import Any

from openpyxl import Workbook as XlsxWorkbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from .cells import Cell, CellKind
from .errors import SerializationFailure
from .workbook import Workbook

PERCENT_FORMAT = "0.00%"
DATE_FORMAT = "yyyy-mm-dd"


def _excel_value(cell: Any) -> Any:
    value = cell.to_excel() if isinstance(cell, Cell) else cell
    if isinstance(value, str):
        # control characters are not allowed in the sheet XML
        value = ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


def write_xlsx(workbook: Workbook) -> bytes:
    if not workbook.sheets:
        raise SerializationFailure("Cannot write a workbook without sheets")

    try:
        wb = XlsxWorkbook()
        wb.remove(wb.active)

        for sheet in workbook.sheets:
            ws = wb.create_sheet(title=sheet.name)
            for r, row in enumerate(sheet.rows, start=1):
                for c, cell in enumerate(row, start=1):
                    value = _excel_value(cell)
                    if value is None:
                        continue
                    xl_cell = ws.cell(row=r, column=c, value=value)
                    if isinstance(value, str):
                        # openpyxl treats "=..." as a formula; text stays text
                        xl_cell.data_type = "s"
                    if isinstance(cell, Cell):
                        if cell.kind is CellKind.PERCENT:
                            xl_cell.number_format = PERCENT_FORMAT
                        elif cell.kind is CellKind.DATE:
                            xl_cell.number_format = DATE_FORMAT

        buf = io.BytesIO()
        wb.save(buf)
    except Exception as exc:
        raise SerializationFailure(f"Failed to write xlsx: {exc}") from exc
    return buf.getvalue()
