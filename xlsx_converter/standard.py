"""
Structured parse attempt.

Reads the bytes as a real spreadsheet container (legacy xls via xlrd, OOXML via
openpyxl) or as UTF-8 delimited text via the csv module. String cells are left
untyped; normalize_workbook types them later. A parse that "succeeds" with a
blank header row is rejected: it usually means the encoding or layout was
misread, and text recovery does a better job.
"""

from __future__ import annotations

import csv
import io
import logging
import os
from datetime import date, datetime
from typing import Any, List

import openpyxl
import xlrd

from .cells import EMPTY, Cell
from .errors import InvalidHeaderError, StandardParseError
from .rules import RECOVERY_SHEET_NAME
from .workbook import Sheet, Workbook, is_blank

logger = logging.getLogger("xlsx_converter")

OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
ZIP_SIGNATURE = b"PK\x03\x04"
SNIFF_DELIMITERS = ",\t;|"
SNIFF_SAMPLE_CHARS = 4096


def _typed_value(value: Any) -> Any:
    """Map a reader value to a grid cell; strings stay untyped."""
    if value is None:
        return EMPTY
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return Cell.boolean(value)
    if isinstance(value, (int, float)):
        return Cell.number(value)
    if isinstance(value, (datetime, date)):
        return Cell.date(value)
    return Cell.text(str(value))


def _read_xls(raw: bytes) -> Workbook:
    book = xlrd.open_workbook(file_contents=raw)
    sheets: List[Sheet] = []
    for xl_sheet in book.sheets():
        rows: List[List[Any]] = []
        for r in range(xl_sheet.nrows):
            row: List[Any] = []
            for xl_cell in xl_sheet.row(r):
                if xl_cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
                    row.append(EMPTY)
                elif xl_cell.ctype == xlrd.XL_CELL_DATE:
                    row.append(Cell.date(xlrd.xldate_as_datetime(xl_cell.value, book.datemode)))
                elif xl_cell.ctype == xlrd.XL_CELL_BOOLEAN:
                    row.append(Cell.boolean(bool(xl_cell.value)))
                elif xl_cell.ctype == xlrd.XL_CELL_ERROR:
                    row.append(Cell.text(xlrd.error_text_from_code.get(xl_cell.value, "#ERR")))
                else:
                    row.append(_typed_value(xl_cell.value))
            rows.append(row)
        sheets.append(Sheet(name=xl_sheet.name, rows=rows))
    return Workbook(sheets=sheets)


def _read_xlsx(raw: bytes) -> Workbook:
    wb = openpyxl.load_workbook(io.BytesIO(raw), read_only=True, data_only=True)
    try:
        sheets = [
            Sheet(
                name=ws.title,
                rows=[[_typed_value(v) for v in row] for row in ws.iter_rows(values_only=True)],
            )
            for ws in wb.worksheets
        ]
    finally:
        wb.close()
    return Workbook(sheets=sheets)


def _read_delimited(raw: bytes) -> Workbook:
    # codepage 65001: the structured reader only trusts UTF-8
    text = raw.decode("utf-8-sig")
    dialect = csv.Sniffer().sniff(text[:SNIFF_SAMPLE_CHARS], delimiters=SNIFF_DELIMITERS)
    reader = csv.reader(io.StringIO(text, newline=""), dialect)
    rows: List[List[Any]] = [row for row in reader if row]
    return Workbook(sheets=[Sheet(name=RECOVERY_SHEET_NAME, rows=rows)])


def read_structured(raw: bytes, filename: str = "") -> Workbook:
    if raw.startswith(OLE2_SIGNATURE):
        return _read_xls(raw)
    if raw.startswith(ZIP_SIGNATURE):
        return _read_xlsx(raw)
    # no container signature: the extension picks the reader
    extension = os.path.splitext(filename)[1].lower()
    if extension == ".xls":
        return _read_xls(raw)
    if extension == ".xlsx":
        return _read_xlsx(raw)
    return _read_delimited(raw)


def try_standard_parse(raw: bytes, filename: str) -> Workbook:
    """
    Parse with the structured readers.

    Raises StandardParseError when the readers fail or find no sheet, and
    InvalidHeaderError when the first sheet's header row is entirely blank.
    """
    try:
        workbook = read_structured(raw, filename)
    except (csv.Error, UnicodeDecodeError) as exc:
        raise StandardParseError(f"Delimited text could not be read: {exc}") from exc
    except Exception as exc:
        raise StandardParseError(f"Structured reader failed: {exc}") from exc

    if not workbook.sheets:
        raise StandardParseError("Workbook contains no sheets")

    header = workbook.sheets[0].header
    if all(is_blank(value) for value in header):
        raise InvalidHeaderError(
            f"Header row of sheet {workbook.sheets[0].name!r} is blank"
        )

    logger.info(
        "Structured parse of %s succeeded: %d sheet(s) %s",
        filename,
        len(workbook.sheets),
        workbook.sheet_names,
    )
    return workbook
