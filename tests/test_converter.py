import io
from datetime import date

from openpyxl import Workbook as XlsxWorkbook
from openpyxl import load_workbook

from xlsx_converter import converter, encoding
from xlsx_converter.cells import Cell
from xlsx_converter.converter import XlsxConverter, process_file
from xlsx_converter.errors import SerializationFailure
from xlsx_converter.rules import ConversionSettings
from xlsx_converter.workbook import Sheet, Workbook


def _load(content: bytes):
    return load_workbook(io.BytesIO(content))


def _xlsx_bytes(rows):
    wb = XlsxWorkbook()
    for row in rows:
        wb.active.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def test_csv_converts_to_typed_xlsx():
    raw = b"name,age,share,joined,active\nAlice,30,85%,2024-01-15,yes\nBob,\"1,250\",5%,2023-12-01,no\n"
    result = process_file(raw, "people.csv")

    assert result.success is True
    assert result.filename == "people_converted.xlsx"
    assert result.original_size == len(raw)
    assert result.converted_size == len(result.content)

    ws = _load(result.content).active
    assert ws.title == "Sheet1"
    assert [c.value for c in ws[1]] == ["name", "age", "share", "joined", "active"]
    alice = [c.value for c in ws[2]]
    assert alice[:3] == ["Alice", 30, 0.85]
    assert alice[3].date() == date(2024, 1, 15)
    assert alice[4] is True
    assert ws["C2"].number_format == "0.00%"
    assert ws["B3"].value == 1250


def test_text_recovery_handles_euc_kr(monkeypatch):
    monkeypatch.setattr(encoding, "detect_charset", lambda raw: {"encoding": None, "confidence": 0.0})
    raw = "이름\t점수\n홍길동\t90\n".encode("euc-kr")
    result = process_file(raw, "성적표.tsv")
    assert result.success is True
    assert result.filename == "성적표_converted.xlsx"
    ws = _load(result.content).active
    assert [c.value for c in ws[1]] == ["이름", "점수"]
    assert [c.value for c in ws[2]] == ["홍길동", 90]


def test_xlsx_input_is_returned_unchanged(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("pipeline must not run for canonical input")

    monkeypatch.setattr(converter, "try_standard_parse", fail)
    monkeypatch.setattr(converter, "recover", fail)
    raw = _xlsx_bytes([["a"], [1]])
    result = process_file(raw, "Book.XLSX")
    assert result.success is True
    assert result.content == raw
    assert result.converted_size == result.original_size
    assert result.warnings is None


def test_blank_header_routes_to_recovery(monkeypatch):
    # a blank header from the structured reader is not trusted
    calls = []

    def fake_recover(raw, settings):
        calls.append(raw)
        return Workbook(sheets=[Sheet("Sheet1", [[Cell.text("h")], [Cell.number(1)]])])

    monkeypatch.setattr(converter, "recover", fake_recover)
    raw = _xlsx_bytes([[None, "  "], ["a", "b"]])
    result = process_file(raw, "legacy.xls")
    assert result.success is True
    assert calls == [raw]


def test_forced_recovery_skips_standard_parse(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("standard parse must be skipped")

    monkeypatch.setattr(converter, "try_standard_parse", fail)
    result = process_file(b"a;b\n1;2", "data.csv", force_text_recovery=True)
    assert result.success is True
    ws = _load(result.content).active
    assert [c.value for c in ws[2]] == [1, 2]


def test_blank_only_input_fails_cleanly():
    result = process_file(b"\n \n", "empty.csv")
    assert result.success is False
    assert "No data" in result.message
    assert result.content is None
    assert result.filename == "empty.csv"


def test_unsupported_extension_fails_fast():
    result = process_file(b"%PDF-1.4", "report.pdf")
    assert result.success is False
    assert "Unsupported" in result.message


def test_oversize_input_fails_fast():
    result = process_file(b"a,b\n1,2\n", "data.csv", settings=ConversionSettings(max_file_size=4))
    assert result.success is False
    assert "too large" in result.message


def test_serialization_failure_is_reported(monkeypatch):
    def broken_writer(workbook):
        raise SerializationFailure("disk full")

    monkeypatch.setattr(converter, "write_xlsx", broken_writer)
    result = process_file(b"a,b\n1,2\n", "data.csv")
    assert result.success is False
    assert result.message == "disk full"


def test_unexpected_errors_become_failed_results(monkeypatch):
    def explode(workbook, *args):
        raise RuntimeError("boom")

    monkeypatch.setattr(converter, "normalize_workbook", explode)
    result = process_file(b"a,b\n1,2\n", "data.csv")
    assert result.success is False
    assert result.message.startswith("File conversion failed")


def test_size_warnings():
    conv = XlsxConverter()
    assert len(conv.size_warnings(100, 400)) == 1
    assert "larger" in conv.size_warnings(100, 400)[0]
    assert "lost" in conv.size_warnings(2000, 100)[0]
    # small inputs never warn about shrinking
    assert conv.size_warnings(500, 10) == []
    assert conv.size_warnings(1000, 1000) == []
    assert conv.size_warnings(0, 10) == []


def test_small_csv_gets_growth_warning():
    result = process_file(b"a,b\n1,2\n", "tiny.csv")
    assert result.success is True
    assert result.warnings and "larger" in result.warnings[0]


def test_output_filename_is_sanitized():
    conv = XlsxConverter()
    assert conv.output_filename("my report (final).csv") == "my_report_final__converted.xlsx"
    assert conv.output_filename("???.txt") == "__converted.xlsx"
    assert conv.output_filename("dir/sub/data.tsv") == "data_converted.xlsx"


def test_result_serializes_with_camel_case_and_without_content():
    result = process_file(b"a,b\n1,2\n", "data.csv")
    payload = result.model_dump(by_alias=True, exclude_none=True)
    assert payload["originalSize"] == 8
    assert "convertedSize" in payload
    assert "content" not in payload


def test_text_named_as_xls_is_recovered():
    result = process_file(b"name\tscore\nAlice\t90\n", "export.xls")
    assert result.success is True
    ws = _load(result.content).active
    assert [c.value for c in ws[1]] == ["name", "score"]
    assert [c.value for c in ws[2]] == ["Alice", 90]


def test_leading_equals_sign_is_written_as_text():
    result = process_file(b"label,expr\nfoo,=1+1\n", "data.csv", force_text_recovery=True)
    ws = _load(result.content).active
    assert ws["B2"].data_type == "s"
    assert ws["B2"].value == "=1+1"
