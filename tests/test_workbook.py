from __future__ import annotations

from pathlib import Path

from openpyxl import Workbook

from sheetrange.sheet import Sheet
from sheetrange.workbook import openpyxl_workbook


def test_openpyxl_workbook_reads_saved_book(workbook: Workbook, tmp_path: Path) -> None:
    path = tmp_path / "book.xlsx"
    workbook.save(path)
    with openpyxl_workbook(path) as wb:
        assert wb.sheetnames == ["Data"]
        sheet = Sheet.open(wb, name="Data", create=False)
        assert sheet.get_range_values("A1:C1") == [["id", "name", "active"]]


def test_openpyxl_workbook_reads_cached_formula_values(tmp_path: Path) -> None:
    wb = Workbook()
    ws = wb.active
    assert ws is not None
    ws["A1"] = 2
    ws["A2"] = "=A1*2"
    path = tmp_path / "formula.xlsx"
    wb.save(path)
    with openpyxl_workbook(path, data_only=False) as loaded:
        assert loaded.active is not None
        assert loaded.active["A2"].value == "=A1*2"
