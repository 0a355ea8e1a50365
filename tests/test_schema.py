from __future__ import annotations

from openpyxl import Workbook
from openpyxl.worksheet.worksheet import Worksheet
from pydantic import ValidationError
import pytest

from sheetrange.errors import SheetDataError
from sheetrange.host import OpenpyxlSheetHost
from sheetrange.schema import SheetSchema


def test_from_names_and_field_name() -> None:
    schema = SheetSchema.from_names(["id", " name "])
    assert schema.names == ["id", "name"]
    assert schema.field_name(1) == "name"
    assert schema.field_name(2) is None
    assert schema.field_name(-1) is None


def test_rejects_duplicate_and_empty_names() -> None:
    with pytest.raises(ValidationError, match="Duplicate field name"):
        SheetSchema.from_names(["id", "id"])
    with pytest.raises(ValidationError, match="must not be empty"):
        SheetSchema.from_names(["id", "  "])


def test_infer_from_header(worksheet: Worksheet) -> None:
    schema = SheetSchema.infer(OpenpyxlSheetHost(worksheet))
    assert schema.names == ["id", "name", "active"]


def test_infer_fills_blank_and_repeated_names() -> None:
    ws = Workbook().create_sheet("Header")
    ws.append(["id", None, "id", "id_2", "x"])
    ws.append([1, 2, 3, 4, 5, 6])
    schema = SheetSchema.infer(OpenpyxlSheetHost(ws))
    assert schema.names == ["id", "Col2", "id_2", "id_2_2", "x"]


def test_infer_rejects_missing_header() -> None:
    host = OpenpyxlSheetHost(Workbook().create_sheet("Empty"))
    with pytest.raises(SheetDataError, match="No header row 1"):
        SheetSchema.infer(host)
