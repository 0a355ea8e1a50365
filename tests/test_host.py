from __future__ import annotations

from openpyxl import Workbook
from openpyxl.worksheet.worksheet import Worksheet
import pytest

from sheetrange.errors import InvalidArgumentError, LockTimeoutError
from sheetrange.host import OpenpyxlSheetHost, SheetHost, document_lock


def test_host_satisfies_protocol(worksheet: Worksheet) -> None:
    host = OpenpyxlSheetHost(worksheet)
    assert isinstance(host, SheetHost)
    assert host.name == "Data"


def test_host_rejects_non_worksheet() -> None:
    with pytest.raises(InvalidArgumentError, match="Expected an openpyxl Worksheet"):
        OpenpyxlSheetHost("Data")  # type: ignore[arg-type]


def test_last_row_and_column(worksheet: Worksheet) -> None:
    host = OpenpyxlSheetHost(worksheet)
    assert host.last_row == 5
    assert host.last_column == 3


def test_last_row_ignores_trailing_empty_cells(worksheet: Worksheet) -> None:
    worksheet.cell(row=9, column=6).value = None
    host = OpenpyxlSheetHost(worksheet)
    assert host.last_row == 5
    assert host.last_column == 3


def test_empty_sheet_has_no_data() -> None:
    host = OpenpyxlSheetHost(Workbook().create_sheet("Empty"))
    assert host.last_row == 0
    assert host.last_column == 0
    assert (host.frozen_rows, host.frozen_columns) == (0, 0)


def test_frozen_rows_and_columns(worksheet: Worksheet) -> None:
    worksheet.freeze_panes = "C2"
    host = OpenpyxlSheetHost(worksheet)
    assert host.frozen_rows == 1
    assert host.frozen_columns == 2


def test_get_range_values(worksheet: Worksheet) -> None:
    host = OpenpyxlSheetHost(worksheet)
    assert host.get_range_values(2, 1, 2, 2) == [[1, "a"], [2, "b"]]
    assert host.get_range_values(2, 1, 1, 4, display_only=True) == [
        ["1", "a", "True", ""]
    ]
    assert host.get_range_values(2, 1, 0, 4) == []


def test_set_range_values(worksheet: Worksheet) -> None:
    host = OpenpyxlSheetHost(worksheet)
    host.set_range_values(7, 2, [["x", "y"], ["z", None]])
    assert worksheet["B7"].value == "x"
    assert worksheet["C7"].value == "y"
    assert worksheet["B8"].value == "z"


def test_insert_and_delete_rows(worksheet: Worksheet) -> None:
    host = OpenpyxlSheetHost(worksheet)
    host.insert_rows(2, 2)
    assert worksheet["A4"].value == 1
    host.delete_rows(2, 2)
    assert worksheet["A2"].value == 1


def test_insert_and_delete_columns(worksheet: Worksheet) -> None:
    host = OpenpyxlSheetHost(worksheet)
    host.insert_columns(1, 1)
    assert worksheet["B1"].value == "id"
    host.delete_columns(1, 1)
    assert worksheet["A1"].value == "id"


@pytest.mark.parametrize(("position", "count"), [(0, 1), (1, 0), (-1, 2)])
def test_row_edits_reject_invalid_positions(
    worksheet: Worksheet, position: int, count: int
) -> None:
    host = OpenpyxlSheetHost(worksheet)
    with pytest.raises(InvalidArgumentError, match="must be a positive integer"):
        host.delete_rows(position, count)


def test_hidden_rows_and_columns(worksheet: Worksheet) -> None:
    worksheet.row_dimensions[3].hidden = True
    worksheet.column_dimensions["B"].hidden = True
    host = OpenpyxlSheetHost(worksheet)
    assert host.is_row_hidden(3) is True
    assert host.is_row_hidden(2) is False
    assert host.is_column_hidden(2) is True
    assert host.is_column_hidden(3) is False


def test_lock_is_shared_per_workbook(workbook: Workbook) -> None:
    first = OpenpyxlSheetHost(workbook["Data"])
    second = OpenpyxlSheetHost(workbook.create_sheet("Other"))
    release = first.acquire_lock(100)
    try:
        with pytest.raises(LockTimeoutError, match="within 10 ms"):
            second.acquire_lock(10)
    finally:
        release()
    second.acquire_lock(10)()


def test_lock_is_independent_across_workbooks(worksheet: Worksheet) -> None:
    other = OpenpyxlSheetHost(Workbook().create_sheet("Other"))
    release = OpenpyxlSheetHost(worksheet).acquire_lock(100)
    try:
        other.acquire_lock(10)()
    finally:
        release()


def test_document_lock_releases_on_error(worksheet: Worksheet) -> None:
    host = OpenpyxlSheetHost(worksheet)
    with pytest.raises(RuntimeError, match="boom"):
        with document_lock(host, 100):
            raise RuntimeError("boom")
    host.acquire_lock(0)()


def test_acquire_lock_rejects_negative_timeout(worksheet: Worksheet) -> None:
    with pytest.raises(InvalidArgumentError):
        OpenpyxlSheetHost(worksheet).acquire_lock(-1)
