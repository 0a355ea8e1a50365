from __future__ import annotations

from openpyxl import Workbook
from openpyxl.worksheet.worksheet import Worksheet
import pytest

ROWS: list[list[object]] = [
    ["id", "name", "active"],
    [1, "a", True],
    [2, "b", False],
    [3, "c", True],
    [4, "d", False],
]


@pytest.fixture
def workbook() -> Workbook:
    """Workbook whose active sheet ``Data`` holds a header and four rows."""
    wb = Workbook()
    ws = wb.active
    assert ws is not None
    ws.title = "Data"
    for row in ROWS:
        ws.append(row)
    return wb


@pytest.fixture
def worksheet(workbook: Workbook) -> Worksheet:
    return workbook["Data"]
