from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import logging
from pathlib import Path
import warnings

from openpyxl import load_workbook
from openpyxl.workbook.workbook import Workbook

logger = logging.getLogger(__name__)

_IGNORED_OPENPYXL_WARNINGS = (
    "Unknown extension is not supported and will be removed",
    "Conditional Formatting extension is not supported and will be removed",
    "Data Validation extension is not supported and will be removed",
    "Cannot parse header or footer so it will be ignored",
)


@contextmanager
def openpyxl_workbook(file_path: Path, *, data_only: bool = True) -> Iterator[Workbook]:
    """Open an openpyxl workbook and ensure it is closed.

    The workbook is always opened in full (not read-only) mode so that its
    worksheets can back an OpenpyxlSheetHost.

    Args:
        file_path: Workbook path.
        data_only: Whether to read cached formula results instead of formulas.

    Yields:
        openpyxl workbook instance.
    """
    with warnings.catch_warnings():
        for message in _IGNORED_OPENPYXL_WARNINGS:
            warnings.filterwarnings(
                "ignore", message=message, category=UserWarning, module="openpyxl"
            )
        wb = load_workbook(file_path, data_only=data_only)
    logger.debug("Opened workbook %s (sheets=%s).", file_path, wb.sheetnames)
    try:
        yield wb
    finally:
        wb.close()
