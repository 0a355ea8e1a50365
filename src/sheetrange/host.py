from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
import logging
import threading
from typing import Any, Protocol, runtime_checkable
from weakref import WeakKeyDictionary

from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from .a1 import column_position_to_label, parse_a1_notation
from .errors import InvalidArgumentError, LockTimeoutError

logger = logging.getLogger(__name__)

_WORKBOOK_LOCKS: WeakKeyDictionary[Workbook, threading.Lock] = WeakKeyDictionary()
_WORKBOOK_LOCKS_GUARD = threading.Lock()


@runtime_checkable
class SheetHost(Protocol):
    """Spreadsheet host operations used by the sheet layer."""

    @property
    def name(self) -> str: ...

    @property
    def last_row(self) -> int: ...

    @property
    def last_column(self) -> int: ...

    @property
    def max_rows(self) -> int: ...

    @property
    def frozen_rows(self) -> int: ...

    @property
    def frozen_columns(self) -> int: ...

    def get_range_values(
        self,
        row_position: int,
        column_position: int,
        num_rows: int,
        num_columns: int,
        *,
        display_only: bool = False,
    ) -> list[list[Any]]: ...

    def set_range_values(
        self,
        row_position: int,
        column_position: int,
        values: Sequence[Sequence[Any]],
    ) -> None: ...

    def insert_rows(self, position: int, count: int) -> None: ...

    def delete_rows(self, position: int, count: int) -> None: ...

    def insert_columns(self, position: int, count: int) -> None: ...

    def delete_columns(self, position: int, count: int) -> None: ...

    def is_row_hidden(self, position: int) -> bool: ...

    def is_column_hidden(self, position: int) -> bool: ...

    def acquire_lock(self, timeout_ms: int) -> Callable[[], None]: ...


@contextmanager
def document_lock(host: SheetHost, timeout_ms: int) -> Iterator[None]:
    """Hold the host document lock for the duration of the block.

    Args:
        host: Sheet host owning the lock.
        timeout_ms: Maximum wait in milliseconds.

    Raises:
        LockTimeoutError: If the lock is not acquired within timeout_ms.
    """
    release = host.acquire_lock(timeout_ms)
    logger.debug("Acquired document lock for sheet %s.", host.name)
    try:
        yield
    finally:
        release()
        logger.debug("Released document lock for sheet %s.", host.name)


class OpenpyxlSheetHost:
    """SheetHost backed by an openpyxl worksheet."""

    def __init__(self, worksheet: Worksheet) -> None:
        if not isinstance(worksheet, Worksheet):
            raise InvalidArgumentError(
                f"Expected an openpyxl Worksheet, got {type(worksheet).__name__}."
            )
        self._worksheet = worksheet

    @property
    def worksheet(self) -> Worksheet:
        return self._worksheet

    @property
    def name(self) -> str:
        return str(self._worksheet.title)

    @property
    def last_row(self) -> int:
        """Last row that holds a value, 0 for an empty sheet."""
        last = 0
        for row in self._worksheet.iter_rows():
            if any(cell.value is not None for cell in row):
                last = row[0].row
        return last

    @property
    def last_column(self) -> int:
        """Last column that holds a value, 0 for an empty sheet."""
        last = 0
        for column in self._worksheet.iter_cols():
            if any(cell.value is not None for cell in column):
                last = column[0].column
        return last

    @property
    def max_rows(self) -> int:
        return int(self._worksheet.max_row)

    @property
    def frozen_rows(self) -> int:
        return self._freeze_split()[0]

    @property
    def frozen_columns(self) -> int:
        return self._freeze_split()[1]

    def get_range_values(
        self,
        row_position: int,
        column_position: int,
        num_rows: int,
        num_columns: int,
        *,
        display_only: bool = False,
    ) -> list[list[Any]]:
        """Return a rectangular grid of cell values.

        Args:
            row_position: First row (1-based).
            column_position: First column (1-based).
            num_rows: Number of rows to read.
            num_columns: Number of columns to read.
            display_only: Return values as display strings.

        Returns:
            Row-major list of cell values.
        """
        _require_positive(row_position=row_position, column_position=column_position)
        if num_rows < 1 or num_columns < 1:
            return []
        grid: list[list[Any]] = []
        for row in self._worksheet.iter_rows(
            min_row=row_position,
            max_row=row_position + num_rows - 1,
            min_col=column_position,
            max_col=column_position + num_columns - 1,
            values_only=True,
        ):
            values = list(row)
            if display_only:
                values = ["" if value is None else str(value) for value in values]
            grid.append(values)
        return grid

    def set_range_values(
        self,
        row_position: int,
        column_position: int,
        values: Sequence[Sequence[Any]],
    ) -> None:
        """Write a rectangular grid starting at the given cell."""
        _require_positive(row_position=row_position, column_position=column_position)
        for row_offset, row_values in enumerate(values):
            for column_offset, value in enumerate(row_values):
                self._worksheet.cell(
                    row=row_position + row_offset,
                    column=column_position + column_offset,
                ).value = value

    def insert_rows(self, position: int, count: int) -> None:
        _require_positive(position=position, count=count)
        self._worksheet.insert_rows(position, amount=count)

    def delete_rows(self, position: int, count: int) -> None:
        _require_positive(position=position, count=count)
        self._worksheet.delete_rows(position, amount=count)

    def insert_columns(self, position: int, count: int) -> None:
        _require_positive(position=position, count=count)
        self._worksheet.insert_cols(position, amount=count)

    def delete_columns(self, position: int, count: int) -> None:
        _require_positive(position=position, count=count)
        self._worksheet.delete_cols(position, amount=count)

    def is_row_hidden(self, position: int) -> bool:
        dimensions = self._worksheet.row_dimensions
        return position in dimensions and bool(dimensions[position].hidden)

    def is_column_hidden(self, position: int) -> bool:
        label = column_position_to_label(position)
        dimensions = self._worksheet.column_dimensions
        return label in dimensions and bool(dimensions[label].hidden)

    def acquire_lock(self, timeout_ms: int) -> Callable[[], None]:
        """Acquire the workbook-wide lock, waiting at most timeout_ms."""
        if timeout_ms < 0:
            raise InvalidArgumentError("timeout_ms must be >= 0.")
        lock = _workbook_lock(self._worksheet.parent)
        if not lock.acquire(timeout=timeout_ms / 1000):
            raise LockTimeoutError(
                f"Could not acquire document lock within {timeout_ms} ms."
            )
        return lock.release

    def _freeze_split(self) -> tuple[int, int]:
        """Return (frozen_rows, frozen_columns) from freeze_panes."""
        anchor = self._worksheet.freeze_panes
        if not anchor:
            return 0, 0
        anchor_cell = parse_a1_notation(anchor)
        return anchor_cell.start_row_index, anchor_cell.start_column_index


def _workbook_lock(workbook: Workbook) -> threading.Lock:
    with _WORKBOOK_LOCKS_GUARD:
        lock = _WORKBOOK_LOCKS.get(workbook)
        if lock is None:
            lock = threading.Lock()
            _WORKBOOK_LOCKS[workbook] = lock
        return lock


def _require_positive(**values: int) -> None:
    for name, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise InvalidArgumentError(f"{name} must be a positive integer: {value!r}")
