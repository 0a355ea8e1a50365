from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
import logging
from typing import Any, Literal, TypeAlias, cast

from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet
from pydantic import BaseModel, ConfigDict, Field

from .a1 import RangeDescriptor, column_position_to_label, parse_a1_notation
from .errors import InvalidArgumentError, SheetDataError
from .host import OpenpyxlSheetHost, SheetHost, document_lock
from .schema import SheetSchema

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT_MS = 10_000

ValuesOutput = Literal["array", "object", "object_values"]
RowNaming = Literal["row_position", "row_index", "position", "index"]
ColumnNaming = Literal[
    "column_position",
    "column_index",
    "column_label",
    "field_name",
    "position",
    "index",
    "label",
]
Grid: TypeAlias = list[list[Any]]
RowPredicate: TypeAlias = Callable[[Any, int], bool]
ColumnPredicate: TypeAlias = Callable[[list[Any], int], bool]


class ValuesOptions(BaseModel):
    """Options for reading the data region of a sheet."""

    display_values: bool = Field(default=False, description="Read display strings.")
    include_frozen_rows: bool = False
    include_frozen_columns: bool = False
    include_hidden_rows: bool = False
    include_hidden_columns: bool = False
    output: ValuesOutput = "array"
    row_naming: RowNaming = "row_position"
    column_naming: ColumnNaming = "column_position"


class Cell(BaseModel):
    """Single cell value with its 0-based coordinates."""

    model_config = ConfigDict(frozen=True)

    row_index: int = Field(ge=0)
    column_index: int = Field(ge=0)
    value: Any = None

    @property
    def a1_notation(self) -> str:
        return f"{column_position_to_label(self.column_index + 1)}{self.row_index + 1}"


class Sheet:
    """Convenience wrapper over a sheet host with an optional schema."""

    def __init__(
        self,
        host: SheetHost,
        schema: SheetSchema | None = None,
        *,
        lock_timeout_ms: int = DEFAULT_LOCK_TIMEOUT_MS,
    ) -> None:
        if not isinstance(host, SheetHost):
            raise InvalidArgumentError(
                f"Expected a SheetHost, got {type(host).__name__}."
            )
        if lock_timeout_ms < 0:
            raise InvalidArgumentError("lock_timeout_ms must be >= 0.")
        self._host = host
        self._schema = schema
        self.lock_timeout_ms = lock_timeout_ms

    @classmethod
    def from_worksheet(
        cls,
        worksheet: Worksheet,
        fields: Iterable[str] | None = None,
        *,
        lock_timeout_ms: int = DEFAULT_LOCK_TIMEOUT_MS,
    ) -> Sheet:
        """Wrap an openpyxl worksheet, optionally attaching field names."""
        schema = SheetSchema.from_names(fields) if fields is not None else None
        return cls(
            OpenpyxlSheetHost(worksheet), schema, lock_timeout_ms=lock_timeout_ms
        )

    @classmethod
    def open(
        cls,
        workbook: Workbook,
        *,
        name: str | None = None,
        index: int | None = None,
        fields: Iterable[str] | None = None,
        create: bool = True,
        lock_timeout_ms: int = DEFAULT_LOCK_TIMEOUT_MS,
    ) -> Sheet:
        """Open a worksheet of a workbook by name or by index.

        Args:
            workbook: openpyxl workbook.
            name: Sheet name; created when missing and create is True.
            index: 0-based sheet index.
            fields: Optional schema field names.
            create: Whether a missing named sheet is created.
            lock_timeout_ms: Lock wait used for bulk edits.

        Returns:
            Sheet wrapper.

        Raises:
            InvalidArgumentError: If not exactly one of name/index is given.
            SheetDataError: If the sheet does not exist.
        """
        if (name is None) == (index is None):
            raise InvalidArgumentError("Specify exactly one of name or index.")
        if name is not None:
            if not name.strip():
                raise InvalidArgumentError("Sheet name must not be empty.")
            if name in workbook.sheetnames:
                worksheet = workbook[name]
            elif create:
                logger.info("Creating sheet %s.", name)
                worksheet = workbook.create_sheet(name)
            else:
                raise SheetDataError(f"Sheet not found: {name}")
        else:
            position = cast(int, index)
            if not 0 <= position < len(workbook.worksheets):
                raise SheetDataError(f"Sheet index out of range: {position}")
            worksheet = workbook.worksheets[position]
        return cls.from_worksheet(worksheet, fields, lock_timeout_ms=lock_timeout_ms)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    @property
    def host(self) -> SheetHost:
        return self._host

    @property
    def name(self) -> str:
        return self._host.name

    def get_schema(self) -> SheetSchema | None:
        return self._schema

    def insert_schema(self, schema: SheetSchema | Iterable[str]) -> SheetSchema:
        """Attach a schema or a list of field names to the sheet."""
        if not isinstance(schema, SheetSchema):
            schema = SheetSchema.from_names(schema)
        self._schema = schema
        return schema

    def remove_schema(self) -> bool:
        """Detach the schema. Returns True when one was attached."""
        removed = self._schema is not None
        self._schema = None
        return removed

    def infer_schema(self, header_row: int = 1) -> SheetSchema:
        """Infer and attach a schema from the header row."""
        return self.insert_schema(SheetSchema.infer(self._host, header_row))

    def get_values(
        self, options: ValuesOptions | None = None
    ) -> Grid | dict[str, dict[str, Any]]:
        """Read the data region of the sheet.

        Frozen rows and columns are skipped unless included. With an object
        output, hidden rows and columns are skipped unless included.

        Args:
            options: Read options.

        Returns:
            Grid for ``array`` output, otherwise a mapping of row name to a
            mapping of column name to Cell (``object``) or value
            (``object_values``).

        Raises:
            SheetDataError: If only frozen rows or columns hold data.
        """
        options = options or ValuesOptions()
        first_row, num_rows = self._data_span(
            self._host.frozen_rows, self._host.last_row, options.include_frozen_rows
        )
        first_column, num_columns = self._data_span(
            self._host.frozen_columns,
            self._host.last_column,
            options.include_frozen_columns,
            axis="columns",
        )
        values: Grid = []
        if num_rows > 0 and num_columns > 0:
            values = self._host.get_range_values(
                first_row,
                first_column,
                num_rows,
                num_columns,
                display_only=options.display_values,
            )
        if options.output == "array":
            return values

        visible_columns = [
            (offset, first_column + offset)
            for offset in range(num_columns)
            if options.include_hidden_columns
            or not self._host.is_column_hidden(first_column + offset)
        ]
        rows: dict[str, dict[str, Any]] = {}
        for offset, row_values in enumerate(values):
            row_position = first_row + offset
            if not options.include_hidden_rows and self._host.is_row_hidden(
                row_position
            ):
                continue
            columns: dict[str, Any] = {}
            for column_offset, column_position in visible_columns:
                cell = Cell(
                    row_index=row_position - 1,
                    column_index=column_position - 1,
                    value=row_values[column_offset],
                )
                key = self._column_name(column_position, options.column_naming)
                columns[key] = cell.value if options.output == "object_values" else cell
            rows[_row_name(row_position, options.row_naming)] = columns
        return rows

    def get_range_values(self, a1: str, *, display_values: bool = False) -> Grid:
        """Read the values of an A1 range.

        Open row spans (``5:15``) end at the last data column and open column
        spans (``M:X``) end at the last data row.
        """
        descriptor = parse_a1_notation(a1)
        num_rows, num_columns = self._resolve_size(descriptor)
        if num_rows < 1 or num_columns < 1:
            return []
        return self._host.get_range_values(
            descriptor.start_row_position,
            descriptor.start_column_position,
            num_rows,
            num_columns,
            display_only=display_values,
        )

    def set_range_values(
        self, a1: str, values: Sequence[Sequence[Any]]
    ) -> RangeDescriptor:
        """Write values at an A1 range.

        A single cell reference is used as the top-left anchor. For a bounded
        range the payload shape must match the range.
        """
        descriptor = parse_a1_notation(a1)
        num_rows, num_columns = _grid_shape(values)
        if not descriptor.is_cell:
            expected = (descriptor.num_rows, descriptor.num_columns)
            if any(
                size is not None and size != actual
                for size, actual in zip(expected, (num_rows, num_columns))
            ):
                raise SheetDataError(
                    f"Values shape {num_rows}x{num_columns} does not match range "
                    f"{descriptor.a1_notation}."
                )
        with document_lock(self._host, self.lock_timeout_ms):
            self._host.set_range_values(
                descriptor.start_row_position,
                descriptor.start_column_position,
                values,
            )
        return _describe(
            descriptor.start_row_position,
            descriptor.start_column_position,
            num_rows,
            num_columns,
        )

    def append_rows(self, rows: Sequence[Sequence[Any]]) -> RangeDescriptor:
        """Write rows below the current data region."""
        num_rows, num_columns = _grid_shape(rows)
        with document_lock(self._host, self.lock_timeout_ms):
            row_position = self._host.last_row + 1
            self._host.set_range_values(row_position, 1, rows)
        logger.info(
            "Appended %d row(s) at row %d of %s.", num_rows, row_position, self.name
        )
        return _describe(row_position, 1, num_rows, num_columns)

    def append_columns(self, values: Sequence[Sequence[Any]]) -> RangeDescriptor:
        """Write a row-major grid to the right of the current data region."""
        num_rows, num_columns = _grid_shape(values)
        with document_lock(self._host, self.lock_timeout_ms):
            column_position = self._host.last_column + 1
            self._host.set_range_values(1, column_position, values)
        logger.info(
            "Appended %d column(s) at column %s of %s.",
            num_columns,
            column_position_to_label(column_position),
            self.name,
        )
        return _describe(1, column_position, num_rows, num_columns)

    def insert_rows(
        self, position: int, rows: Sequence[Sequence[Any]]
    ) -> RangeDescriptor:
        """Insert rows before ``position`` and fill them with values."""
        num_rows, num_columns = _grid_shape(rows)
        with document_lock(self._host, self.lock_timeout_ms):
            self._host.insert_rows(position, num_rows)
            self._host.set_range_values(position, 1, rows)
        logger.info(
            "Inserted %d row(s) at row %d of %s.", num_rows, position, self.name
        )
        return _describe(position, 1, num_rows, num_columns)

    def insert_columns(
        self, position: int, values: Sequence[Sequence[Any]]
    ) -> RangeDescriptor:
        """Insert columns before ``position`` and fill them with a row-major grid."""
        num_rows, num_columns = _grid_shape(values)
        with document_lock(self._host, self.lock_timeout_ms):
            self._host.insert_columns(position, num_columns)
            self._host.set_range_values(1, position, values)
        logger.info(
            "Inserted %d column(s) at column %s of %s.",
            num_columns,
            column_position_to_label(position),
            self.name,
        )
        return _describe(1, position, num_rows, num_columns)

    def delete_rows(self, position: int, how_many: int) -> None:
        with document_lock(self._host, self.lock_timeout_ms):
            self._host.delete_rows(position, how_many)
        logger.info("Deleted %d row(s) starting from row %d.", how_many, position)

    def delete_columns(self, position: int, how_many: int) -> None:
        with document_lock(self._host, self.lock_timeout_ms):
            self._host.delete_columns(position, how_many)
        logger.info(
            "Deleted %d column(s) starting from column %s.",
            how_many,
            column_position_to_label(position),
        )

    def delete_rows_where(
        self, predicate: RowPredicate, options: ValuesOptions | None = None
    ) -> int:
        """Delete every data row for which ``predicate(values, position)`` is true.

        Row values are passed in the shape of ``options.output``: a list for
        ``array``, a mapping keyed by column name otherwise. Consecutive rows
        are deleted as one block, bottom-up.

        Args:
            predicate: Row test receiving the row values and 1-based row position.
            options: Read options; row naming is overridden.

        Returns:
            Number of deleted rows.
        """
        if not callable(predicate):
            raise InvalidArgumentError("predicate must be callable.")
        options = (options or ValuesOptions()).model_copy(
            update={"row_naming": "position"}
        )
        values = self.get_values(options)
        if isinstance(values, dict):
            rows = [(int(name), row) for name, row in values.items()]
        else:
            first_row = 1 if options.include_frozen_rows else self._host.frozen_rows + 1
            rows = [(first_row + offset, row) for offset, row in enumerate(values)]

        matched = [position for position, row in rows if predicate(row, position)]
        blocks = _group_blocks(matched)
        if not blocks:
            return 0
        with document_lock(self._host, self.lock_timeout_ms):
            for number, (start, count) in enumerate(reversed(blocks)):
                if number == len(blocks) - 1:
                    max_rows = self._host.max_rows
                    if max_rows - (start + count - 1) < 1:
                        self._host.insert_rows(max_rows + 1, 1)
                        logger.info(
                            "Inserted one row to keep a row after the frozen rows."
                        )
                self._host.delete_rows(start, count)
                logger.info("Deleted %d row(s) starting from row %d.", count, start)
        return len(matched)

    def delete_columns_where(
        self, predicate: ColumnPredicate, options: ValuesOptions | None = None
    ) -> int:
        """Delete every data column for which ``predicate(values, position)`` is true.

        Column values are passed top-down as a list. Hidden columns are skipped
        unless ``options.include_hidden_columns`` is set.

        Returns:
            Number of deleted columns.
        """
        if not callable(predicate):
            raise InvalidArgumentError("predicate must be callable.")
        options = (options or ValuesOptions()).model_copy(update={"output": "array"})
        grid = cast(Grid, self.get_values(options))
        first_column = (
            1 if options.include_frozen_columns else self._host.frozen_columns + 1
        )
        num_columns = len(grid[0]) if grid else 0
        matched: list[int] = []
        for offset in range(num_columns):
            position = first_column + offset
            if not options.include_hidden_columns and self._host.is_column_hidden(
                position
            ):
                continue
            if predicate([row[offset] for row in grid], position):
                matched.append(position)
        blocks = _group_blocks(matched)
        with document_lock(self._host, self.lock_timeout_ms):
            for start, count in reversed(blocks):
                self._host.delete_columns(start, count)
                logger.info(
                    "Deleted %d column(s) starting from column %s.",
                    count,
                    column_position_to_label(start),
                )
        return len(matched)

    def _data_span(
        self, frozen: int, last: int, include_frozen: bool, axis: str = "rows"
    ) -> tuple[int, int]:
        """Return (first position, count) of the data region on one axis."""
        if include_frozen or frozen <= 0:
            return 1, last
        count = last - frozen
        if count <= 0:
            raise SheetDataError(f"No data after frozen {axis} in {self.name}.")
        return frozen + 1, count

    def _resolve_size(self, descriptor: RangeDescriptor) -> tuple[int, int]:
        num_rows = descriptor.num_rows
        if num_rows is None:
            num_rows = self._host.last_row - descriptor.start_row_position + 1
        num_columns = descriptor.num_columns
        if num_columns is None:
            num_columns = self._host.last_column - descriptor.start_column_position + 1
        return num_rows, num_columns

    def _column_name(self, position: int, naming: ColumnNaming) -> str:
        label = column_position_to_label(position)
        if naming == "field_name":
            name = self._schema.field_name(position - 1) if self._schema else None
            return name or f"Col{position}"
        if naming == "column_index":
            return f"Col{position - 1}"
        if naming == "column_label":
            return f"Col{label}"
        if naming == "position":
            return str(position)
        if naming == "index":
            return str(position - 1)
        if naming == "label":
            return str(label)
        return f"Col{position}"


def _row_name(position: int, naming: RowNaming) -> str:
    if naming == "row_index":
        return f"Row{position - 1}"
    if naming == "position":
        return str(position)
    if naming == "index":
        return str(position - 1)
    return f"Row{position}"


def _grid_shape(values: Sequence[Sequence[Any]]) -> tuple[int, int]:
    """Validate a non-empty rectangular grid and return (rows, columns)."""
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise InvalidArgumentError("Values must be a sequence of rows.")
    if not values:
        raise SheetDataError("Values must contain at least one row.")
    widths = set()
    for row in values:
        if isinstance(row, (str, bytes)) or not isinstance(row, Sequence):
            raise InvalidArgumentError("Each row must be a sequence of values.")
        widths.add(len(row))
    if len(widths) != 1:
        raise SheetDataError("All rows must have the same number of values.")
    num_columns = widths.pop()
    if num_columns < 1:
        raise SheetDataError("Rows must contain at least one value.")
    return len(values), num_columns


def _group_blocks(positions: Iterable[int]) -> list[tuple[int, int]]:
    """Group sorted positions into (start, count) runs of consecutive values."""
    blocks: list[tuple[int, int]] = []
    for position in sorted(positions):
        if blocks and blocks[-1][0] + blocks[-1][1] == position:
            start, count = blocks[-1]
            blocks[-1] = (start, count + 1)
        else:
            blocks.append((position, 1))
    return blocks


def _describe(
    row_position: int, column_position: int, num_rows: int, num_columns: int
) -> RangeDescriptor:
    """Return the descriptor of a bounded rectangle."""
    start = f"{column_position_to_label(column_position)}{row_position}"
    end_label = column_position_to_label(column_position + num_columns - 1)
    return parse_a1_notation(f"{start}:{end_label}{row_position + num_rows - 1}")
