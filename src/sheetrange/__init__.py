"""A1 range parsing and a thin sheet layer over openpyxl."""

from __future__ import annotations

from .a1 import (
    REMOVE,
    RangeDescriptor,
    apply_transform,
    column_label_to_position,
    column_position_to_label,
    parse_a1_notation,
)
from .errors import (
    A1SyntaxError,
    InvalidArgumentError,
    InvocationError,
    LockTimeoutError,
    SheetDataError,
    SheetRangeError,
)
from .host import OpenpyxlSheetHost, SheetHost, document_lock
from .schema import SchemaField, SheetSchema
from .sheet import Cell, Sheet, ValuesOptions

__all__ = [
    "A1SyntaxError",
    "Cell",
    "InvalidArgumentError",
    "InvocationError",
    "LockTimeoutError",
    "OpenpyxlSheetHost",
    "REMOVE",
    "RangeDescriptor",
    "SchemaField",
    "Sheet",
    "SheetDataError",
    "SheetHost",
    "SheetRangeError",
    "SheetSchema",
    "ValuesOptions",
    "apply_transform",
    "column_label_to_position",
    "column_position_to_label",
    "document_lock",
    "parse_a1_notation",
]
