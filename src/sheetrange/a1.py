from __future__ import annotations

from collections.abc import Callable
from enum import Enum
import re
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field

from .errors import A1SyntaxError, InvalidArgumentError, InvocationError

_A1_NOTATION_PATTERN = re.compile(
    r"(?P<start_column_label>[A-Za-z]*)(?P<start_row_position>[0-9]*)"
    r"(?::(?P<end_column_label>[A-Za-z]*)(?P<end_row_position>[0-9]*))?"
)
_COLUMN_LABEL_PATTERN = re.compile(r"[A-Za-z]+")
_DEFAULT_COLUMN_LABEL: Final = "A"
_DEFAULT_ROW_POSITION: Final = 1
_AXIS_PARTS: Final = {
    "row": ("position", "index"),
    "column": ("label", "position", "index"),
}


class _Removed(Enum):
    REMOVE = "remove"


REMOVE: Final = _Removed.REMOVE
"""Return this from a transform to drop the visited field."""

_MISSING: Final = object()

Transform = Callable[[str, Any], Any]


class RangeDescriptor(BaseModel):
    """Normalized, fully resolved A1 range reference.

    Positions are 1-based and indices are 0-based (``position - 1``). End
    coordinates are ``None`` for open row or column spans such as ``5:15`` or
    ``M:X``.
    """

    model_config = ConfigDict(frozen=True)

    a1_notation: str
    is_cell: bool
    start_row_position: int = Field(ge=1)
    start_row_index: int = Field(ge=0)
    start_column_label: str
    start_column_position: int = Field(ge=1)
    start_column_index: int = Field(ge=0)
    end_row_position: int | None = Field(default=None, ge=1)
    end_row_index: int | None = Field(default=None, ge=0)
    end_column_label: str | None = None
    end_column_position: int | None = Field(default=None, ge=1)
    end_column_index: int | None = Field(default=None, ge=0)
    num_rows: int | None = Field(default=None, ge=1)
    num_columns: int | None = Field(default=None, ge=1)

    def __str__(self) -> str:
        return self.a1_notation

    @property
    def is_row_span(self) -> bool:
        """True when the range covers whole rows (no end column)."""
        return not self.is_cell and self.end_column_label is None

    @property
    def is_column_span(self) -> bool:
        """True when the range covers whole columns (no end row)."""
        return not self.is_cell and self.end_row_position is None

    def to_dict(self) -> dict[str, Any]:
        """Return descriptor fields as a plain dict in declaration order."""
        return self.model_dump()


def column_label_to_position(label: str) -> int:
    """Convert a column label (A, Z, AA, ...) to its 1-based position.

    Args:
        label: Column letters, case-insensitive.

    Returns:
        Column position where A=1, Z=26, AA=27.

    Raises:
        InvalidArgumentError: If label is not a non-empty string of letters.
    """
    if not isinstance(label, str) or not label:
        raise InvalidArgumentError(
            f"Column label must be a non-empty string, got {label!r}."
        )
    if not _COLUMN_LABEL_PATTERN.fullmatch(label):
        raise InvalidArgumentError(f"Invalid column label: {label}")
    position = 0
    for char in label.upper():
        position = position * 26 + (ord(char) - ord("A") + 1)
    return position


def column_position_to_label(position: int) -> str | None:
    """Convert a 1-based column position to its column label.

    Args:
        position: Column position.

    Returns:
        Uppercase column label, or None when position is below 1.

    Raises:
        InvalidArgumentError: If position is not an integer.
    """
    if isinstance(position, bool) or not isinstance(position, int):
        raise InvalidArgumentError(
            f"Column position must be an integer, got {type(position).__name__}."
        )
    if position < 1:
        return None
    chunks: list[str] = []
    current = position
    while current > 0:
        current, modulo = divmod(current - 1, 26)
        chunks.append(chr(ord("A") + modulo))
    return "".join(reversed(chunks))


def parse_a1_notation(
    value: object = _MISSING, transform: Transform | None = None
) -> Any:
    """Parse an A1 reference such as ``B2:D10``, ``M:X`` or ``5:15``.

    Surrounding whitespace is ignored, then one trailing colon. Missing start
    coordinates default to column ``A`` and row ``1``; missing end coordinates
    stay unresolved. Reversed rows and columns are swapped independently.

    Args:
        value: Range reference to parse.
        transform: Optional ``(key, value)`` hook applied post-order to every
            descriptor field and finally to the whole mapping (key ``""``).
            Returning ``REMOVE`` drops the field.

    Returns:
        RangeDescriptor, or the transformed mapping when transform is given.

    Raises:
        InvocationError: If value is omitted.
        InvalidArgumentError: If value is not a string or transform is not callable.
        A1SyntaxError: If value is not valid A1 syntax.
    """
    if value is _MISSING:
        raise InvocationError("parse_a1_notation() missing range reference.")
    if not isinstance(value, str):
        raise InvalidArgumentError(
            f"Range reference must be a string, got {type(value).__name__}."
        )
    if transform is not None and not callable(transform):
        raise InvalidArgumentError("transform must be callable.")

    stripped = value.strip()
    if _A1_NOTATION_PATTERN.fullmatch(stripped) is None:
        raise A1SyntaxError(value)
    # Only ASCII letters survive the match, so upper() cannot change the shape.
    candidate = stripped.upper()
    if candidate.endswith(":"):
        candidate = candidate[:-1]
    match = _A1_NOTATION_PATTERN.fullmatch(candidate)
    if match is None:
        raise A1SyntaxError(value)
    groups = match.groupdict()

    start_row = _parse_row(groups["start_row_position"], value)
    end_row = _parse_row(groups["end_row_position"], value)
    start_row_position = start_row or _DEFAULT_ROW_POSITION
    start_column_label = groups["start_column_label"] or _DEFAULT_COLUMN_LABEL
    end_column_label = groups["end_column_label"] or None

    fields: dict[str, Any] = {
        "start_row_position": start_row_position,
        "start_row_index": start_row_position - 1,
        "start_column_label": start_column_label,
        "start_column_position": column_label_to_position(start_column_label),
        "end_row_position": end_row,
        "end_row_index": None if end_row is None else end_row - 1,
        "end_column_label": end_column_label,
        "end_column_position": None,
        "end_column_index": None,
    }
    fields["start_column_index"] = fields["start_column_position"] - 1
    if end_column_label is not None:
        fields["end_column_position"] = column_label_to_position(end_column_label)
        fields["end_column_index"] = fields["end_column_position"] - 1

    is_cell = ":" not in candidate or (
        fields["start_row_index"] == fields["end_row_index"]
        and fields["start_column_index"] == fields["end_column_index"]
    )
    if is_cell:
        _collapse_to_start(fields)
    else:
        fields["num_rows"] = _order_axis(fields, "row")
        fields["num_columns"] = _order_axis(fields, "column")

    fields["is_cell"] = is_cell
    fields["a1_notation"] = _render(fields, candidate)

    halves = fields["a1_notation"].split(":")
    if len(halves) == 2 and halves[0] == halves[1]:
        _collapse_to_start(fields)
        fields["is_cell"] = True
        fields["a1_notation"] = _render(fields, candidate)

    descriptor = RangeDescriptor(**fields)
    if transform is None:
        return descriptor
    revived = apply_transform(descriptor.to_dict(), transform)
    return None if revived is REMOVE else revived


def apply_transform(value: Any, transform: Transform, key: str = "") -> Any:
    """Apply ``transform`` post-order over nested dicts and lists.

    Children are visited before their container. A child whose transformed
    value is ``REMOVE`` is dropped from the container.
    """
    if isinstance(value, dict):
        walked: dict[str, Any] = {}
        for prop, item in value.items():
            revived = apply_transform(item, transform, str(prop))
            if revived is not REMOVE:
                walked[prop] = revived
        value = walked
    elif isinstance(value, list):
        items: list[Any] = []
        for position, item in enumerate(value):
            revived = apply_transform(item, transform, str(position))
            if revived is not REMOVE:
                items.append(revived)
        value = items
    return transform(key, value)


def _parse_row(raw: str | None, value: str) -> int | None:
    if not raw:
        return None
    row = int(raw)
    if row < 1:
        raise A1SyntaxError(value, "row positions start at 1")
    return row


def _collapse_to_start(fields: dict[str, Any]) -> None:
    for axis, parts in _AXIS_PARTS.items():
        for part in parts:
            fields[f"end_{axis}_{part}"] = fields[f"start_{axis}_{part}"]
    fields["num_rows"] = 1
    fields["num_columns"] = 1


def _order_axis(fields: dict[str, Any], axis: str) -> int | None:
    """Swap reversed start/end on one axis and return its span length."""
    start_index = fields[f"start_{axis}_index"]
    end_index = fields[f"end_{axis}_index"]
    if start_index is None or end_index is None:
        return None
    if start_index > end_index:
        for part in _AXIS_PARTS[axis]:
            start_key, end_key = f"start_{axis}_{part}", f"end_{axis}_{part}"
            fields[start_key], fields[end_key] = fields[end_key], fields[start_key]
    return abs(end_index - start_index) + 1


def _render(fields: dict[str, Any], candidate: str) -> str:
    start_column = fields["start_column_label"]
    start_row = fields["start_row_position"]
    end_column = fields["end_column_label"]
    end_row = fields["end_row_position"]
    if fields["is_cell"]:
        return f"{start_column}{start_row}"
    if end_column is not None and end_row is not None:
        return f"{start_column}{start_row}:{end_column}{end_row}"
    if end_column is not None:
        return f"{start_column}:{end_column}"
    if end_row is not None and not candidate.startswith(start_column):
        return f"{start_row}:{end_row}"
    if end_row is not None:
        return f"{start_column}{start_row}:{start_column}{end_row}"
    return f"{start_column}{start_row}"
