from __future__ import annotations

from collections.abc import Iterable
import logging

from pydantic import BaseModel, Field, field_validator, model_validator

from .errors import SheetDataError
from .host import SheetHost

logger = logging.getLogger(__name__)


class SchemaField(BaseModel):
    """Named column of a sheet schema."""

    name: str

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        candidate = value.strip()
        if not candidate:
            raise ValueError("field name must not be empty.")
        return candidate


class SheetSchema(BaseModel):
    """Ordered field names attached to a sheet, one per column."""

    fields: list[SchemaField] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_unique(self) -> SheetSchema:
        seen: set[str] = set()
        for field in self.fields:
            if field.name in seen:
                raise ValueError(f"Duplicate field name: {field.name}")
            seen.add(field.name)
        return self

    @property
    def names(self) -> list[str]:
        return [field.name for field in self.fields]

    def field_name(self, index: int) -> str | None:
        """Return the field name for a 0-based column index, if any."""
        if 0 <= index < len(self.fields):
            return self.fields[index].name
        return None

    @classmethod
    def from_names(cls, names: Iterable[str]) -> SheetSchema:
        return cls(fields=[SchemaField(name=name) for name in names])

    @classmethod
    def infer(cls, host: SheetHost, header_row: int = 1) -> SheetSchema:
        """Build a schema from the header row of a sheet.

        Empty header cells get ``Col{position}`` names and repeated names get
        ``_2``, ``_3`` suffixes.

        Args:
            host: Sheet host to read from.
            header_row: 1-based header row position.

        Returns:
            Inferred schema.

        Raises:
            SheetDataError: If the header row lies outside the data region.
        """
        last_column = host.last_column
        if last_column < 1 or header_row > host.last_row:
            raise SheetDataError(f"No header row {header_row} in sheet {host.name}.")
        header = host.get_range_values(
            header_row, 1, 1, last_column, display_only=True
        )[0]
        while header and not str(header[-1]).strip():
            header.pop()
        names: list[str] = []
        for position, raw in enumerate(header, start=1):
            base = str(raw).strip() or f"Col{position}"
            name = base
            suffix = 1
            while name in names:
                suffix += 1
                name = f"{base}_{suffix}"
            names.append(name)
        logger.debug("Inferred schema for %s: %s", host.name, names)
        return cls.from_names(names)
