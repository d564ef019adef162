# invoice_sap/models.py
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import UnknownColumnError


class Alignment(str, Enum):
    LEFT = "left"
    RIGHT = "right"


class ColumnSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    width: int = Field(gt=0)
    alignment: Alignment = Alignment.LEFT
    default: str = ""


class ColumnTable(BaseModel):
    """Ordered, immutable set of columns for one record type."""

    model_config = ConfigDict(frozen=True)

    record_type: str
    columns: Tuple[ColumnSpec, ...]

    @field_validator("columns")
    @classmethod
    def _unique_names(cls, columns: Tuple[ColumnSpec, ...]) -> Tuple[ColumnSpec, ...]:
        seen = set()
        for col in columns:
            if col.name in seen:
                raise ValueError(f"duplicate column {col.name}")
            seen.add(col.name)
        return columns

    @property
    def order(self) -> List[str]:
        return [col.name for col in self.columns]

    def get(self, name: str) -> ColumnSpec:
        for col in self.columns:
            if col.name == name:
                return col
        raise UnknownColumnError(name)

    def defaults(self) -> Dict[str, str]:
        return {col.name: col.default for col in self.columns}

    def record(self, values: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Defaulted record with ``values`` applied. Unknown columns are rejected."""
        record = self.defaults()
        for name, value in (values or {}).items():
            self.get(name)
            record[name] = value
        return record


class InvoiceBuilder(BaseModel):
    """
    One invoice as it is being extracted: a defaulted header plus the
    ordered line records. Built by exactly one extraction and rendered once.
    """

    header: Dict[str, str]
    lines: List[Dict[str, str]] = []

    @classmethod
    def start(cls, header_table: ColumnTable) -> "InvoiceBuilder":
        return cls(header=header_table.defaults(), lines=[])

    def set_header(self, header_table: ColumnTable, values: Mapping[str, str]) -> None:
        for name, value in values.items():
            header_table.get(name)
            self.header[name] = value

    def add_line(self, line_table: ColumnTable, values: Mapping[str, str]) -> None:
        self.lines.append(line_table.record(values))


class ExtractionResult(BaseModel):
    ok: bool
    records: List[str] = []
    errors: List[str] = []
    parse_error: Optional[str] = None
    invoices_rendered: int = 0
    invoices_skipped: int = 0


class FileState(str, Enum):
    PENDING = "pending"
    CLAIMED = "claimed"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FileJob(BaseModel):
    path: Path
    state: FileState = FileState.PENDING


class RunSummary(BaseModel):
    batch_file: str
    delivered_to: Optional[Path] = None
    claimed: int = 0
    succeeded: int = 0
    failed: int = 0
    invoices_written: int = 0
    error_count: int = 0
    report: str = ""
