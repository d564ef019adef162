# invoice_sap/formatter.py
from __future__ import annotations

from typing import Iterable, List, Mapping, Optional

from unidecode import unidecode

from .config_labels import (
    HEADER_TABLE,
    LINE_TABLE,
    LINE_TYPE_CONTINUATION,
    LINE_TYPE_FINAL,
    RECORD_TERMINATOR,
)
from .exceptions import EmptyInvoiceError
from .models import Alignment, ColumnSpec, ColumnTable, InvoiceBuilder


def normalize(spec: ColumnSpec, raw_value: Optional[str]) -> str:
    """
    Fit ``raw_value`` into the column: fold to plain ASCII, then truncate to
    the column width or pad with spaces on the side opposite the alignment.
    """
    value = unidecode(raw_value or "")

    if len(value) > spec.width:
        return value[: spec.width]

    if spec.alignment is Alignment.RIGHT:
        return value.rjust(spec.width)
    return value.ljust(spec.width)


def normalize_column(table: ColumnTable, column: str, raw_value: Optional[str]) -> str:
    return normalize(table.get(column), raw_value)


def render(
    record: Mapping[str, str],
    table: ColumnTable,
    column_order: Optional[Iterable[str]] = None,
) -> str:
    for column in record:
        table.get(column)

    pieces: List[str] = []
    for column in column_order or table.order:
        spec = table.get(column)
        pieces.append(normalize(spec, record.get(column, spec.default)))
    return "".join(pieces) + RECORD_TERMINATOR


def render_invoice(
    invoice: InvoiceBuilder,
    header_table: ColumnTable = HEADER_TABLE,
    line_table: ColumnTable = LINE_TABLE,
) -> str:
    """Header record followed by one record per line; the last line is typed final."""
    if not invoice.lines:
        raise EmptyInvoiceError("invoice has no lines to render")

    output = [render(invoice.header, header_table)]
    last = len(invoice.lines) - 1
    for pos, line in enumerate(invoice.lines):
        marker = LINE_TYPE_FINAL if pos == last else LINE_TYPE_CONTINUATION
        output.append(render({**line, "TYPE": marker}, line_table))
    return "".join(output)
