# invoice_sap/extractor.py
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from .config_labels import HEADER_TABLE, HEADER_TEXT, HEADER_VENDORTYPE, LINE_TABLE
from .dates import resolve_invoice_date
from .exceptions import MissingFieldError, XmlParseError
from .formatter import render_invoice
from .models import ExtractionResult, InvoiceBuilder
from .validator import (
    cost_allocation,
    po_line_annotation,
    should_skip_invoice,
    should_skip_line,
    vendor_rejection,
)

logger = logging.getLogger(__name__)


def _local_name(tag) -> str:
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def find_all(element: ET.Element, name: str) -> Iterator[ET.Element]:
    """Descendants of ``element`` with the given local name, namespace ignored."""
    for child in element.iter():
        if child is not element and _local_name(child.tag) == name:
            yield child


def find_first(element: ET.Element, name: str) -> Optional[ET.Element]:
    return next(find_all(element, name), None)


def find_unique_field(element: ET.Element, name: str) -> Optional[str]:
    """Text of the first descendant called ``name``; None when there is none."""
    found = find_first(element, name)
    if found is None:
        return None
    return (found.text or "").strip()


def require_field(element: ET.Element, name: str) -> str:
    value = find_unique_field(element, name)
    if value is None:
        raise MissingFieldError(name)
    return value


def parse_document(source: Union[str, Path, bytes]) -> ET.Element:
    try:
        if isinstance(source, bytes):
            return ET.fromstring(source)
        return ET.parse(str(source)).getroot()
    # Expat reports an unknown encoding declaration as LookupError and bad
    # byte sequences as UnicodeError.
    except (ET.ParseError, LookupError, ValueError) as exc:
        raise XmlParseError(str(exc)) from exc


def _extract_line(line: ET.Element, now: Optional[datetime]) -> Optional[dict]:
    total_price = find_unique_field(line, "total_price")
    reporting_code = find_unique_field(line, "reporting_code")
    if should_skip_line(total_price, reporting_code):
        return None

    saknr, kostl = cost_allocation(require_field(line, "external_id"), reporting_code, now)
    details = {"AMOUNT": total_price, "SAKNR": saknr, "KOSTL": kostl}

    # po_line_info is optional in the Alma schema.
    po_line_info = find_first(line, "po_line_info")
    if po_line_info is not None:
        details["SGTXT"] = po_line_annotation(
            require_field(po_line_info, "po_line_number"),
            find_unique_field(po_line_info, "mms_record_id"),
            find_unique_field(po_line_info, "po_line_title"),
        )
    return details


def build_invoice(
    invoice: ET.Element,
    now: Optional[datetime] = None,
    header_text: str = HEADER_TEXT,
) -> Tuple[Optional[InvoiceBuilder], Optional[str]]:
    """
    Extract one <invoice> element.

    Returns ``(builder, None)`` for an invoice to render, ``(None, message)``
    for a rejected one and ``(None, None)`` for one skipped without comment.
    Raises MissingFieldError when a required element is absent.
    """
    now = now or datetime.now().astimezone()

    # Only invoices with a nonzero amount are transmitted.
    amounts = find_first(invoice, "invoice_amount")
    amount = find_unique_field(amounts, "sum") if amounts is not None else None
    if should_skip_invoice(amount):
        return None, None

    unique_identifier = require_field(invoice, "unique_identifier")
    builder = InvoiceBuilder.start(HEADER_TABLE)
    header = {
        "VENDORTYPE": HEADER_VENDORTYPE,
        "AMOUNT": amount,
        "SGTXT": f"{unique_identifier} {header_text}",
        "DOCDATE": now.strftime("%Y%m%d"),
        "BASELINEDATE": resolve_invoice_date(require_field(invoice, "invoice_date")),
        "XBLNR": require_field(invoice, "invoice_number"),
        # Optional in the schema, required locally.
        "LIFNR": find_unique_field(invoice, "vendor_FinancialSys_Code") or "",
    }

    rejection = vendor_rejection(header["LIFNR"], unique_identifier)
    if rejection:
        return None, rejection

    builder.set_header(HEADER_TABLE, header)

    for line in find_all(invoice, "invoice_line"):
        details = _extract_line(line, now)
        if details is not None:
            builder.add_line(LINE_TABLE, details)

    if not builder.lines:
        return None, f"{unique_identifier}: no invoice lines with a nonzero amount"
    return builder, None


def extract_invoices(
    root: ET.Element,
    now: Optional[datetime] = None,
    header_text: str = HEADER_TEXT,
) -> ExtractionResult:
    records: List[str] = []
    errors: List[str] = []
    skipped = 0

    for pos, invoice in enumerate(find_all(root, "invoice"), start=1):
        try:
            builder, rejection = build_invoice(invoice, now, header_text)
        except MissingFieldError as exc:
            label = find_unique_field(invoice, "unique_identifier") or f"invoice #{pos}"
            builder, rejection = None, f"{label}: {exc}"

        if builder is None:
            skipped += 1
            if rejection:
                logger.debug("rejected invoice: %s", rejection)
                errors.append(rejection)
            continue

        records.append(render_invoice(builder))

    return ExtractionResult(
        ok=True,
        records=records,
        errors=errors,
        invoices_rendered=len(records),
        invoices_skipped=skipped,
    )


def export_invoices(
    alma_file: Union[str, Path],
    now: Optional[datetime] = None,
    header_text: str = HEADER_TEXT,
) -> ExtractionResult:
    """Parse one Alma XML file and render every invoice it holds."""
    logger.debug("processing %s", alma_file)
    try:
        root = parse_document(alma_file)
    except (XmlParseError, OSError) as exc:
        logger.debug("can't parse %s: %s", alma_file, exc)
        return ExtractionResult(
            ok=False,
            parse_error=f"Alma file {alma_file} is not valid XML",
        )
    return extract_invoices(root, now, header_text)
