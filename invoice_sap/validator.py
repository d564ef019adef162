# invoice_sap/validator.py
from __future__ import annotations

import html
from datetime import datetime, timezone
from typing import Optional, Tuple

from .config_labels import (
    BIB_ID_WIDTH,
    COST_CENTER_CUTOVER,
    CREDIT_CARD_MARKER,
    MISSING_BIB_ID,
    MISSING_TITLE,
    PO_LINE_NUMBER_WIDTH,
    REVERSE_PO_PATTERN,
    ZERO_AMOUNT_PATTERN,
)


def is_zero_amount(amount: Optional[str]) -> bool:
    """Absent amounts count as zero."""
    if amount is None:
        return True
    return ZERO_AMOUNT_PATTERN.match(amount.strip()) is not None


def should_skip_invoice(amount: Optional[str]) -> bool:
    return is_zero_amount(amount)


def vendor_rejection(vendor_code: str, unique_identifier: str) -> Optional[str]:
    """Error message when the vendor code marks an invoice we must not transmit."""
    if CREDIT_CARD_MARKER in vendor_code:
        return f"{unique_identifier}: no credit card transactions permitted"
    if REVERSE_PO_PATTERN.search(vendor_code):
        return f"{unique_identifier}: no reverse POs permitted"
    return None


def should_skip_line(total_price: Optional[str], reporting_code: Optional[str]) -> bool:
    return is_zero_amount(total_price) or reporting_code is None


def uses_split_fields(now: Optional[datetime] = None) -> bool:
    """True from the cutover on, when G/L code and cost center sit in separate fields."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.astimezone()
    return now >= COST_CENTER_CUTOVER


def split_combined_external_id(external_id: str) -> Tuple[str, str]:
    """
    Pre-cutover external_id is COSTCENTER-GLCODE. Returns (gl_code,
    cost_center), both empty when there is no hyphen to split on.
    """
    cost_center, sep, gl_code = external_id.rpartition("-")
    if not sep or not cost_center or not gl_code:
        return "", ""
    return gl_code, cost_center


def cost_allocation(
    external_id: str,
    reporting_code: str,
    now: Optional[datetime] = None,
) -> Tuple[str, str]:
    """Return (SAKNR, KOSTL) for an invoice line under the policy in force at ``now``."""
    if uses_split_fields(now):
        return reporting_code, external_id
    return split_combined_external_id(external_id)


def po_line_annotation(
    po_line_number: str,
    mms_record_id: Optional[str] = None,
    title: Optional[str] = None,
) -> str:
    line_number = po_line_number[:PO_LINE_NUMBER_WIDTH]
    bib_id = (mms_record_id if mms_record_id is not None else MISSING_BIB_ID)[:BIB_ID_WIDTH]
    decoded_title = html.unescape(title) if title is not None else MISSING_TITLE
    return f"{line_number} {bib_id} {decoded_title}"
