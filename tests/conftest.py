from datetime import datetime, timezone
from pathlib import Path

import pytest

ALMA_NS = "http://com/exlibris/repository/acq/invoice/xmlbeans"

BEFORE_CUTOVER = datetime(2016, 3, 1, 9, 30, tzinfo=timezone.utc)
AFTER_CUTOVER = datetime(2017, 1, 5, 9, 30, tzinfo=timezone.utc)


def invoice_line_xml(
    total_price="10.00",
    reporting_code="GL200",
    external_id="CC100",
    po_line_info="",
):
    parts = ["<invoice_line>"]
    if total_price is not None:
        parts.append(f"<total_price>{total_price}</total_price>")
    if reporting_code is not None:
        parts.append(f"<reporting_code>{reporting_code}</reporting_code>")
    if external_id is not None:
        parts.append(
            "<fund_info_list><fund_info>"
            f"<external_id>{external_id}</external_id>"
            "</fund_info></fund_info_list>"
        )
    parts.append(po_line_info)
    parts.append("</invoice_line>")
    return "".join(parts)


def invoice_xml(
    uid="INV-1",
    amount="10.00",
    date="02/14/2016",
    number="N-1",
    vendor="V12345",
    lines=None,
):
    if lines is None:
        lines = [invoice_line_xml()]
    parts = ["<invoice>"]
    if uid is not None:
        parts.append(f"<unique_identifier>{uid}</unique_identifier>")
    if number is not None:
        parts.append(f"<invoice_number>{number}</invoice_number>")
    if date is not None:
        parts.append(f"<invoice_date>{date}</invoice_date>")
    if vendor is not None:
        parts.append(f"<vendor_FinancialSys_Code>{vendor}</vendor_FinancialSys_Code>")
    if amount is not None:
        parts.append(f"<invoice_amount><sum>{amount}</sum><currency>USD</currency></invoice_amount>")
    parts.append("<invoice_line_list>")
    parts.extend(lines)
    parts.append("</invoice_line_list>")
    parts.append("</invoice>")
    return "".join(parts)


def alma_document(*invoices, namespace=ALMA_NS):
    xmlns = f' xmlns="{namespace}"' if namespace else ""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f"<payment_data{xmlns}><invoice_list>{''.join(invoices)}</invoice_list></payment_data>"
    )


@pytest.fixture
def reader_root(tmp_path: Path) -> Path:
    root = tmp_path / "reader"
    for name in ("inbox", "todo", "outbox", "success", "failure"):
        (root / name).mkdir(parents=True)
    return root


@pytest.fixture
def destination(tmp_path: Path) -> Path:
    dest = tmp_path / "sap"
    (dest / "inbox").mkdir(parents=True)
    return dest
