# invoice_sap/config_labels.py
"""Column layouts, patterns and fixed constants for the SAP inbound interface."""
from __future__ import annotations

import re
from datetime import datetime, timezone

from .models import Alignment, ColumnSpec, ColumnTable

L = Alignment.LEFT
R = Alignment.RIGHT

# Fill character is space.
HEADER_TABLE = ColumnTable(
    record_type="header",
    columns=(
        ColumnSpec(name="TYPE", width=1, alignment=L, default="H"),
        ColumnSpec(name="SGTXT", width=50, alignment=L),
        ColumnSpec(name="DOCDATE", width=8, alignment=L),
        ColumnSpec(name="BASELINEDATE", width=8, alignment=L),
        ColumnSpec(name="XBLNR", width=16, alignment=L),
        ColumnSpec(name="VENDORTYPE", width=4, alignment=L, default="ZOTV"),
        ColumnSpec(name="LIFNR", width=10, alignment=L),
        ColumnSpec(name="AMOUNT", width=16, alignment=R),
        ColumnSpec(name="BUSCS", width=1, alignment=L, default="R"),
        ColumnSpec(name="ZLSCH", width=1, alignment=L),
        ColumnSpec(name="UZAWE", width=2, alignment=L),
        ColumnSpec(name="ZLSPR", width=1, alignment=L),
        ColumnSpec(name="REGUL", width=1, alignment=L),
    ),
)

LINE_TABLE = ColumnTable(
    record_type="line",
    columns=(
        ColumnSpec(name="TYPE", width=1, alignment=L, default="D"),
        ColumnSpec(name="SAKNR", width=10, alignment=L),
        ColumnSpec(name="KOSTL", width=10, alignment=L),
        ColumnSpec(name="AMOUNT", width=16, alignment=R),
        ColumnSpec(name="SHKZG", width=1, alignment=L, default="S"),
        ColumnSpec(name="SGTXT", width=50, alignment=L),
    ),
)

# Downstream detects invoice boundaries from the line TYPE column.
LINE_TYPE_CONTINUATION = "D"
LINE_TYPE_FINAL = "L"

RECORD_TERMINATOR = "\r\n"

# Alma writes a zero sum as "0", "0.00", ".00" or leaves it empty.
ZERO_AMOUNT_PATTERN = re.compile(r"^0*\.?0*$")

CREDIT_CARD_MARKER = "**CC**"
REVERSE_PO_PATTERN = re.compile(r"reverse po", re.IGNORECASE)

US_SLASH_DATE_PATTERN = re.compile(r"^(?P<month>\d\d)/(?P<day>\d\d)/(?P<year>\d{4})$")
EIGHT_DIGIT_DATE_PATTERN = re.compile(r"^(\d\d)(\d\d)(\d\d)(\d\d)$")
CENTURY_MARKERS = (19, 20)

# Deliberately implausible; downstream keys off it to flag unreadable dates.
UNKNOWN_DATE = "18790314"

# From this instant on (inclusive) G/L code lives in reporting_code and cost
# center in external_id. Before it both sat in external_id as COSTCENTER-GLCODE.
COST_CENTER_CUTOVER = datetime(2016, 7, 18, tzinfo=timezone.utc)

PO_LINE_NUMBER_WIDTH = 10
BIB_ID_WIDTH = 10
MISSING_BIB_ID = " " * BIB_ID_WIDTH
MISSING_TITLE = ' "'

# The extractor writes VENDORTYPE blank instead of the table default.
HEADER_VENDORTYPE = "    "
HEADER_TEXT = "Univ of Kentucky Libraries"

# Sample data file name: d_aplibr_uklibraries20151015
BATCH_FILE_FORMAT = "d_aplibr_uklibraries%Y%m%d"
BATCH_FILE_MODE = 0o664
SOURCE_SUFFIX = ".xml"

LOG_FORMAT = "Reader [%(asctime)s]: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"

ERROR_HEADINGS = {
    "xml-parse": "Alma XML parsing errors",
    "invoice-validation": "Invoice errors",
    "workflow": "File handling errors",
}
