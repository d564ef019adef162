import pytest

from invoice_sap.config_labels import HEADER_TABLE, LINE_TABLE
from invoice_sap.exceptions import EmptyInvoiceError, UnknownColumnError
from invoice_sap.formatter import normalize, normalize_column, render, render_invoice
from invoice_sap.models import Alignment, ColumnSpec, ColumnTable, InvoiceBuilder


def test_normalize_pads_left_aligned_on_the_right():
    spec = ColumnSpec(name="SGTXT", width=6, alignment=Alignment.LEFT)
    assert normalize(spec, "abc") == "abc   "


def test_normalize_pads_right_aligned_on_the_left():
    spec = ColumnSpec(name="AMOUNT", width=8, alignment=Alignment.RIGHT)
    assert normalize(spec, "12.98") == "   12.98"


def test_normalize_truncates_to_width():
    spec = ColumnSpec(name="XBLNR", width=4)
    assert normalize(spec, "ABCDEFG") == "ABCD"


def test_normalize_transliterates_before_measuring():
    spec = ColumnSpec(name="SGTXT", width=12)
    assert normalize(spec, "Café Müller") == "Cafe Muller "
    # "ß" folds to two characters, so truncation happens after folding
    assert normalize(ColumnSpec(name="X", width=3), "aßb") == "ass"


def test_normalize_none_is_blank():
    assert normalize(ColumnSpec(name="ZLSCH", width=2), None) == "  "


def test_normalize_unknown_column_raises():
    with pytest.raises(UnknownColumnError):
        normalize_column(LINE_TABLE, "NOPE", "x")


def test_column_table_rejects_duplicate_names():
    with pytest.raises(ValueError):
        ColumnTable(
            record_type="broken",
            columns=(ColumnSpec(name="A", width=1), ColumnSpec(name="A", width=2)),
        )


def test_render_uses_defaults_and_ends_with_crlf():
    line = render({}, HEADER_TABLE)
    assert line.endswith("\r\n")
    assert line.count("\r\n") == 1
    body = line[:-2]
    assert len(body) == sum(col.width for col in HEADER_TABLE.columns) == 119
    assert body[0] == "H"
    # VENDORTYPE sits after TYPE, SGTXT, DOCDATE, BASELINEDATE and XBLNR
    assert body[83:87] == "ZOTV"


def test_render_follows_column_order():
    line = render({"AMOUNT": "5", "SAKNR": "GL1"}, LINE_TABLE, ["SAKNR", "AMOUNT"])
    assert line == "GL1" + " " * 7 + " " * 15 + "5" + "\r\n"


def test_render_rejects_columns_outside_the_table():
    with pytest.raises(UnknownColumnError):
        render({"AMOUNT": "5", "LIFNR": "V1"}, LINE_TABLE)


def _invoice(line_count):
    invoice = InvoiceBuilder.start(HEADER_TABLE)
    invoice.set_header(HEADER_TABLE, {"AMOUNT": "30.00"})
    for n in range(line_count):
        invoice.add_line(LINE_TABLE, {"AMOUNT": f"{n + 1}.00"})
    return invoice


def test_render_invoice_marks_only_the_last_line_final():
    output = render_invoice(_invoice(3))
    records = output.split("\r\n")
    assert records[-1] == ""
    header, *lines = records[:-1]
    assert header.startswith("H")
    assert [line[0] for line in lines] == ["D", "D", "L"]


def test_render_invoice_single_line_is_final():
    lines = render_invoice(_invoice(1)).split("\r\n")[1:-1]
    assert [line[0] for line in lines] == ["L"]


def test_render_invoice_does_not_mutate_lines():
    invoice = _invoice(2)
    render_invoice(invoice)
    assert [line["TYPE"] for line in invoice.lines] == ["D", "D"]


def test_render_invoice_overrides_caller_type():
    invoice = _invoice(0)
    invoice.add_line(LINE_TABLE, {"TYPE": "L", "AMOUNT": "1"})
    invoice.add_line(LINE_TABLE, {"AMOUNT": "2"})
    lines = render_invoice(invoice).split("\r\n")[1:-1]
    assert [line[0] for line in lines] == ["D", "L"]


def test_render_invoice_without_lines_raises():
    with pytest.raises(EmptyInvoiceError):
        render_invoice(_invoice(0))


def test_builder_rejects_unknown_header_column():
    invoice = InvoiceBuilder.start(HEADER_TABLE)
    with pytest.raises(UnknownColumnError):
        invoice.set_header(HEADER_TABLE, {"KOSTL": "x"})
