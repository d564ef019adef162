from fastapi.testclient import TestClient

from main import app

from conftest import alma_document, invoice_xml

client = TestClient(app)


def test_health():
    assert client.get("/health").json() == {"status": "ok"}


def test_resolve_date():
    resp = client.get("/resolve-date", params={"raw": "14022016"})
    assert resp.json() == {"raw": "14022016", "resolved": "20160214"}
    assert client.get("/resolve-date").json()["resolved"] == "18790314"


def test_convert_xml_mixed_upload():
    good = alma_document(invoice_xml(uid="A"), invoice_xml(uid="CC", vendor="X**CC**"))
    files = [
        ("files", ("good.xml", good.encode("utf-8"), "application/xml")),
        ("files", ("bad.xml", b"<oops", "application/xml")),
    ]
    body = client.post("/convert-xml", files=files).json()

    assert body["summary"] == {"total_files": 2, "failed_files": 1, "error_count": 2}
    by_name = {f["file_name"]: f for f in body["files"]}
    assert by_name["good.xml"]["invoices_rendered"] == 1
    assert by_name["good.xml"]["records"][0].endswith("\r\n")
    assert by_name["bad.xml"]["ok"] is False
    assert "Alma file bad.xml is not valid XML" in body["report"]
    assert "CC: no credit card transactions permitted" in body["report"]
