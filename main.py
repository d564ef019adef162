from typing import List

from fastapi import FastAPI, File, UploadFile

from invoice_sap.dates import resolve_invoice_date
from invoice_sap.exceptions import XmlParseError
from invoice_sap.extractor import extract_invoices, parse_document
from invoice_sap.report import ErrorCategory, ErrorLog

app = FastAPI(title="Alma to SAP Inbound Interface")


# ---------------------------------------------------------
# HEALTH
# ---------------------------------------------------------
@app.get("/health")
def health():
    return {"status": "ok"}


# ---------------------------------------------------------
# DATE RESOLUTION (for checking odd Alma exports)
# ---------------------------------------------------------
@app.get("/resolve-date")
def resolve_date(raw: str = ""):
    return {"raw": raw, "resolved": resolve_invoice_date(raw)}


# ---------------------------------------------------------
# CONVERT UPLOADED ALMA XML FILES
# ---------------------------------------------------------
@app.post("/convert-xml")
async def convert_xml(files: List[UploadFile] = File(...)):
    """
    Render uploaded Alma invoice exports the way a run would, without
    touching the queue directories. Nothing is delivered anywhere.
    """
    errors = ErrorLog()
    converted = []

    for f in files:
        content = await f.read()
        try:
            root = parse_document(content)
        except XmlParseError:
            errors.record(ErrorCategory.XML, f"Alma file {f.filename} is not valid XML")
            converted.append({"file_name": f.filename, "ok": False, "records": []})
            continue

        result = extract_invoices(root)
        for message in result.errors:
            errors.record(ErrorCategory.INVOICE, message)
        converted.append(
            {
                "file_name": f.filename,
                "ok": True,
                "records": result.records,
                "invoices_rendered": result.invoices_rendered,
                "invoices_skipped": result.invoices_skipped,
            }
        )

    return {
        "summary": {
            "total_files": len(files),
            "failed_files": sum(1 for c in converted if not c["ok"]),
            "error_count": errors.count(),
        },
        "files": converted,
        "report": errors.render_report(),
    }
