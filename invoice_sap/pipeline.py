# invoice_sap/pipeline.py
from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .config import RunConfig, check_layout
from .config_labels import HEADER_TEXT
from .extractor import export_invoices
from .exceptions import WorkflowError
from .models import FileJob, FileState, RunSummary
from .report import ErrorCategory, ErrorLog, write_report
from .workflow import SingleInstanceGuard, WorkflowQueue

logger = logging.getLogger(__name__)


class AlmaFileHandler:
    """Converts one claimed file and files its errors under the right category."""

    def __init__(self, errors: ErrorLog, now: datetime, header_text: str = HEADER_TEXT):
        self.errors = errors
        self.now = now
        self.header_text = header_text
        self.rendered: Dict[str, int] = {}

    def __call__(self, path: Path) -> Tuple[bool, Sequence[str]]:
        result = export_invoices(path, now=self.now, header_text=self.header_text)
        if not result.ok:
            self.errors.record(ErrorCategory.XML, result.parse_error)
            return False, []
        for message in result.errors:
            self.errors.record(ErrorCategory.INVOICE, message)
        self.rendered[path.name] = result.invoices_rendered
        return True, result.records


def _create_batch(batch_path: Path):
    try:
        return batch_path.open("x", encoding="utf-8", newline="")
    except FileExistsError as exc:
        raise WorkflowError(f"data file {batch_path} already exists") from exc
    except OSError as exc:
        raise WorkflowError(f"can't open file {batch_path} for output: {exc}") from exc


def _invoices_written(jobs: List[FileJob], handler: AlmaFileHandler) -> int:
    return sum(
        handler.rendered.get(job.path.name, 0)
        for job in jobs
        if job.state is FileState.SUCCEEDED
    )


def run(config: RunConfig, now: Optional[datetime] = None) -> RunSummary:
    """
    One pass over the root: claim the inbox, convert everything in todo into
    one batch file, deliver or discard the batch and emit the error report.
    """
    check_layout(config)
    now = now or datetime.now().astimezone()

    with SingleInstanceGuard(config.root, config.lock_name):
        errors = ErrorLog()
        queue = WorkflowQueue(config.root, errors)
        batch_name = now.strftime(config.batch_name_format)
        batch_path = queue.outbox / batch_name
        # A same-named batch still waiting downstream would be replaced.
        if (config.destination_inbox / batch_name).exists():
            raise WorkflowError(
                f"{batch_name} is still waiting in {config.destination_inbox}"
            )

        claimed = queue.claim_pending()
        logger.debug("generating data file %s in %s", batch_name, queue.outbox)

        handler = AlmaFileHandler(errors, now, config.header_text)
        # newline="" keeps the CRLF record terminators byte for byte.
        with _create_batch(batch_path) as batch:
            jobs = queue.process_each(handler, batch)

        succeeded = sum(1 for job in jobs if job.state is FileState.SUCCEEDED)
        failed = sum(1 for job in jobs if job.state is FileState.FAILED)
        delivered = queue.finalize_batch(batch_path, config.destination_inbox, succeeded)

        report = errors.render_report()
        write_report(report, config.report)

    return RunSummary(
        batch_file=batch_name,
        delivered_to=delivered,
        claimed=len(claimed),
        succeeded=succeeded,
        failed=failed,
        invoices_written=_invoices_written(jobs, handler),
        error_count=errors.count(),
        report=report,
    )
