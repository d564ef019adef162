# invoice_sap/cli.py
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import load_config
from .config_labels import LOG_DATE_FORMAT, LOG_FORMAT
from .exceptions import InvoiceSapError
from .extractor import export_invoices
from .pipeline import run
from .report import ErrorCategory, ErrorLog, write_report

logger = logging.getLogger("invoice_sap")


def configure_logging(log_path: Optional[str]) -> None:
    logger.setLevel(logging.DEBUG)
    if not log_path:
        return
    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(handler)


def cmd_run(args: argparse.Namespace) -> int:
    config = load_config(
        root=args.root,
        destination=args.destination,
        log=args.log,
        report=args.report,
        batch_name_format=args.batch_name_format,
    )
    configure_logging(str(config.log))
    summary = run(config)

    delivered = f"delivered to {summary.delivered_to}" if summary.delivered_to else "discarded"
    print(
        f"[RUN] Files: {summary.succeeded} succeeded, {summary.failed} failed; "
        f"invoices written: {summary.invoices_written}; batch {summary.batch_file} {delivered}"
    )
    if summary.error_count:
        print(f"Errors recorded: {summary.error_count}")
    return 0


def cmd_convert(args: argparse.Namespace) -> int:
    configure_logging(args.log)
    result = export_invoices(args.input)

    errors = ErrorLog()
    if not result.ok:
        errors.record(ErrorCategory.XML, result.parse_error)
    for message in result.errors:
        errors.record(ErrorCategory.INVOICE, message)

    data = "".join(result.records)
    if args.output:
        Path(args.output).write_text(data, encoding="utf-8", newline="")
        print(f"Rendered {result.invoices_rendered} invoices to {args.output}")
    else:
        sys.stdout.write(data)

    if errors.has_errors():
        write_report(errors.render_report(), Path(args.report) if args.report else None)
    return 0 if result.ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="invoice-sap")
    sub = parser.add_subparsers(dest="command", required=True)

    p_run = sub.add_parser("run", help="Process the inbox of a root directory into one SAP batch")
    p_run.add_argument("--root", help="Root holding inbox, todo, outbox, success and failure")
    p_run.add_argument("--destination", help="Destination root; the batch goes to its inbox")
    p_run.add_argument("--log", help="Debug log file")
    p_run.add_argument("--report", help="Error report file (appended to)")
    p_run.add_argument("--batch-name-format", help="strftime pattern for the batch file name")
    p_run.set_defaults(func=cmd_run)

    p_convert = sub.add_parser("convert", help="Convert a single Alma XML file, no queue handling")
    p_convert.add_argument("--input", required=True, help="Alma invoice XML file")
    p_convert.add_argument("--output", help="Output data file (default: stdout)")
    p_convert.add_argument("--log", help="Debug log file")
    p_convert.add_argument("--report", help="Error report file (default: stdout)")
    p_convert.set_defaults(func=cmd_convert)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        exit_code = args.func(args)
    except InvoiceSapError as exc:
        if logger.handlers:
            logger.error("%s", exc)
        print(f"{parser.prog}: {exc}", file=sys.stderr)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
