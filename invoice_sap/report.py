# invoice_sap/report.py
from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .config_labels import ERROR_HEADINGS

logger = logging.getLogger(__name__)


class ErrorCategory(str, Enum):
    XML = "xml-parse"
    INVOICE = "invoice-validation"
    WORKFLOW = "workflow"


class ErrorLog:
    """Categorized error messages collected over one run."""

    def __init__(self, headings: Optional[Mapping[str, str]] = None):
        self.headings: Dict[str, str] = dict(headings or ERROR_HEADINGS)
        self._messages: Dict[str, List[str]] = {key: [] for key in self.headings}

    def record(self, category, message: str) -> None:
        key = ErrorCategory(category).value
        self._messages.setdefault(key, []).append(message)

    def messages(self, category) -> List[str]:
        return list(self._messages.get(ErrorCategory(category).value, []))

    def count(self) -> int:
        return sum(len(msgs) for msgs in self._messages.values())

    def has_errors(self) -> bool:
        return self.count() > 0

    def render_report(self) -> str:
        sections: List[str] = []
        for key, msgs in self._messages.items():
            if not msgs:
                continue
            heading = self.headings.get(key, key)
            bullets = "".join(f" * {msg}\n" for msg in msgs)
            sections.append(f"{heading}\n\n{bullets}\n")
        return "".join(sections)


def write_report(report: str, path: Optional[Path] = None) -> None:
    """Append the report to ``path``, or print it when no report file is configured."""
    if not report:
        return
    if path is None:
        print(report, end="")
        return
    with Path(path).open("a", encoding="utf-8") as fh:
        fh.write(report)
    logger.debug("wrote error report to %s", path)
