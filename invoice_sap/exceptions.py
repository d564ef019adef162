# invoice_sap/exceptions.py
from __future__ import annotations


class InvoiceSapError(Exception):
    """Base class for every error raised by the reader."""


class ConfigurationError(InvoiceSapError):
    pass


class AlreadyRunningError(InvoiceSapError):
    pass


class WorkflowError(InvoiceSapError):
    """A queue directory could not be scanned or written. Fatal for the run."""


class TransitionError(WorkflowError):
    """A single file could not be moved between queue directories."""

    def __init__(self, source, target, reason: str):
        self.source = source
        self.target = target
        super().__init__(f"can't move {source} to {target}: {reason}")


class XmlParseError(InvoiceSapError):
    pass


class MissingFieldError(InvoiceSapError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"missing required field {field}")


class UnknownColumnError(InvoiceSapError, KeyError):
    def __init__(self, column: str):
        self.column = column
        super().__init__(column)

    def __str__(self) -> str:
        return f"unknown column {self.column}"


class EmptyInvoiceError(InvoiceSapError):
    pass
