# invoice_sap/config.py
"""Runtime configuration: paths from the command line, falling back to the environment."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from .config_labels import BATCH_FILE_FORMAT, HEADER_TEXT
from .exceptions import ConfigurationError

ENV_PREFIX = "INVOICE_SAP_"


class RunConfig(BaseModel):
    root: Path
    destination: Path
    log: Path
    report: Optional[Path] = None
    batch_name_format: str = BATCH_FILE_FORMAT
    header_text: str = HEADER_TEXT
    lock_name: str = "invoice-sap"

    @property
    def destination_inbox(self) -> Path:
        return self.destination / "inbox"


def _from_env(name: str, value: Optional[str]) -> Optional[str]:
    if value:
        return value
    return os.getenv(ENV_PREFIX + name.upper()) or None


def load_config(
    root: Optional[str] = None,
    destination: Optional[str] = None,
    log: Optional[str] = None,
    report: Optional[str] = None,
    **overrides,
) -> RunConfig:
    """
    Build a RunConfig. Raises ConfigurationError when root, destination or
    log is given neither directly nor through INVOICE_SAP_* variables.
    """
    values = {
        "root": _from_env("root", root),
        "destination": _from_env("destination", destination),
        "log": _from_env("log", log),
        "report": _from_env("report", report),
    }
    missing = [name for name in ("root", "destination", "log") if not values[name]]
    if missing:
        raise ConfigurationError(
            "no configuration available, missing " + ", ".join(missing)
        )
    values.update({k: v for k, v in overrides.items() if v is not None})
    return RunConfig(**values)


def check_layout(config: RunConfig) -> None:
    """Every queue directory and the destination inbox must already exist."""
    required = [config.root / name for name in ("inbox", "todo", "outbox", "success", "failure")]
    required.append(config.destination_inbox)
    missing = [str(path) for path in required if not path.is_dir()]
    if missing:
        raise ConfigurationError("missing directories: " + ", ".join(missing))
