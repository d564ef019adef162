# invoice_sap/workflow.py
"""
Directory-backed job queue.

A source file moves inbox -> todo -> success | failure. Each move is a
single rename, so whichever directory holds the file is its state. The
batch file is written in outbox and renamed into the destination inbox
only once it is complete.
"""
from __future__ import annotations

import fcntl
import logging
import os
from pathlib import Path
from typing import Callable, List, Optional, Sequence, TextIO, Tuple

from .config_labels import BATCH_FILE_MODE, SOURCE_SUFFIX
from .exceptions import AlreadyRunningError, TransitionError, WorkflowError
from .models import FileJob, FileState
from .report import ErrorCategory, ErrorLog

logger = logging.getLogger(__name__)

Handler = Callable[[Path], Tuple[bool, Sequence[str]]]


def is_batch_candidate(path: Path) -> bool:
    return (
        not path.name.startswith(".")
        and path.name.endswith(SOURCE_SUFFIX)
        and path.is_file()
    )


def list_candidates(directory: Path) -> List[Path]:
    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        raise WorkflowError(f"can't open directory {directory}: {exc}") from exc
    return [path for path in entries if is_batch_candidate(path)]


def move(path: Path, directory: Path) -> Path:
    """Rename ``path`` into ``directory``; never replaces a file already there."""
    target = directory / path.name
    if os.path.lexists(target):
        raise TransitionError(path, target, "target already exists")
    try:
        os.rename(path, target)
    except OSError as exc:
        raise TransitionError(path, target, str(exc)) from exc
    return target


class WorkflowQueue:
    def __init__(self, root: Path, errors: Optional[ErrorLog] = None):
        self.root = Path(root)
        self.inbox = self.root / "inbox"
        self.todo = self.root / "todo"
        self.outbox = self.root / "outbox"
        self.success = self.root / "success"
        self.failure = self.root / "failure"
        self.errors = errors if errors is not None else ErrorLog()

    @property
    def directories(self) -> List[Path]:
        return [self.inbox, self.todo, self.outbox, self.success, self.failure]

    def _transition_failed(self, exc: TransitionError) -> None:
        logger.error("%s", exc)
        self.errors.record(ErrorCategory.WORKFLOW, str(exc))

    def claim_pending(self) -> List[FileJob]:
        """Rename every batch candidate in the inbox into todo."""
        logger.debug("queueing Alma XML files for processing")
        claimed: List[FileJob] = []
        for path in list_candidates(self.inbox):
            try:
                target = move(path, self.todo)
            except TransitionError as exc:
                self._transition_failed(exc)
                continue
            claimed.append(FileJob(path=target, state=FileState.CLAIMED))
        return claimed

    def process_each(self, handler: Handler, batch: TextIO) -> List[FileJob]:
        """
        Run ``handler`` over every file waiting in todo. Successful files go
        to success and their records are appended to ``batch``; the rest go
        to failure.
        """
        jobs: List[FileJob] = []
        for path in list_candidates(self.todo):
            job = FileJob(path=path, state=FileState.CLAIMED)
            try:
                ok, records = handler(path)
            except Exception as exc:
                logger.exception("handler failed for %s", path.name)
                self.errors.record(ErrorCategory.WORKFLOW, f"can't process {path.name}: {exc}")
                ok, records = False, []
            try:
                if ok:
                    job.path = move(path, self.success)
                    batch.write("".join(records))
                    job.state = FileState.SUCCEEDED
                else:
                    logger.debug("failed to generate output for %s", path.name)
                    job.path = move(path, self.failure)
                    job.state = FileState.FAILED
            except TransitionError as exc:
                self._transition_failed(exc)
                continue
            jobs.append(job)
        return jobs

    def finalize_batch(
        self,
        batch_path: Path,
        destination_inbox: Path,
        success_count: int,
    ) -> Optional[Path]:
        """Deliver the batch when any file succeeded, otherwise delete it."""
        if success_count > 0:
            logger.debug("submitting %s to %s", batch_path.name, destination_inbox)
            try:
                os.chmod(batch_path, BATCH_FILE_MODE)
            except OSError as exc:
                raise WorkflowError(f"can't set permissions on {batch_path}: {exc}") from exc
            return move(batch_path, destination_inbox)

        logger.debug("no input files, deleting %s", batch_path.name)
        try:
            batch_path.unlink()
        except OSError as exc:
            raise WorkflowError(f"can't delete {batch_path}: {exc}") from exc
        return None


class SingleInstanceGuard:
    """
    Exclusive, non-blocking flock on ``<root>/.<name>.lock``. Only one
    reader may work a given root at a time; contention is reported, not
    waited on.
    """

    def __init__(self, root: Path, name: str = "invoice-sap"):
        self.name = name
        self.lock_path = Path(root) / f".{name}.lock"
        self._fh = None

    def acquire(self) -> "SingleInstanceGuard":
        try:
            fh = self.lock_path.open("a")
        except OSError as exc:
            raise WorkflowError(f"{self.name}: can't open {self.lock_path}: {exc}") from exc
        try:
            fcntl.flock(fh, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as exc:
            fh.close()
            raise AlreadyRunningError(f"{self.name} is already running") from exc
        self._fh = fh
        return self

    def release(self) -> None:
        if self._fh is None:
            return
        fcntl.flock(self._fh, fcntl.LOCK_UN)
        self._fh.close()
        self._fh = None

    @property
    def held(self) -> bool:
        return self._fh is not None

    def __enter__(self) -> "SingleInstanceGuard":
        return self.acquire()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
