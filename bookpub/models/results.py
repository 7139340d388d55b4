"""Scan cycle result models."""

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class ReconcileAction(str, Enum):
    """What the reconciler decided to do for an archive."""

    ACCEPT_NEW = "accept_new"
    REPLACE_AND_REIMPORT = "replace_and_reimport"
    RESUME_INTERRUPTED = "resume_interrupted"
    REJECT = "reject"  # filename is not an ISBN


class ArchiveOutcome(BaseModel):
    """The result of reconciling a single archive."""

    archive_name: str
    isbn: str | None = None
    action: ReconcileAction | None = None  # None when the title state could not be read
    success: bool
    quarantined_to: Path | None = None
    error: str | None = None


class ScanCycleResult(BaseModel):
    """Summary of one scan cycle over a drop directory."""

    drop_directory: Path
    started_at: datetime = Field(default_factory=datetime.now)
    archives_found: int = 0
    outcomes: list[ArchiveOutcome] = Field(default_factory=list)
    aborted: bool = False

    @property
    def imported(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def quarantined(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.quarantined_to is not None)

    @property
    def remaining(self) -> int:
        """Archives listed at scan time that were not processed."""
        return self.archives_found - len(self.outcomes)


class RunStatistics(BaseModel):
    """Caller-owned run statistics, updated by each scan cycle it is passed to."""

    last_run_time: datetime | None = None
    number_of_runs: int = 0
    queue_size: int = 0
