"""
Dataclass for tracking install session statistics.
"""

import time
from dataclasses import dataclass, field

from .package import OutcomeStatus, TaskOutcome


@dataclass
class SessionStats:
    """Tracks statistics for a single download or remove batch."""

    installed: int = 0
    removed: int = 0
    skipped: int = 0
    missing: int = 0
    failed: int = 0
    total_size_downloaded: int = 0
    failures: dict[str, str] = field(default_factory=dict)
    _start_time: float = field(default_factory=time.monotonic, repr=False)

    def record(self, outcome: TaskOutcome) -> None:
        """Folds a single task outcome into the counters."""
        if outcome.status is OutcomeStatus.INSTALLED:
            self.installed += 1
        elif outcome.status is OutcomeStatus.REMOVED:
            self.removed += 1
        elif outcome.status is OutcomeStatus.SKIPPED:
            self.skipped += 1
        elif outcome.status is OutcomeStatus.MISSING:
            self.missing += 1
        else:
            self.failed += 1
            self.failures[outcome.name] = str(outcome.error or "unknown error")
        self.total_size_downloaded += outcome.bytes_downloaded

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._start_time
