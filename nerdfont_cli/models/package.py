"""
Pydantic model for a single font package record and the per-task outcome type.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field


class Package(BaseModel):
    """A font package as tracked in the state file."""

    name: str
    download_url: str = ""
    installed_version: str = Field(default="", alias="installed")
    latest_version: str = Field(default="", alias="latest")

    class Config:
        """Pydantic model configuration."""

        populate_by_name = True
        str_strip_whitespace = True

    @property
    def is_installed(self) -> bool:
        return bool(self.installed_version)

    @property
    def is_current(self) -> bool:
        """True when the installed version is the latest advertised one."""
        return self.is_installed and self.installed_version == self.latest_version

    def to_record(self) -> dict[str, str]:
        """Returns the on-disk representation of this package."""
        return self.model_dump(by_alias=True)


class Action(str, Enum):
    """Operations the scheduler can run for a package."""

    DOWNLOAD = "download"
    REMOVE = "remove"


class OutcomeStatus(str, Enum):
    """Final state of a single scheduled task."""

    INSTALLED = "installed"
    REMOVED = "removed"
    SKIPPED = "skipped"
    MISSING = "missing"
    FAILED = "failed"


@dataclass
class TaskOutcome:
    """Result handed back from a package task to the scheduler."""

    name: str
    action: Action
    status: OutcomeStatus
    error: Exception | None = None
    bytes_downloaded: int = 0
