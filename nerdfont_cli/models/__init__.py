"""
Data Models Layer.

Pydantic models and dataclasses shared across the application.
"""

from .config import AppConfig
from .package import Action, OutcomeStatus, Package, TaskOutcome
from .release import Release, ReleaseAsset
from .stats import SessionStats

__all__ = [
    "Action",
    "AppConfig",
    "OutcomeStatus",
    "Package",
    "Release",
    "ReleaseAsset",
    "SessionStats",
    "TaskOutcome",
]
