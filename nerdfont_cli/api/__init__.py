"""
Registry API Layer.

This package handles all communication with the GitHub releases API.
"""

from .client import ReleaseClient

__all__ = ["ReleaseClient"]
