"""
Transfer Layer.

This package moves package archives from the network onto disk: streaming
HTTP downloads and safe zip extraction.
"""

from .downloader import Downloader, create_http_session
from .extractor import ArchiveExtractor

__all__ = ["ArchiveExtractor", "Downloader", "create_http_session"]
