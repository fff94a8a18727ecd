"""
Extracts downloaded zip archives into a destination directory, refusing any
entry that would land outside of it.
"""

import logging
import os
import shutil
import stat
import zipfile

from nerdfont_cli.exceptions import ExtractionError, PathTraversalError

log = logging.getLogger(__name__)

DEFAULT_DIR_MODE = 0o755
DEFAULT_FILE_MODE = 0o644
COPY_BUFFER_SIZE = 1048576  # 1 MB


class ArchiveExtractor:
    """Safe zip extraction preserving the permission bits stored in the archive."""

    def extract(
        self, archive_path: str | os.PathLike, destination: str | os.PathLike
    ) -> int:
        """
        Extracts every entry of the archive below the destination root.

        Returns:
            The number of files written.

        Raises:
            PathTraversalError: If an entry resolves outside the destination.
            ExtractionError: If the archive is unreadable or an entry cannot be
                written. The first failing entry aborts the whole extraction.
        """
        root = os.path.normpath(os.fspath(destination))
        try:
            os.makedirs(root, mode=DEFAULT_DIR_MODE, exist_ok=True)
        except OSError as e:
            raise ExtractionError(f"Cannot create directory '{root}': {e}") from e

        files_written = 0
        try:
            with zipfile.ZipFile(archive_path) as archive:
                for entry in archive.infolist():
                    if self._extract_entry(archive, entry, root):
                        files_written += 1
        except zipfile.BadZipFile as e:
            raise ExtractionError(f"Invalid zip archive '{archive_path}': {e}") from e
        except (PathTraversalError, ExtractionError):
            raise
        except (OSError, zipfile.LargeZipFile, RuntimeError) as e:
            raise ExtractionError(f"Failed to extract '{archive_path}': {e}") from e

        log.debug(f"Extracted {files_written} files into '{root}'.")
        return files_written

    def _extract_entry(
        self, archive: zipfile.ZipFile, entry: zipfile.ZipInfo, root: str
    ) -> bool:
        """Writes one entry. Returns True when a regular file was written."""
        target = safe_join(root, entry.filename)
        mode = self._entry_mode(entry)

        if entry.is_dir():
            os.makedirs(target, mode=mode or DEFAULT_DIR_MODE, exist_ok=True)
            return False

        os.makedirs(os.path.dirname(target), mode=DEFAULT_DIR_MODE, exist_ok=True)
        fd = os.open(
            target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode or DEFAULT_FILE_MODE
        )
        with os.fdopen(fd, "wb") as dst, archive.open(entry) as src:
            shutil.copyfileobj(src, dst, length=COPY_BUFFER_SIZE)
        return True

    @staticmethod
    def _entry_mode(entry: zipfile.ZipInfo) -> int:
        """Permission bits recorded in the entry, or 0 when none were stored."""
        return stat.S_IMODE(entry.external_attr >> 16)


def safe_join(root: str, member: str) -> str:
    """
    Joins an archive member name onto the destination root.

    Raises:
        PathTraversalError: If the cleaned result is not strictly inside root.
    """
    clean_root = os.path.normpath(root)
    candidate = os.path.normpath(os.path.join(clean_root, member))
    if not candidate.startswith(clean_root + os.sep):
        raise PathTraversalError(f"Illegal file path in archive: {member!r}")
    return candidate
