"""
Handles the processing of a single package, from download to extraction, or
its removal from disk.
"""

import asyncio
import logging
import os
import shutil
import tempfile
from pathlib import Path

from rich.markup import escape

from nerdfont_cli.cli.progress import ProgressReporter
from nerdfont_cli.models.package import Action, OutcomeStatus, Package, TaskOutcome
from nerdfont_cli.transfer.downloader import Downloader
from nerdfont_cli.transfer.extractor import ArchiveExtractor
from nerdfont_cli.utils.formatting import format_size
from nerdfont_cli.utils.paths import package_dir

log = logging.getLogger(__name__)


class PackageProcessor:
    """
    Installs or removes one package on disk.

    The processor never touches the state store: it reports a TaskOutcome and
    leaves applying it to the scheduler.
    """

    def __init__(
        self,
        font_root: Path,
        downloader: Downloader,
        extractor: ArchiveExtractor,
        progress: ProgressReporter,
    ):
        self.font_root = font_root
        self.downloader = downloader
        self.extractor = extractor
        self.progress = progress

    def install_dir(self, package: Package) -> Path:
        return package_dir(self.font_root, package.name)

    async def install(self, package: Package) -> TaskOutcome:
        """Downloads the package archive and extracts it into its directory."""
        name = package.name
        task_id = self.progress.register(name)
        temp_path: Path | None = None

        try:
            destination = self.install_dir(package)
            fd, temp_name = tempfile.mkstemp(
                prefix=f"{destination.name}-", suffix=".zip"
            )
            os.close(fd)
            temp_path = Path(temp_name)
            size = await self.downloader.download_file(
                url=package.download_url,
                destination_path=str(temp_path),
                progress=self.progress,
                task_id=task_id,
            )
            files = await asyncio.to_thread(
                self.extractor.extract, temp_path, destination
            )
            self.progress.finish(
                task_id,
                f"{package.latest_version} ({files} files, {format_size(size)})",
            )
            log.debug(f"Installed {escape(name)} into '{destination}'.")
            return TaskOutcome(
                name, Action.DOWNLOAD, OutcomeStatus.INSTALLED, bytes_downloaded=size
            )
        except Exception as e:
            self.progress.finish(task_id, type(e).__name__, success=False)
            return TaskOutcome(name, Action.DOWNLOAD, OutcomeStatus.FAILED, error=e)
        finally:
            if temp_path is not None and temp_path.exists():
                try:
                    os.remove(temp_path)
                except OSError as e:
                    log.debug(f"Could not remove temporary file '{temp_path}': {e}")

    async def remove(self, package: Package) -> TaskOutcome:
        """Deletes the package directory; one already gone counts as removed."""
        name = package.name
        try:
            target = self.install_dir(package)
            if await asyncio.to_thread(target.exists):
                await asyncio.to_thread(shutil.rmtree, target)
            else:
                log.info(
                    f"[yellow]○ {escape(name)}[/yellow] was not on disk, "
                    "marking as removed."
                )
            return TaskOutcome(name, Action.REMOVE, OutcomeStatus.REMOVED)
        except Exception as e:
            return TaskOutcome(name, Action.REMOVE, OutcomeStatus.FAILED, error=e)
