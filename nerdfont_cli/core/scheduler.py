"""
The main orchestrator: fans out one task per requested package, waits for all of
them, then applies their outcomes to the state store.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from rich.markup import escape

from nerdfont_cli.cli.progress import ProgressReporter
from nerdfont_cli.exceptions import NerdFontCliError
from nerdfont_cli.models.package import Action, OutcomeStatus, Package, TaskOutcome
from nerdfont_cli.models.stats import SessionStats
from nerdfont_cli.storage.state_store import StateStore

from .package_processor import PackageProcessor

log = logging.getLogger(__name__)

PostProcessHook = Callable[[Path], Awaitable[Any]]


class DownloadScheduler:
    """Runs download or remove batches concurrently and bounded by max_workers."""

    def __init__(
        self,
        store: StateStore,
        processor: PackageProcessor,
        progress: ProgressReporter,
        max_workers: int = 4,
        post_process: PostProcessHook | None = None,
    ):
        self.store = store
        self.processor = processor
        self.progress = progress
        self.post_process = post_process
        self.semaphore = asyncio.Semaphore(max_workers)
        self.stats = SessionStats()

    async def run(self, action: Action, names: list[str]) -> list[TaskOutcome]:
        """
        Processes every requested package and waits for all of them to finish.

        Unknown and up-to-date names are settled before any work starts, so
        their messages never land between progress lines. Outcomes are applied
        to the store one by one after the barrier, so tasks never mutate
        shared state themselves.
        """
        unique_names = list(dict.fromkeys(names))
        if len(unique_names) < len(names):
            log.info(f"Removed {len(names) - len(unique_names)} duplicate names.")

        planned = [self._plan(action, name) for name in unique_names]
        try:
            results = await asyncio.gather(
                *(
                    self._run_task(action, item)
                    for item in planned
                    if isinstance(item, Package)
                )
            )
        finally:
            self.progress.end()

        finished = iter(results)
        outcomes = [
            item if isinstance(item, TaskOutcome) else next(finished)
            for item in planned
        ]
        for outcome in outcomes:
            self._apply(outcome)

        await self._run_post_process()
        return outcomes

    def _plan(self, action: Action, name: str) -> Package | TaskOutcome:
        """A snapshot of the package to work on, or the outcome when none is needed."""
        package = self.store.get(name)
        if package is None:
            log.warning(
                f"[yellow]⚠ Unable to find font '{escape(name)}'.[/yellow] "
                "Run [cyan]nfcli list[/cyan] to see the available names."
            )
            return TaskOutcome(name, action, OutcomeStatus.MISSING)

        if action is Action.DOWNLOAD and package.is_current:
            log.info(
                f"[yellow]○ Skipping:[/yellow] {escape(name)} "
                f"{escape(package.installed_version)} is already installed."
            )
            return TaskOutcome(name, action, OutcomeStatus.SKIPPED)

        return package.model_copy()

    async def _run_task(self, action: Action, package: Package) -> TaskOutcome:
        try:
            async with self.semaphore:
                if action is Action.DOWNLOAD:
                    return await self.processor.install(package)
                return await self.processor.remove(package)
        except Exception as e:
            return TaskOutcome(package.name, action, OutcomeStatus.FAILED, error=e)

    def _apply(self, outcome: TaskOutcome) -> None:
        self.stats.record(outcome)
        if outcome.status is OutcomeStatus.INSTALLED:
            self.store.mark_installed(outcome.name)
            log.info(
                f"[green]✓ Installed[/green] {escape(outcome.name)} "
                f"{escape(self.store.packages[outcome.name].installed_version)}"
            )
        elif outcome.status is OutcomeStatus.REMOVED:
            self.store.mark_removed(outcome.name)
            log.info(f"[green]✓ Removed[/green] {escape(outcome.name)}")
        elif outcome.status is OutcomeStatus.FAILED:
            verb = "download" if outcome.action is Action.DOWNLOAD else "remove"
            log.error(
                f"[red]✗ Unable to {verb} font {escape(outcome.name)}:[/red] "
                f"{escape(str(outcome.error))}",
                exc_info=(
                    outcome.error
                    if log.getEffectiveLevel() == logging.DEBUG
                    and not isinstance(outcome.error, NerdFontCliError)
                    else None
                ),
            )

    async def _run_post_process(self) -> None:
        if self.post_process is None:
            return
        try:
            await self.post_process(self.processor.font_root)
        except Exception as e:
            log.warning(f"[yellow]Error when refreshing the font cache:[/yellow] {e}")
