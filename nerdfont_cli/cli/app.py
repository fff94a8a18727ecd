"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import aiohttp
import typer
from rich.console import Console
from rich.logging import RichHandler

from nerdfont_cli import __version__
from nerdfont_cli.api.client import ReleaseClient
from nerdfont_cli.core.catalog_sync import CatalogSync
from nerdfont_cli.core.package_processor import PackageProcessor
from nerdfont_cli.core.scheduler import DownloadScheduler
from nerdfont_cli.exceptions import (
    ConfigurationError,
    NerdFontCliError,
    StateSaveError,
)
from nerdfont_cli.models.config import AppConfig
from nerdfont_cli.models.package import Action
from nerdfont_cli.storage.config_manager import ConfigManager
from nerdfont_cli.storage.state_store import StateStore
from nerdfont_cli.transfer.downloader import Downloader, create_http_session
from nerdfont_cli.transfer.extractor import ArchiveExtractor
from nerdfont_cli.utils.font_cache import refresh_font_cache
from nerdfont_cli.utils.paths import get_config_dir, get_font_root

from .formatters import (
    format_error_with_suggestions,
    packages_as_records,
    print_config,
    print_packages_table,
    print_summary_panel,
)
from .progress import create_progress

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            show_time=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("nerdfont_cli")

app = typer.Typer(
    name="nfcli",
    help=(
        "Download, update and remove Nerd Fonts from the latest GitHub release."
        " Use 'nfcli <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)

CONFIG_DIR = get_config_dir()
CONFIG_FILE_NAME = "config.ini"
STATE_FILE_NAME = "fonts.json"

T = TypeVar("T")
CatalogHandler = Callable[[AppConfig, StateStore, aiohttp.ClientSession], Awaitable[T]]


def _config_manager() -> ConfigManager:
    return ConfigManager(CONFIG_DIR / CONFIG_FILE_NAME)


def _load_config(ctx: typer.Context) -> AppConfig:
    cli_options = {
        key: value for key, value in (ctx.obj or {}).items() if value is not None
    }
    return _config_manager().load_config(cli_options)


def _fail(error: Exception) -> typer.Exit:
    console.print(format_error_with_suggestions(error))
    return typer.Exit(code=1)


async def _with_catalog(config: AppConfig, handler: CatalogHandler[T]) -> T:
    """
    Loads the state, refreshes it from the registry, runs the handler and saves
    the state once at the end.

    The state is not saved when loading or the registry refresh fails.
    """
    store = StateStore.load(CONFIG_DIR / STATE_FILE_NAME)

    async with create_http_session(config.max_workers) as session:
        client = ReleaseClient(
            session,
            config.owner,
            config.repo_name,
            token=config.github_token,
            base_url=config.api_url,
        )
        await CatalogSync(client, store).sync(force=config.force_refresh)

        try:
            result = await handler(config, store, session)
        except BaseException:
            try:
                store.save()
            except StateSaveError as e:
                log.error(f"[red]✗ Could not save the font state:[/red] {e}")
            raise
        store.save()
        return result


def _run(ctx: typer.Context, handler: CatalogHandler[Any]) -> Any:
    try:
        config = _load_config(ctx)
        return asyncio.run(_with_catalog(config, handler))
    except StateSaveError as e:
        log.error(f"[red]✗ Could not save the font state:[/red] {e}")
        raise typer.Exit(code=1) from e
    except NerdFontCliError as e:
        raise _fail(e) from e


def _run_batch(
    ctx: typer.Context, action: Action, names: list[str] | None
) -> None:
    """Runs a download or remove batch; names=None means every outdated font."""
    async def handler(config, store, session):
        progress = create_progress(console, quiet=config.quiet)
        processor = PackageProcessor(
            font_root=get_font_root(config.font_dir),
            downloader=Downloader(session, max_attempts=config.download_attempts),
            extractor=ArchiveExtractor(),
            progress=progress,
        )
        scheduler = DownloadScheduler(
            store,
            processor,
            progress,
            max_workers=config.max_workers,
            post_process=refresh_font_cache if config.refresh_font_cache else None,
        )

        if names is None:
            targets = [p.name for p in store.outdated()]
            if not targets:
                console.print("[green]✓ All installed fonts are up to date.[/green]")
                return None
        else:
            targets = names

        await scheduler.run(action, targets)
        return scheduler.stats

    stats = _run(ctx, handler)
    if stats is not None and not ctx.obj.get("quiet"):
        print_summary_panel(console, stats)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only print warnings and errors."
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
    refresh: bool = typer.Option(
        False,
        "--refresh",
        help="Merge the latest release even if the catalog looks up to date.",
    ),
    workers: int | None = typer.Option(
        None,
        "-w",
        "--workers",
        help="Number of simultaneous downloads (default 4, overrides the config).",
    ),
):
    """Nerd Fonts installer"""
    if version:
        console.print(f"[bold]nerdfont-cli[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    elif quiet:
        log_level = "WARNING"
    logging.getLogger("nerdfont_cli").setLevel(log_level)

    ctx.obj = {
        "max_workers": workers,
        "force_refresh": refresh,
        "quiet": quiet,
    }

    if show_config:
        try:
            config = _load_config(ctx)
        except ConfigurationError as e:
            raise _fail(e) from e
        config_data = config.model_dump(include=AppConfig.get_ini_keys())
        config_data["font_dir"] = str(get_font_root(config.font_dir))
        print_config(console, CONFIG_DIR / CONFIG_FILE_NAME, config_data)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration file."
    ),
):
    """Write a configuration file with the default settings."""
    config_manager = _config_manager()
    if (
        config_manager.config_file_path.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()
    try:
        config_manager.save_default_config()
    except ConfigurationError as e:
        raise _fail(e) from e
    console.print(
        "[bold green]✓ Configuration saved to "
        f"'{config_manager.config_file_path}'[/bold green]"
    )


@app.command(name="list")
def list_command(
    ctx: typer.Context,
    installed: bool = typer.Option(
        False, "--installed", "-i", help="Only show installed fonts."
    ),
    table: bool = typer.Option(
        False, "--table", "-t", help="Show a table instead of JSON."
    ),
):
    """List all known fonts."""

    async def handler(config, store, session):
        return store.installed() if installed else list(store)

    packages = sorted(_run(ctx, handler), key=lambda p: p.name.lower())
    if table:
        print_packages_table(console, packages)
    else:
        console.print_json(data=packages_as_records(packages), indent=4)


@app.command(name="download")
def download_command(
    ctx: typer.Context,
    names: list[str] = typer.Argument(  # noqa: B008
        ..., help="One or more font names, as shown by 'nfcli list'."
    ),
):
    """Download and install the given fonts."""
    _run_batch(ctx, Action.DOWNLOAD, names)


@app.command(name="remove")
def remove_command(
    ctx: typer.Context,
    names: list[str] = typer.Argument(  # noqa: B008
        ..., help="One or more installed font names."
    ),
):
    """Remove the given fonts."""
    _run_batch(ctx, Action.REMOVE, names)


@app.command()
def update(ctx: typer.Context):
    """Download the latest release of every installed font that is out of date."""
    _run_batch(ctx, Action.DOWNLOAD, None)
