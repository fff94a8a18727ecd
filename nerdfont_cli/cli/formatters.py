"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from nerdfont_cli.models.package import Package
from nerdfont_cli.models.stats import SessionStats
from nerdfont_cli.utils.formatting import format_duration, format_size


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "RegistryError": [
            "• Check your internet connection.",
            "• GitHub limits anonymous API calls; set GITHUB_TOKEN and retry.",
            "• Verify the 'repository' setting with `nfcli --show-config`.",
        ],
        "StateLoadError": [
            "• Check the permissions of the state file.",
            "• Delete the state file to rebuild the catalog from scratch.",
        ],
        "StateSaveError": [
            "• Check the free space and permissions of the config directory.",
        ],
        "ConfigurationError": [
            "• Fix the value reported above in your config.ini.",
            "• Run `nfcli init --force` to write a fresh default configuration.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def packages_as_records(packages: list[Package]) -> dict[str, dict[str, str]]:
    """The records printed by `nfcli list`, keyed by package name."""
    return {p.name: p.to_record() for p in packages}


def print_packages_table(console: Console, packages: list[Package]) -> None:
    """Displays packages with their installed and latest versions."""
    table = Table(box=box.SIMPLE_HEAD, show_edge=False)
    table.add_column("Font", style="bold")
    table.add_column("Installed")
    table.add_column("Latest", style="cyan")

    for package in packages:
        if not package.is_installed:
            installed = "[dim]-[/dim]"
        elif package.is_current:
            installed = f"[green]{package.installed_version}[/green]"
        else:
            installed = f"[yellow]{package.installed_version}[/yellow]"
        table.add_row(package.name, installed, package.latest_version)

    console.print(table)
    console.print(f"[dim]{len(packages)} fonts[/dim]")


def print_summary_panel(console: Console, stats: SessionStats) -> None:
    """Prints the end-of-batch summary."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column()

    if stats.installed:
        table.add_row("Installed:", f"[green]{stats.installed}[/green]")
    if stats.removed:
        table.add_row("Removed:", f"[green]{stats.removed}[/green]")
    if stats.skipped:
        table.add_row("Skipped:", f"[yellow]{stats.skipped}[/yellow]")
    if stats.missing:
        table.add_row("Unknown:", f"[yellow]{stats.missing}[/yellow]")
    if stats.failed:
        table.add_row("Failed:", f"[red]{stats.failed}[/red]")
    if stats.total_size_downloaded:
        table.add_row("Downloaded:", format_size(stats.total_size_downloaded))
    table.add_row("Duration:", format_duration(stats.elapsed))

    border = "red" if stats.failed else "green"
    console.print(
        Panel(table, title="[bold]Summary[/bold]", border_style=border, expand=False)
    )


def print_config(console: Console, config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration, hiding sensitive data."""
    content = ""
    for key, value in sorted(config_data.items()):
        if key == "github_token" and value:
            value = "********"
        content += f"{key} = {value}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )
