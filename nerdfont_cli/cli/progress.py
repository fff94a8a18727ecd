"""
Progress reporting for concurrent downloads.

Several downloads run at the same time and each owns one line of the terminal.
The terminal only has a single cursor, so every write goes through a
`ProgressMultiplexer` which moves the cursor to the writer's line under a lock
before emitting the payload.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Protocol, TextIO

from rich.console import Console
from rich.control import Control
from rich.segment import ControlType
from rich.text import Text

from nerdfont_cli.utils.formatting import format_size

log = logging.getLogger(__name__)

_ERASE_LINE = str(Control((ControlType.ERASE_IN_LINE, 0)))


class ProgressMultiplexer:
    """
    Serializes writes from several progress lines onto one terminal stream.

    Line ids are assigned in registration order and never change. The
    multiplexer remembers which line the cursor is on so each writer can move
    relative to it.
    """

    def __init__(self, stream: TextIO):
        self._stream = stream
        self._lock = threading.Lock()
        self._writers: list["LineWriter"] = []
        self._current_line = 0

    @property
    def current_line(self) -> int:
        return self._current_line

    def __len__(self) -> int:
        return len(self._writers)

    def register(self) -> "LineWriter":
        """Allocates a new line below the existing ones and returns its writer."""
        with self._lock:
            line_id = len(self._writers)
            if line_id > 0:
                self._move_to(line_id - 1)
                self._stream.write("\n")
                self._current_line = line_id
                self._stream.flush()
            writer = LineWriter(self, line_id)
            self._writers.append(writer)
            return writer

    def write(self, line_id: int, payload: str) -> None:
        """Moves the cursor to line_id and writes payload there."""
        with self._lock:
            self._move_to(line_id)
            self._stream.write(payload)
            self._stream.flush()

    def end(self) -> None:
        """Parks the cursor below the last progress line."""
        with self._lock:
            if not self._writers:
                return
            last_line = len(self._writers) - 1
            self._move_to(last_line)
            self._stream.write("\n")
            self._current_line = last_line + 1
            self._stream.flush()

    def _move_to(self, line_id: int) -> None:
        # Caller holds the lock.
        offset = line_id - self._current_line
        if offset:
            self._stream.write(str(Control.move(0, offset)))
        self._current_line = line_id


class LineWriter:
    """A write handle bound to one line of a ProgressMultiplexer."""

    def __init__(self, multiplexer: ProgressMultiplexer, line_id: int):
        self._multiplexer = multiplexer
        self.line_id = line_id

    def write(self, payload: str) -> int:
        self._multiplexer.write(self.line_id, payload)
        return len(payload)


class ProgressReporter(Protocol):
    """The capabilities the download pipeline needs from a progress display."""

    def register(self, label: str, total: int | None = None) -> int: ...

    def restart(self, task_id: int, total: int | None = None) -> None: ...

    def advance(self, task_id: int, count: int) -> None: ...

    def finish(self, task_id: int, message: str = "", success: bool = True) -> None: ...

    def end(self) -> None: ...


class SilentProgress:
    """A progress reporter that displays nothing."""

    def __init__(self) -> None:
        self._next_id = 0

    def register(self, label: str, total: int | None = None) -> int:
        task_id = self._next_id
        self._next_id += 1
        return task_id

    def restart(self, task_id: int, total: int | None = None) -> None:
        pass

    def advance(self, task_id: int, count: int) -> None:
        pass

    def finish(self, task_id: int, message: str = "", success: bool = True) -> None:
        pass

    def end(self) -> None:
        pass


class LogProgress(SilentProgress):
    """Reports only the start and end of each download, for non-interactive output."""

    def __init__(self) -> None:
        super().__init__()
        self._labels: dict[int, str] = {}

    def register(self, label: str, total: int | None = None) -> int:
        task_id = super().register(label, total)
        self._labels[task_id] = label
        log.info(f"Downloading [bold]{label}[/bold] ...")
        return task_id

    def finish(self, task_id: int, message: str = "", success: bool = True) -> None:
        label = self._labels.get(task_id, "?")
        if success:
            log.info(f"[green]✓ {label}[/green] {message}".rstrip())
        else:
            log.info(f"[red]✗ {label}[/red] {message}".rstrip())


@dataclass
class _TaskLine:
    writer: LineWriter
    label: str
    total: int | None
    completed: int = 0
    last_render: float = 0.0


class TerminalProgress:
    """
    Renders one progress bar per download on an interactive terminal, using a
    ProgressMultiplexer so concurrent updates never overwrite each other.
    """

    LABEL_WIDTH = 28
    BAR_WIDTH = 24

    def __init__(self, console: Console, refresh_interval: float = 0.1):
        self.console = console
        self.refresh_interval = refresh_interval
        self.multiplexer = ProgressMultiplexer(console.file)
        self._tasks: dict[int, _TaskLine] = {}

    def register(self, label: str, total: int | None = None) -> int:
        writer = self.multiplexer.register()
        self._tasks[writer.line_id] = _TaskLine(writer=writer, label=label, total=total)
        self._render(writer.line_id, force=True)
        return writer.line_id

    def restart(self, task_id: int, total: int | None = None) -> None:
        task = self._tasks[task_id]
        task.total = total
        task.completed = 0
        self._render(task_id, force=True)

    def advance(self, task_id: int, count: int) -> None:
        task = self._tasks[task_id]
        task.completed += count
        self._render(task_id, force=task.completed == task.total)

    def finish(self, task_id: int, message: str = "", success: bool = True) -> None:
        task = self._tasks[task_id]
        line = Text()
        line.append(f"{task.label:<{self.LABEL_WIDTH}.{self.LABEL_WIDTH}} ")
        if success:
            line.append("✓ ", style="bold green")
            line.append(message or "done", style="green")
        else:
            line.append("✗ ", style="bold red")
            line.append(message or "failed", style="red")
        task.writer.write(self._to_ansi(line))

    def end(self) -> None:
        self.multiplexer.end()

    def _render(self, task_id: int, force: bool = False) -> None:
        task = self._tasks[task_id]
        now = time.monotonic()
        if not force and now - task.last_render < self.refresh_interval:
            return
        task.last_render = now
        task.writer.write(self._to_ansi(self._build_line(task)))

    def _build_line(self, task: _TaskLine) -> Text:
        line = Text()
        line.append(
            f"{task.label:<{self.LABEL_WIDTH}.{self.LABEL_WIDTH}} ", style="bold"
        )
        if task.total:
            pct = min(100.0, task.completed / task.total * 100)
            filled = int(self.BAR_WIDTH * pct / 100)
            bar_color = "green" if pct >= 100 else "cyan"
            line.append("█" * filled, style=bar_color)
            line.append("░" * (self.BAR_WIDTH - filled), style="dim")
            line.append(f" {pct:>3.0f}% ", style="magenta")
            line.append(
                f"{format_size(task.completed)} / {format_size(task.total)}",
                style="dim",
            )
        else:
            line.append("░" * self.BAR_WIDTH, style="dim")
            line.append(f"  {format_size(task.completed)}", style="dim")
        return line

    def _to_ansi(self, line: Text) -> str:
        """Renders a single line, cropped to the terminal width, as a raw string."""
        with self.console.capture() as capture:
            self.console.print(line, end="", no_wrap=True, overflow="crop", crop=True)
        return "\r" + capture.get() + _ERASE_LINE


def create_progress(console: Console, quiet: bool = False) -> ProgressReporter:
    """
    Picks the progress display matching the output stream.

    Debug logging writes to the same terminal while downloads run, which would
    shift the lines under the cursor, so it falls back to log lines.
    """
    if quiet:
        return SilentProgress()
    if console.is_terminal and not log.isEnabledFor(logging.DEBUG):
        return TerminalProgress(console)
    return LogProgress()
