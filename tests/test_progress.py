"""
Tests for the progress multiplexer and the progress reporters.
"""

import io
import logging
import re
import threading

from rich.console import Console

from nerdfont_cli.cli.progress import (
    LogProgress,
    ProgressMultiplexer,
    SilentProgress,
    TerminalProgress,
    create_progress,
)

UP = "\x1b[{}A"
DOWN = "\x1b[{}B"


class TestProgressMultiplexer:
    """Tests for cursor bookkeeping in ProgressMultiplexer."""

    def test_line_ids_are_assigned_in_registration_order(self):
        mux = ProgressMultiplexer(io.StringIO())

        ids = [mux.register().line_id for _ in range(4)]

        assert ids == [0, 1, 2, 3]
        assert len(mux) == 4

    def test_registration_allocates_new_lines(self):
        stream = io.StringIO()
        mux = ProgressMultiplexer(stream)

        mux.register()
        assert stream.getvalue() == ""

        mux.register()
        mux.register()
        assert stream.getvalue() == "\n\n"
        assert mux.current_line == 2

    def test_writes_move_cursor_relative_to_current_line(self):
        stream = io.StringIO()
        mux = ProgressMultiplexer(stream)
        first, _, third = mux.register(), mux.register(), mux.register()

        first.write("a")
        third.write("c")
        third.write("d")

        assert stream.getvalue() == "\n\n" + UP.format(2) + "a" + DOWN.format(2) + "cd"
        assert mux.current_line == 2

    def test_end_parks_cursor_below_last_line(self):
        stream = io.StringIO()
        mux = ProgressMultiplexer(stream)
        first, _ = mux.register(), mux.register()
        first.write("x")

        mux.end()

        assert stream.getvalue().endswith("x" + DOWN.format(1) + "\n")
        assert mux.current_line == 2

    def test_end_without_registrations_writes_nothing(self):
        stream = io.StringIO()

        ProgressMultiplexer(stream).end()

        assert stream.getvalue() == ""

    def test_late_registration_keeps_existing_ids(self):
        mux = ProgressMultiplexer(io.StringIO())
        first = mux.register()
        first.write("progress")

        late = mux.register()

        assert first.line_id == 0
        assert late.line_id == 1
        assert mux.current_line == 1

    def test_concurrent_writers_never_interleave(self):
        stream = io.StringIO()
        mux = ProgressMultiplexer(stream)
        writers = [mux.register() for _ in range(8)]
        barrier = threading.Barrier(len(writers))

        def pump(writer):
            barrier.wait()
            for i in range(200):
                writer.write(f"<{writer.line_id}:{i}>")

        threads = [threading.Thread(target=pump, args=(w,)) for w in writers]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        # Replay the stream and check each payload landed on its writer's line.
        line = 0
        output = stream.getvalue()
        tokens = re.findall(r"\x1b\[(\d+)([AB])|<(\d+):(\d+)>|(\n)", output)
        seen = {w.line_id: 0 for w in writers}
        for amount, direction, writer_id, counter, newline in tokens:
            if newline:
                line += 1
            elif direction == "A":
                line -= int(amount)
            elif direction == "B":
                line += int(amount)
            else:
                assert int(writer_id) == line
                assert int(counter) == seen[line]
                seen[line] += 1
        assert all(count == 200 for count in seen.values())


class TestTerminalProgress:
    """Tests for the bar renderer."""

    def _progress(self):
        stream = io.StringIO()
        console = Console(file=stream, force_terminal=True, width=100)
        return TerminalProgress(console, refresh_interval=0), stream

    def test_renders_bar_and_final_message(self):
        progress, stream = self._progress()

        task_id = progress.register("FiraCode")
        progress.restart(task_id, total=2048)
        progress.advance(task_id, 1024)
        progress.advance(task_id, 1024)
        progress.finish(task_id, "v3.0.0")
        progress.end()

        output = stream.getvalue()
        assert "FiraCode" in output
        assert "50%" in output
        assert "100%" in output
        assert "2.0 KB" in output
        assert "✓" in output and "v3.0.0" in output
        assert output.endswith("\n")

    def test_unknown_total_shows_byte_count(self):
        progress, stream = self._progress()

        task_id = progress.register("Hack")
        progress.advance(task_id, 5000)

        assert "4.9 KB" in stream.getvalue()

    def test_failure_message(self):
        progress, stream = self._progress()

        task_id = progress.register("Meslo")
        progress.finish(task_id, "DownloadError", success=False)

        assert "✗" in stream.getvalue()
        assert "DownloadError" in stream.getvalue()

    def test_each_task_gets_its_own_line(self):
        progress, _ = self._progress()

        ids = [progress.register(name) for name in ("A", "B", "C")]

        assert ids == [0, 1, 2]


class TestCreateProgress:
    """Tests for picking a reporter."""

    def test_quiet_is_silent(self):
        console = Console(file=io.StringIO(), force_terminal=True)
        assert isinstance(create_progress(console, quiet=True), SilentProgress)

    def test_terminal_gets_bars(self, caplog):
        caplog.set_level(logging.INFO, logger="nerdfont_cli")
        console = Console(file=io.StringIO(), force_terminal=True)
        assert isinstance(create_progress(console), TerminalProgress)

    def test_debug_logging_on_terminal_gets_log_lines(self, caplog):
        caplog.set_level(logging.DEBUG, logger="nerdfont_cli")
        console = Console(file=io.StringIO(), force_terminal=True)
        assert isinstance(create_progress(console), LogProgress)

    def test_pipe_gets_log_lines(self):
        console = Console(file=io.StringIO(), force_terminal=False)
        assert isinstance(create_progress(console), LogProgress)
