"""
Shared fixtures for the nerdfont-cli test-suite.
"""

import io
import zipfile
from contextlib import asynccontextmanager
from pathlib import Path

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from nerdfont_cli.models.package import Package
from nerdfont_cli.storage.state_store import StateStore

pytest_plugins = ("pytest_asyncio",)


def build_zip(entries: list[tuple]) -> bytes:
    """
    Builds an in-memory zip archive.

    Each entry is (name, data) or (name, data, mode). Names ending in '/' are
    stored as directories.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for entry in entries:
            name, data = entry[0], entry[1]
            mode = entry[2] if len(entry) > 2 else None
            info = zipfile.ZipInfo(name)
            if name.endswith("/"):
                info.external_attr = ((mode or 0o755) | 0o040000) << 16
                info.external_attr |= 0x10
            elif mode is not None:
                info.external_attr = (mode | 0o100000) << 16
            archive.writestr(info, data)
    return buffer.getvalue()


FONT_ZIP = build_zip(
    [
        ("FiraCodeNerdFont-Regular.ttf", b"regular-font-bytes" * 64),
        ("FiraCodeNerdFont-Bold.ttf", b"bold-font-bytes" * 64),
        ("LICENSE", b"OFL"),
    ]
)


@pytest.fixture
def make_zip(tmp_path):
    """Writes a zip archive built from entries into tmp_path and returns its path."""

    def _make(entries: list[tuple], name: str = "archive.zip") -> Path:
        path = tmp_path / name
        path.write_bytes(build_zip(entries))
        return path

    return _make


@pytest.fixture
def state_path(tmp_path) -> Path:
    return tmp_path / "config" / "fonts.json"


@pytest.fixture
def store(state_path) -> StateStore:
    return StateStore(
        state_path,
        {
            "FiraCode": Package(
                name="FiraCode",
                download_url="http://placeholder/FiraCode.zip",
                latest_version="v3.0.0",
            )
        },
        release="v3.0.0",
    )


class RecordingProgress:
    """A ProgressReporter that records every call instead of drawing anything."""

    def __init__(self):
        self.events: list[tuple] = []
        self._next_id = 0

    def register(self, label, total=None):
        task_id = self._next_id
        self._next_id += 1
        self.events.append(("register", task_id, label))
        return task_id

    def restart(self, task_id, total=None):
        self.events.append(("restart", task_id, total))

    def advance(self, task_id, count):
        self.events.append(("advance", task_id, count))

    def finish(self, task_id, message="", success=True):
        self.events.append(("finish", task_id, success))

    def end(self):
        self.events.append(("end",))

    def names(self, kind: str) -> list:
        return [event for event in self.events if event[0] == kind]


@pytest.fixture
def progress() -> RecordingProgress:
    return RecordingProgress()


@asynccontextmanager
async def serve(app: web.Application):
    """Runs an aiohttp application on a local port for the duration of a test."""
    server = TestServer(app)
    await server.start_server()
    try:
        yield server
    finally:
        await server.close()


def font_server_app(archives: dict[str, bytes]) -> web.Application:
    """An app serving /download/<file> from archives and 404 for anything else."""

    async def download(request: web.Request) -> web.Response:
        request.app["hits"].append(request.match_info["file"])
        body = archives.get(request.match_info["file"])
        if body is None:
            raise web.HTTPNotFound()
        return web.Response(body=body, content_type="application/zip")

    app = web.Application()
    app["hits"] = []
    app.router.add_get("/download/{file}", download)
    return app
