"""
Persists the catalog of known font packages and their installed versions as a
JSON file.

The file is a single JSON object mapping each package name to its record::

    {
        "FiraCode": {
            "name": "FiraCode",
            "download_url": "https://github.com/.../FiraCode.zip",
            "installed": "v3.0.0",
            "latest": "v3.0.0"
        }
    }

The identifier of the release the catalog was last merged from lives in a
small companion file next to it (``fonts.release.json`` for ``fonts.json``).
"""

import json
import logging
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from nerdfont_cli.exceptions import StateLoadError, StateSaveError
from nerdfont_cli.models.package import Package

log = logging.getLogger(__name__)

_PACKAGES_ADAPTER = TypeAdapter(dict[str, Package])


def release_path_for(path: Path) -> Path:
    """The companion file holding the release identifier of a state file."""
    return path.with_name(f"{path.stem}.release.json")


def _atomic_write(path: Path, text: str) -> None:
    """Writes text to a temporary file beside path and renames it over path."""
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    finally:
        if tmp_name and os.path.exists(tmp_name):
            try:
                os.remove(tmp_name)
            except OSError:
                pass


class StateStore:
    """
    In-memory mapping of package name to Package, loaded once at startup and
    saved once at shutdown.

    `release` is the identifier of the registry release last merged into the
    catalog, or None when it is unknown.
    """

    def __init__(
        self,
        path: Path,
        packages: dict[str, Package] | None = None,
        release: str | None = None,
    ):
        self.path = path
        self.packages: dict[str, Package] = packages or {}
        self.release = release

    @property
    def release_path(self) -> Path:
        return release_path_for(self.path)

    @classmethod
    def load(cls, path: Path) -> "StateStore":
        """
        Loads the state file and its release identifier.

        A missing file is created as an empty placeholder. Content that is not a
        valid mapping of package records is discarded with a warning.

        Raises:
            StateLoadError: If the file exists but cannot be read.
        """
        if not path.exists():
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text("{}\n", encoding="utf-8")
            except OSError as e:
                log.debug(f"Could not create placeholder state file '{path}': {e}")
            return cls(path)

        try:
            raw = path.read_bytes()
        except OSError as e:
            raise StateLoadError(f"Unable to read state file '{path}': {e}") from e

        try:
            packages = _PACKAGES_ADAPTER.validate_python(
                json.loads(raw.decode("utf-8"))
            )
        except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            if raw.strip():
                log.warning(
                    f"[yellow]Ignoring unreadable state file '{path}':[/yellow] "
                    f"{type(e).__name__}"
                )
            return cls(path)

        # The record name is the identity key; the mapping key wins on mismatch.
        for key, package in packages.items():
            if package.name != key:
                packages[key] = package.model_copy(update={"name": key})

        release = _read_release(release_path_for(path)) if packages else None
        return cls(path, packages, release)

    def save(self) -> None:
        """
        Writes the whole mapping to disk, replacing the previous file atomically,
        then records the release identifier.

        The release file is written last, so a failure in between leaves an
        older identifier behind and the next sync merges again.

        Raises:
            StateSaveError: If either file cannot be written.
        """
        payload = {
            name: package.to_record() for name, package in self.packages.items()
        }
        serialized = json.dumps(payload, indent=4, sort_keys=True) + "\n"
        try:
            _atomic_write(self.path, serialized)
            if self.release:
                _atomic_write(
                    self.release_path, json.dumps({"release": self.release}) + "\n"
                )
            elif self.release_path.exists():
                os.remove(self.release_path)
        except OSError as e:
            raise StateSaveError(f"Unable to save state file '{self.path}': {e}") from e
        log.debug(f"Saved {len(self.packages)} package records to '{self.path}'.")

    def get(self, name: str) -> Package | None:
        return self.packages.get(name)

    def upsert(self, package: Package) -> None:
        self.packages[package.name] = package

    def mark_installed(self, name: str) -> None:
        """Records the latest advertised version of a package as installed."""
        package = self.packages[name]
        package.installed_version = package.latest_version

    def mark_removed(self, name: str) -> None:
        self.packages[name].installed_version = ""

    def installed(self) -> list[Package]:
        return [p for p in self.packages.values() if p.is_installed]

    def outdated(self) -> list[Package]:
        """Installed packages whose installed version is not the latest one."""
        return [p for p in self.installed() if not p.is_current]

    def __contains__(self, name: object) -> bool:
        return name in self.packages

    def __iter__(self) -> Iterator[Package]:
        return iter(sorted(self.packages.values(), key=lambda p: p.name.lower()))

    def __len__(self) -> int:
        return len(self.packages)


def _read_release(path: Path) -> str | None:
    """Reads a release identifier, treating a missing or damaged file as unknown."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        log.debug(f"Ignoring release file '{path}': {e}")
        return None
    release = data.get("release") if isinstance(data, dict) else None
    return release if isinstance(release, str) and release else None
