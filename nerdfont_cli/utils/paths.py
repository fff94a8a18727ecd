"""
Utilities for resolving per-user and system directories.
"""

import os
import sys
from pathlib import Path

from pathvalidate import sanitize_filename

APP_DIR_NAME = "nerdfont-cli"
FONT_SUBDIR = "NerdFonts"


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    elif sys.platform == "darwin":
        base_dir = Path("~/Library/Application Support")
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / APP_DIR_NAME


def is_elevated() -> bool:
    """True when running as root on POSIX systems."""
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


def get_font_root(override: str = "") -> Path:
    """
    Returns the directory that holds one subdirectory per installed package.

    System-wide when running elevated, otherwise inside the user's home.
    """
    if override:
        return Path(override).expanduser()

    if os.name == "nt":
        base_dir = Path(
            os.getenv("LOCALAPPDATA", "~\\AppData\\Local")
        ) / "Microsoft" / "Windows" / "Fonts"
    elif sys.platform == "darwin":
        base_dir = Path("/Library/Fonts") if is_elevated() else Path("~/Library/Fonts")
    elif is_elevated():
        base_dir = Path("/usr/local/share/fonts")
    else:
        base_dir = Path(os.getenv("XDG_DATA_HOME", "~/.local/share")) / "fonts"
    return base_dir.expanduser() / FONT_SUBDIR


def package_dir(font_root: Path, name: str) -> Path:
    """The installation directory of a package below the font root."""
    safe_name = sanitize_filename(name, platform="auto")
    if not safe_name or safe_name in (".", ".."):
        raise ValueError(f"Invalid package name: {name!r}")
    return font_root / safe_name
