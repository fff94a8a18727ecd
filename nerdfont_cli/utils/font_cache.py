"""
Refreshes the operating system's font cache after fonts were added or removed.
"""

import asyncio
import logging
import shutil
from pathlib import Path

from nerdfont_cli.exceptions import FontCacheError

log = logging.getLogger(__name__)

FC_CACHE = "fc-cache"


async def refresh_font_cache(font_root: Path, timeout: float = 120.0) -> bool:
    """
    Runs `fc-cache -f <font_root>`.

    Returns:
        False when no fc-cache binary is available (macOS, Windows), True once
        the cache was rebuilt.

    Raises:
        FontCacheError: If fc-cache fails or does not finish in time.
    """
    executable = shutil.which(FC_CACHE)
    if executable is None:
        log.debug(f"'{FC_CACHE}' not found, skipping font cache refresh.")
        return False

    try:
        process = await asyncio.create_subprocess_exec(
            executable,
            "-f",
            str(font_root),
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise FontCacheError(f"Could not start {FC_CACHE}: {e}") from e

    try:
        _, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        process.kill()
        await process.wait()
        raise FontCacheError(f"{FC_CACHE} timed out after {timeout:.0f}s") from e

    if process.returncode != 0:
        detail = stderr.decode(errors="replace").strip()
        raise FontCacheError(
            f"{FC_CACHE} exited with status {process.returncode}: {detail}"
        )
    log.debug(f"Font cache refreshed for '{font_root}'.")
    return True
