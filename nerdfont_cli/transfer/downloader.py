"""
Handles the low-level downloading of package archives over HTTP, streaming the
body to disk while reporting progress.
"""

import asyncio
import logging
import os

import aiofiles
import aiohttp

from nerdfont_cli import __version__
from nerdfont_cli.cli.progress import ProgressReporter
from nerdfont_cli.exceptions import DownloadError

log = logging.getLogger(__name__)

USER_AGENT = f"nerdfont-cli/{__version__}"


def create_http_session(max_workers: int = 4) -> aiohttp.ClientSession:
    """
    Creates the aiohttp ClientSession shared by the registry client and the
    downloader for the lifetime of one command.

    Args:
        max_workers: Maximum concurrent downloads, used to size the connector.
    """
    connector = aiohttp.TCPConnector(
        limit=max_workers * 2,
        limit_per_host=max_workers,
        ttl_dns_cache=600,  # 10 minutes
        enable_cleanup_closed=True,
    )
    timeout = aiohttp.ClientTimeout(total=None, sock_connect=15, sock_read=90)
    log.debug(f"Creating HTTP session with limit_per_host={max_workers}")
    return aiohttp.ClientSession(
        connector=connector,
        timeout=timeout,
        headers={"User-Agent": USER_AGENT},
    )


class Downloader:
    """A low-level file downloader with retry logic."""

    CHUNK_SIZE = 131072  # 128 KB

    def __init__(
        self,
        session: aiohttp.ClientSession,
        max_attempts: int = 3,
        base_delay: float = 1.5,
    ):
        self.session = session
        self.max_attempts = max_attempts
        self.base_delay = base_delay

    async def download_file(
        self,
        url: str,
        destination_path: str,
        progress: ProgressReporter | None = None,
        task_id: int | None = None,
    ) -> int:
        """
        Streams the resource at url into destination_path.

        Returns:
            The number of bytes written.

        Raises:
            DownloadError: If every attempt failed.
        """
        last_exception: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await self._fetch(url, destination_path, progress, task_id)
            except aiohttp.ClientResponseError as e:
                last_exception = e
                if 400 <= e.status < 500 and e.status != 429:
                    break
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = e

            log.debug(
                f"Download attempt {attempt}/{self.max_attempts} for "
                f"'{os.path.basename(destination_path)}' failed: {last_exception}."
            )
            if attempt < self.max_attempts:
                await asyncio.sleep(self.base_delay * (2 ** (attempt - 1)))

        raise DownloadError(
            f"Failed to download {url}: {last_exception}"
        ) from last_exception

    async def _fetch(
        self,
        url: str,
        destination_path: str,
        progress: ProgressReporter | None,
        task_id: int | None,
    ) -> int:
        async with self.session.get(url, allow_redirects=True) as response:
            response.raise_for_status()

            if progress is not None and task_id is not None:
                progress.restart(task_id, total=response.content_length)

            bytes_downloaded = 0
            async with aiofiles.open(destination_path, "wb") as f:
                async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                    await f.write(chunk)
                    bytes_downloaded += len(chunk)
                    if progress is not None and task_id is not None:
                        progress.advance(task_id, len(chunk))
            return bytes_downloaded
