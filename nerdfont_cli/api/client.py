"""
Async client for the GitHub releases API, the registry that publishes font
packages.
"""

import asyncio
import logging
import time
from typing import Any

import aiohttp
from pydantic import ValidationError

from nerdfont_cli.exceptions import RegistryError
from nerdfont_cli.models.release import Release

log = logging.getLogger(__name__)


class ReleaseClient:
    """
    Fetches release metadata for one GitHub repository.

    The aiohttp session is owned by the caller so that the registry client and
    the downloader share a single connection pool.
    """

    BASE_URL = "https://api.github.com/"
    API_VERSION = "2022-11-28"

    def __init__(
        self,
        session: aiohttp.ClientSession,
        owner: str,
        repo: str,
        token: str = "",
        base_url: str | None = None,
    ):
        """
        Initializes the client.

        Args:
            session: The shared aiohttp session.
            owner: Repository owner, e.g. 'ryanoasis'.
            repo: Repository name, e.g. 'nerd-fonts'.
            token: Optional GitHub token, raising the API rate limit.
            base_url: Overrides the API root (used by tests).
        """
        self.session = session
        self.owner = owner
        self.repo = repo
        self.token = token
        self.base_url = base_url or self.BASE_URL

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": self.API_VERSION,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def api_call(self, endpoint: str, **params: Any) -> dict[str, Any]:
        """
        Performs a GET against the API and returns the decoded JSON body.

        Raises:
            RegistryError: On transport errors, error statuses or bad JSON.
        """
        url = self.base_url.rstrip("/") + "/" + endpoint.lstrip("/")
        start_time = time.monotonic()
        try:
            async with self.session.get(
                url,
                params=params or None,
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=30, sock_connect=15),
            ) as r:
                duration_ms = (time.monotonic() - start_time) * 1000
                log.debug(f"GET {endpoint} -> {r.status} ({duration_ms:.0f} ms)")

                if r.status in (403, 429) and r.headers.get(
                    "X-RateLimit-Remaining"
                ) == "0":
                    reset = r.headers.get("X-RateLimit-Reset", "")
                    raise RegistryError(
                        "GitHub API rate limit exceeded"
                        + (f" (resets at epoch {reset})" if reset else "")
                        + ". Set GITHUB_TOKEN to raise the limit."
                    )
                if r.status == 404:
                    raise RegistryError(
                        f"No release found for {self.owner}/{self.repo}."
                    )
                r.raise_for_status()
                return await r.json()
        except RegistryError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.debug(f"API call to {endpoint} failed: {e}")
            raise RegistryError(f"Registry request failed: {e}") from e

    async def fetch_latest_release(self) -> Release:
        """Returns the latest published release of the repository."""
        payload = await self.api_call(
            f"repos/{self.owner}/{self.repo}/releases/latest"
        )
        try:
            release = Release.model_validate(payload)
        except ValidationError as e:
            raise RegistryError(f"Unexpected release payload: {e}") from e
        if not release.identifier:
            raise RegistryError("Latest release has neither a name nor a tag.")
        return release
