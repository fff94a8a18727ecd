"""
Synchronizes the local catalog with the latest release in the registry.
"""

import logging

from rich.markup import escape

from nerdfont_cli.api.client import ReleaseClient
from nerdfont_cli.models.package import Package
from nerdfont_cli.models.release import Release
from nerdfont_cli.storage.state_store import StateStore
from nerdfont_cli.utils.formatting import package_name_from_asset

log = logging.getLogger(__name__)


class CatalogSync:
    """Merges the registry's latest release into the state store."""

    def __init__(self, client: ReleaseClient, store: StateStore):
        self.client = client
        self.store = store

    async def sync(self, force: bool = False) -> bool:
        """
        Fetches the latest release and merges it into the store.

        Returns:
            True if the catalog was updated, False when it already matched the
            latest release.

        Raises:
            RegistryError: If the registry could not be queried.
        """
        release = await self.client.fetch_latest_release()

        if (
            not force
            and self.store.packages
            and release.identifier == self.store.release
        ):
            log.debug(
                f"Catalog is already at release {escape(release.identifier)}."
            )
            return False

        log.info(
            f"Found new release: [bold cyan]{escape(release.identifier)}[/bold cyan]"
        )
        added = self.merge(release)
        self.store.release = release.identifier
        log.debug(
            f"Merged {added} packages from release {escape(release.identifier)}."
        )
        return True

    def merge(self, release: Release) -> int:
        """
        Inserts or replaces one record per zip asset, keeping local install state.

        Returns:
            The number of records written.
        """
        written = 0
        for asset in release.assets:
            name = package_name_from_asset(asset.name)
            if name is None:
                log.debug(f"Ignoring non-archive asset '{asset.name}'.")
                continue

            candidate = Package(
                name=name,
                download_url=asset.browser_download_url,
                latest_version=release.identifier,
            )
            if existing := self.store.get(name):
                candidate.installed_version = existing.installed_version

            self.store.upsert(candidate)
            written += 1
        return written
