"""
Pydantic models for the subset of the GitHub release payload the catalog uses.
"""

from pydantic import BaseModel, Field


class ReleaseAsset(BaseModel):
    """A downloadable file attached to a release."""

    name: str
    browser_download_url: str


class Release(BaseModel):
    """The latest release of the tracked repository."""

    name: str | None = None
    tag_name: str = ""
    assets: list[ReleaseAsset] = Field(default_factory=list)

    @property
    def identifier(self) -> str:
        """The display name of the release, falling back to its tag."""
        return (self.name or "").strip() or self.tag_name
