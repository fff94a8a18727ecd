"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

import re

from pydantic import BaseModel, Field, field_validator

DEFAULT_REPOSITORY = "ryanoasis/nerd-fonts"
DEFAULT_API_URL = "https://api.github.com/"

_REPOSITORY_PATTERN = re.compile(r"^[\w.-]+/[\w.-]+$")


class AppConfig(BaseModel):
    """A validated configuration model for the application."""

    # Registry
    repository: str = DEFAULT_REPOSITORY
    api_url: str = DEFAULT_API_URL
    github_token: str = ""

    # Download Settings
    max_workers: int = 4
    download_attempts: int = 3
    font_dir: str = ""
    refresh_font_cache: bool = True

    # Internal fields not loaded from INI file
    config_path: str = Field(..., repr=False)
    force_refresh: bool = Field(default=False, repr=False)
    quiet: bool = Field(default=False, repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("repository")
    @classmethod
    def validate_repository(cls, v: str) -> str:
        """Ensures the repository is given as 'owner/name'."""
        if not _REPOSITORY_PATTERN.match(v):
            raise ValueError(
                f"Repository must look like 'owner/name', but got: {v!r}"
            )
        return v

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"API URL must be an http(s) URL, but got: {v!r}")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Ensures a reasonable number of workers."""
        if v < 1 or v > 16:
            raise ValueError("Max workers must be between 1 and 16.")
        return v

    @field_validator("download_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1 or v > 10:
            raise ValueError("Download attempts must be between 1 and 10.")
        return v

    @property
    def owner(self) -> str:
        return self.repository.split("/", 1)[0]

    @property
    def repo_name(self) -> str:
        return self.repository.split("/", 1)[1]

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path", "force_refresh", "quiet"}
        return {key for key in cls.model_fields if key not in internal_fields}
