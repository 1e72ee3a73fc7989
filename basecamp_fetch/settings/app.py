"""Application settings powered by Pydantic BaseSettings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    basecamp_client_id: str | None = Field(
        default=None, validation_alias="BASECAMP_CLIENT_ID"
    )
    basecamp_client_secret: str | None = Field(
        default=None, validation_alias="BASECAMP_CLIENT_SECRET"
    )
    basecamp_redirect_uri: str | None = Field(
        default=None, validation_alias="BASECAMP_REDIRECT_URI"
    )
    basecamp_account_id: str | None = Field(
        default=None, validation_alias="BASECAMP_ACCOUNT_ID"
    )
    cache_dir: Path = Field(default=Path("./cache"), validation_alias="BASECAMP_CACHE_DIR")
    debug_dir: Path = Field(default=Path("./tmp"), validation_alias="BASECAMP_DEBUG_DIR")
    debug: bool = Field(default=False, validation_alias="DEBUG")

    @property
    def token_path(self) -> Path:
        """Location of the cached OAuth token."""
        return self.cache_dir / "basecamp_token.json"

    def api_url(self, path: str) -> str:
        """Build a Basecamp 3 API URL for the configured account.

        Args:
            path: Path below the account root, e.g. "projects.json".

        Returns:
            Absolute API URL.

        Raises:
            ValueError: If BASECAMP_ACCOUNT_ID is not set.
        """
        if not self.basecamp_account_id:
            msg = "BASECAMP_ACCOUNT_ID is not set"
            raise ValueError(msg)
        return (
            f"https://3.basecampapi.com/{self.basecamp_account_id}/{path.lstrip('/')}"
        )


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
