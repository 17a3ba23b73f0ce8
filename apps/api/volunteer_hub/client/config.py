"""Client configuration from environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Settings for the API client, read from VOLUNTEER_HUB_* variables."""

    model_config = SettingsConfigDict(env_prefix="VOLUNTEER_HUB_", env_file=".env", extra="ignore")

    API_URL: str = "http://localhost:8000"
    SESSION_FILE: Path = Path.home() / ".volunteer_hub" / "session.json"
    TIMEOUT_SECONDS: float = 30.0
    # Super admins act on one organization at a time
    ORGANIZATION_ID: str = ""
