"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str = "sqlite:///./volunteer_hub.db"

    # Tokens (supports key rotation)
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""  # Set during rotation, clear after
    ACCESS_TOKEN_EXPIRES_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRES_DAYS: int = 7

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Frontend (links in notification emails)
    FRONTEND_URL: str = "http://localhost:3000"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting (requests per minute)
    RATE_LIMIT_AUTH: int = 10  # Login attempts
    RATE_LIMIT_API: int = 120  # General API
    REDIS_URL: str = ""  # Shared limiter storage across workers; empty = in-memory

    # Document storage
    STORAGE_BACKEND: str = "local"  # local | s3
    LOCAL_STORAGE_PATH: str = "./uploads"
    S3_BUCKET: str = "volunteer-hub-documents"
    S3_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    MAX_UPLOAD_SIZE_MB: int = 10

    # Notification email
    EMAIL_PROVIDER: str = "log"  # log | resend
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "Volunteer Hub <no-reply@volunteerhub.local>"

    # Calendar export
    ICS_UID_DOMAIN: str = "volunteerhub.local"
    ICS_PRODID: str = "-//Volunteer Hub//Calendar Export//EN"

    # Business rules
    RSVP_CANCELLED_BYPASS_CAPACITY: bool = True
    DUE_SOON_DAYS: int = 3
    ORG_PASSWORD_MIN_LENGTH: int = 8

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Returns list of valid secrets (current first, then previous if set)."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets

    @property
    def max_upload_size_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024


settings = Settings()
