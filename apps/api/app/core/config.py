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
    DATABASE_URL: str
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Frontend (password setup links continue here)
    FRONTEND_URL: str = "http://localhost:3000"
    PASSWORD_SETUP_CONTINUE_PATH: str = "/login"

    # Google Cloud Identity Platform (Firebase Auth)
    GCIP_PROJECT_ID: str = ""
    GOOGLE_APPLICATION_CREDENTIALS: str = ""  # Service account JSON path; ADC when empty
    IDENTITY_TOOLKIT_URL: str = "https://identitytoolkit.googleapis.com/v1"
    IDENTITY_HTTP_TIMEOUT: float = 10.0

    # Outbound email: "log" (dev, writes to the log) or "resend"
    EMAIL_PROVIDER: str = "log"
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "HavenzSure <no-reply@havenzsure.local>"

    # Fire-and-forget work (email, sign-in bookkeeping)
    BACKGROUND_MAX_WORKERS: int = 4
    BACKGROUND_TASK_TIMEOUT: float = 30.0

    # Pagination
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 200

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def password_setup_continue_url(self) -> str:
        """Where the identity platform sends users after they set a password."""
        return self.FRONTEND_URL.rstrip("/") + self.PASSWORD_SETUP_CONTINUE_PATH


settings = Settings()
