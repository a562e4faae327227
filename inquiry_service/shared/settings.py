"""Environment-driven configuration."""

import os

# Load environment variables from .env file (for local development)
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass  # python-dotenv not installed, skip (fine for production)


def _int_env(key: str, default: int) -> int:
    try:
        return int(os.environ.get(key, str(default)))
    except ValueError:
        return default


def _bool_env(key: str, default: bool) -> bool:
    value = os.environ.get(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Snapshot of the process environment. Keyword overrides win over env vars."""

    def __init__(self, **overrides):
        self.ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")
        self.PORT = _int_env("PORT", 5174)
        self.LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

        self.DATABASE_URL = os.environ.get("DATABASE_URL")
        self.DB_KEEP_ALIVE_MS = _int_env("DB_KEEP_ALIVE_MS", 45000)

        self.ADMIN_USERNAME = os.environ.get("ADMIN_USERNAME")
        self.ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD")
        self.ADMIN_RESPONSE_DELAY_MS = _int_env("ADMIN_RESPONSE_DELAY_MS", 100)

        self.SMTP_HOST = os.environ.get("SMTP_HOST", "smtp-relay.brevo.com")
        self.SMTP_PORT = _int_env("SMTP_PORT", 587)
        self.SMTP_USER = os.environ.get("SMTP_USER")
        self.SMTP_PASSWORD = os.environ.get("SMTP_PASSWORD")
        self.EMAIL_FROM = os.environ.get("EMAIL_FROM", "noreply@example.com")
        self.EMAIL_FROM_NAME = os.environ.get("EMAIL_FROM_NAME", "Sintu Decorators")
        self.BUSINESS_PHONE = os.environ.get("BUSINESS_PHONE", "")

        self.CORS_ORIGIN = os.environ.get("CORS_ORIGIN", "*")
        self.MAX_REQUEST_BYTES = _int_env("MAX_REQUEST_BYTES", 1024 * 1024)
        self.SQL_INJECTION_FILTER = _bool_env("SQL_INJECTION_FILTER", True)
        self.TRUST_PROXY_HEADERS = _bool_env("TRUST_PROXY_HEADERS", False)

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def cors_origins(self) -> list:
        if "*" in self.CORS_ORIGIN:
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGIN.split(",") if o.strip()]

    @property
    def database_url(self) -> str:
        if not self.DATABASE_URL:
            raise ValueError(
                "DATABASE_URL environment variable is required. "
                "Please set it to your PostgreSQL connection string."
            )
        # Heroku uses postgres:// but SQLAlchemy 2.0+ requires postgresql://
        if self.DATABASE_URL.startswith("postgres://"):
            return self.DATABASE_URL.replace("postgres://", "postgresql://", 1)
        return self.DATABASE_URL
