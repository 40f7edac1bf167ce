"""Application configuration loaded from environment variables."""

from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed settings exposed via dependency injection throughout the app."""

    # Read .env with BOM tolerance; case-sensitive keys
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=True,
    )

    APP_NAME: str = "Order Form API"
    ENV: str = "dev"  # dev | staging | prod
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    # JSON lines on stdout; plain text is easier to read locally.
    LOG_JSON: bool = True

    # JWT
    SECRET_KEY: str  # set via env/.env
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    JWT_ISSUER: str = "orderform-api"
    JWT_AUDIENCE: str = "orderform-admin"
    # Bearer tokens handed out in exchange for a consumed access code.
    ORDER_TOKEN_AUDIENCE: str = "orderform-order"
    ORDER_TOKEN_TTL_SECONDS: int = 3600

    # CORS
    CORS_ALLOWED_ORIGINS: list[str] = Field(default_factory=list)

    # DB
    DB_HOST: str = "127.0.0.1"
    DB_PORT: int = 3306
    DB_USER: str = "orderform"
    DB_PASSWORD: str = ""  # set via env/.env
    DB_NAME: str = "orderform"
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_ISOLATION_LEVEL: str = "READ COMMITTED"
    # Full SQLAlchemy URL; takes precedence over the DB_* parts when set.
    DB_URL: str | None = None
    DB_CREATE_ALL: bool = False

    # Request limits
    MAX_BODY_BYTES: int = 64 * 1024
    RATE_LIMIT_ENABLED: bool = True
    # Per remote address, slowapi syntax.
    ACCESS_CODE_VALIDATE_RATE: str = "10/minute"
    # Per client email, fixed window.
    ORDER_RATE_LIMIT: int = 5
    ORDER_RATE_WINDOW_SECONDS: int = 3600

    # Worker threads for blocking work
    SECURITY_MAX_CONCURRENCY: int = 4
    MAIL_MAX_CONCURRENCY: int = 2

    # SMTP transport
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 465
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_SSL: bool = True  # implicit TLS; False means STARTTLS
    SMTP_TIMEOUT: int = 15
    MAIL_FROM: str | None = None

    # Company identity shown on the form and in emails
    COMPANY_NAME: str = "BO Company SRL"
    COMPANY_DIRECTOR: str = ""
    COMPANY_ADDRESS: str = ""
    COMPANY_POSTAL_CODE: str = ""
    COMPANY_PHONE: str = ""
    COMPANY_EMAIL: str = ""
    COMPANY_VAT_NUMBER: str = ""

    # Pricing
    VAT_RATE: Decimal = Decimal("0.21")
    FREE_DELIVERY_THRESHOLD: Decimal = Decimal("350")
    CURRENCY_SYMBOL: str = "€"

    # First administrator, used by scripts/create_admin.py
    ADMIN_BOOTSTRAP_EMAIL: str | None = None
    ADMIN_BOOTSTRAP_PASSWORD: str | None = None

    @property
    def mail_sender(self) -> str:
        """Envelope sender; falls back to the SMTP login."""
        return self.MAIL_FROM or self.SMTP_USER

    @property
    def DATABASE_URL(self) -> str:
        if self.DB_URL:
            return self.DB_URL
        return (
            f"mysql+aiomysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}?charset=utf8mb4"
        )


settings = Settings()
