from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    DATABASE_URL: str = "sqlite:///./dev.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # sessions
    SECRET_KEY: str = "change-this-secret"
    SESSION_COOKIE_NAME: str = "token"
    SESSION_MAX_AGE_DAYS: int = 365
    SESSION_COOKIE_SECURE: bool = False

    # credentials
    BCRYPT_ROUNDS: int = 10
    RESET_TOKEN_BYTES: int = 20
    RESET_TOKEN_TTL_SECONDS: int = 3600

    FRONTEND_URL: str = "http://localhost:7777"
    FRONTEND_ORIGINS: List[str] = ["http://localhost:7777"]

    # payments
    PAYMENT_BACKEND: str = "mock"  # mock | stripe
    STRIPE_SECRET_KEY: Optional[str] = None
    PAYMENT_CURRENCY: str = "USD"
    PAYMENT_MAX_RETRIES: int = 2
    PAYMENT_MOCK_DELAY_MS: int = 200
    PAYMENT_MOCK_FAILURE_RATE: float = 0.01

    # mail
    MAIL_BACKEND: str = "mock"  # mock | smtp
    MAIL_FROM: str = "shop@example.com"
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None

    # background jobs
    SCHEDULER_ENABLED: bool = True
    RECONCILE_INTERVAL_SECONDS: int = 300
    RECONCILE_STALE_SECONDS: int = 900

    @property
    def session_max_age_seconds(self) -> int:
        return self.SESSION_MAX_AGE_DAYS * 24 * 60 * 60


settings = Settings()
