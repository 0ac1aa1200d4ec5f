"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).
RESET_JWT_SECRET is optional and falls back to JWT_SECRET (handled in
JWTSettings via model_validator).
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "artisan-avenue"


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Optional; without Redis the request rate limiter is disabled
    redis_uri: Optional[str] = None


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    jwt_issuer: str = "artisan-avenue"
    jwt_audience: str = "artisan-avenue.web"
    session_token_ttl_seconds: int = 7 * 24 * 60 * 60
    reset_token_ttl_seconds: int = 15 * 60
    session_cookie_name: str = "aa_token"

    jwt_secret: str = ""
    reset_jwt_secret: str = ""

    @model_validator(mode="after")
    def _fallback_reset_secret(self) -> "JWTSettings":
        if not self.reset_jwt_secret:
            self.reset_jwt_secret = self.jwt_secret
        return self


class EmailSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # SMTP transport
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_pass: str = ""
    smtp_from: str = "Artisan Avenue <no-reply@artisan-avenue.local>"
    mail_secure: bool = False  # SMTPS; implied when smtp_port == 465

    # ZeptoMail HTTP transport (takes precedence over SMTP when set)
    zepto_api_token: str = ""
    zepto_from_email: str = "no-reply@artisan-avenue.local"
    zepto_from_name: str = "Artisan Avenue"

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_pass)


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    env: str = "development"
    app_url: str = "http://localhost:5173"
    app_name: str = "Artisan Avenue"

    # Credentialed CORS needs explicit origins; defaults cover the Vite dev servers
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:5174",
        "http://127.0.0.1:5174",
    ]

    # Per-IP request budget shared by all /auth routes
    auth_rate_limit_requests: int = 300
    auth_rate_limit_window_seconds: int = 15 * 60

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    redis: Optional[RedisSettings] = None
    jwt: Optional[JWTSettings] = None
    email: Optional[EmailSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.db is None:
            self.db = DatabaseSettings()
        if self.redis is None:
            self.redis = RedisSettings()
        if self.jwt is None:
            self.jwt = JWTSettings()
        if self.email is None:
            self.email = EmailSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
