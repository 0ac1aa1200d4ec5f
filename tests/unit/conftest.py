"""
Unit test configuration.

Settings classes read the process environment and a .env file. Unit tests
must see neither: dotenv loading is patched out and the variables that
change behaviour are cleared, so each test sets exactly what it needs with
monkeypatch.setenv().
"""

import pytest

_BEHAVIOUR_ENV_VARS = (
    "ENV",
    "JWT_SECRET",
    "RESET_JWT_SECRET",
    "REDIS_URI",
    "ZEPTO_API_TOKEN",
    "SMTP_HOST",
    "SMTP_USER",
    "SMTP_PASS",
    "CORS_ORIGINS",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Disable .env loading and clear behaviour-changing env vars."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})
    for var in _BEHAVIOUR_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
