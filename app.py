"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as aioredis
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.email.factory import build_notifier
from infrastructure.http_client import HttpClient
from infrastructure.rate_limiter import build_rate_limiter
from repositories.account_repository import USERS_COLLECTION, AccountRepository
from routes.auth_routes import router as auth_router
from routes.health_routes import router as health_router
from services.auth_service import AuthService
from services.token_service import TokenService
from shared.crypto import CredentialHasher
from shared.log_context import setup_logging_middleware
from shared.logging import get_logger, setup_logging
from shared.security_headers import setup_security_headers


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(
        log_level=settings.logging.log_level,
        log_format=settings.logging.log_format,
        env=settings.env,
    )
    log = get_logger(__name__)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            environment=settings.env,
        )

    # Fail at boot rather than on first login when JWT_SECRET is missing
    token_service = TokenService(settings.jwt, secure_cookies=settings.is_production)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri, tz_aware=True
        )
        app.state.mongo_client = mongo_client
        app.state.db = mongo_client[settings.db.db_name]
        app.state.settings = settings

        # Redis is optional; without it the auth rate limiter is disabled
        redis_client = None
        if settings.redis.redis_uri:
            redis_client = aioredis.from_url(
                settings.redis.redis_uri,
                encoding="utf-8",
                decode_responses=True,
            )
        app.state.redis = redis_client
        app.state.rate_limiter = build_rate_limiter(settings.redis.redis_uri)

        accounts = AccountRepository(app.state.db[USERS_COLLECTION])
        await accounts.ensure_indexes()

        http_client = HttpClient(timeout=10.0)
        notifier = build_notifier(settings, http_client)

        app.state.token_service = token_service
        app.state.notifier = notifier
        app.state.auth_service = AuthService(
            store=accounts,
            hasher=CredentialHasher(),
            tokens=token_service,
            notifier=notifier,
        )
        log.info(
            "app_started",
            env=settings.env,
            db_name=settings.db.db_name,
            redis=redis_client is not None,
        )

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await http_client.aclose()
        await mongo_client.close()
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    # Credentialed CORS for the configured storefront origins only
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_security_headers(app, csp_exempt_paths=(settings.docs_url, "/openapi.json"))
    # Added last so it wraps everything else, CORS preflights included
    setup_logging_middleware(app)

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(auth_router)

    return app
