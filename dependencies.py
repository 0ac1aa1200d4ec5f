"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Everything they return is built once in the app
lifespan and stored on app.state.
"""

from __future__ import annotations

from fastapi import Request

from services.auth_service import AuthService
from services.token_service import TokenService


def get_token_service(request: Request) -> TokenService:
    """Return the TokenService that signs sessions and manages the cookie."""
    return request.app.state.token_service


def get_auth_service(request: Request) -> AuthService:
    """Return the AuthService wired to the Mongo account store and notifier."""
    return request.app.state.auth_service
