"""
Shared fixtures: in-memory account store, recording notifier, controllable
clock, and an AuthService wired to all three.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import pytest
from bson import ObjectId

from config import JWTSettings
from errors import EmailTakenError, UsernameTakenError
from schemas.models.account import AccountDoc
from services.auth_service import AuthService
from services.token_service import TokenService
from shared.crypto import CredentialHasher
from shared.datetime_utils import utcnow

TEST_JWT_SECRET = "test-jwt-secret-with-at-least-32-bytes!"


class InMemoryAccountStore:
    """AccountStore over a dict. Stores copies so callers can't mutate state."""

    def __init__(self) -> None:
        self.docs: dict[str, AccountDoc] = {}
        self.saves = 0

    def _find(self, predicate) -> Optional[AccountDoc]:
        for doc in self.docs.values():
            if predicate(doc):
                return doc.model_copy(deep=True)
        return None

    async def find_by_email(self, email: str) -> Optional[AccountDoc]:
        email = email.strip().lower()
        return self._find(lambda d: d.email == email)

    async def find_by_username(self, username: str) -> Optional[AccountDoc]:
        return self._find(lambda d: d.username is not None and d.username == username)

    async def find_by_id(self, account_id: str) -> Optional[AccountDoc]:
        doc = self.docs.get(str(account_id))
        return doc.model_copy(deep=True) if doc else None

    async def create(self, account: AccountDoc) -> AccountDoc:
        if await self.find_by_email(account.email):
            raise EmailTakenError("email already registered", field="email")
        if account.username and await self.find_by_username(account.username):
            raise UsernameTakenError("username already taken", field="username")
        account.id = ObjectId()
        self.docs[str(account.id)] = account.model_copy(deep=True)
        return account

    async def save(self, account: AccountDoc) -> None:
        self.saves += 1
        self.docs[str(account.id)] = account.model_copy(deep=True)

    def get(self, email: str) -> AccountDoc:
        return next(d for d in self.docs.values() if d.email == email)


@dataclass
class SentEmail:
    kind: str
    email: str
    user_name: Optional[str]
    code: Optional[str] = None


class RecordingNotifier:
    """Notifier that records every send. ``fail`` makes code emails return False."""

    def __init__(self) -> None:
        self.sent: list[SentEmail] = []
        self.fail = False
        self.fail_welcome = False

    async def send_verification_email(self, email, user_name, otp_code) -> bool:
        self.sent.append(SentEmail("verification", email, user_name, otp_code))
        return not self.fail

    async def send_welcome_email(self, email, user_name) -> bool:
        self.sent.append(SentEmail("welcome", email, user_name))
        return not self.fail_welcome

    async def send_password_reset_email(self, email, user_name, otp_code) -> bool:
        self.sent.append(SentEmail("reset", email, user_name, otp_code))
        return not self.fail

    def of_kind(self, kind: str) -> list[SentEmail]:
        return [m for m in self.sent if m.kind == kind]

    def last_code(self, kind: str) -> str:
        return self.of_kind(kind)[-1].code


class FakeClock:
    """Callable clock pinned to a start time; ``advance`` moves it forward."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or utcnow()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def store() -> InMemoryAccountStore:
    return InMemoryAccountStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def hasher() -> CredentialHasher:
    # Minimum argon2 cost keeps the suite fast
    return CredentialHasher(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture
def jwt_settings() -> JWTSettings:
    return JWTSettings(jwt_secret=TEST_JWT_SECRET)


@pytest.fixture
def tokens(jwt_settings) -> TokenService:
    return TokenService(jwt_settings)


@pytest.fixture
def auth_service(store, hasher, tokens, notifier, clock) -> AuthService:
    return AuthService(
        store=store, hasher=hasher, tokens=tokens, notifier=notifier, clock=clock
    )
