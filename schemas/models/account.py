"""
Account document model and its safe projection.

Maps to the `users` MongoDB collection. Document keys are camelCase
(``firstName``, ``passwordHash``, ``resetCodeAttempts`` ...). Older documents
name three fields differently; they are accepted on read and rewritten under
the current key on the next save:

    verifyCodeExpires    → verifyCodeExpiresAt
    lastVerifyEmailAt    → lastVerifyEmailSentAt
    resetCodeExpires     → resetCodeExpiresAt

A vendor's legacy single ``primaryCategory`` is folded into
``primaryCategories`` on read when the list is empty.

Keys the model does not declare are left untouched in the collection;
AccountRepository.save() only writes modelled fields.

The one-time-code windows are only ever changed through the
``open_*_window`` / ``clear_*_window`` methods so a code hash never exists
without its expiry (and vice versa).

``to_safe_view()`` is the only way account data leaves the service.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from schemas.models.base import MongoBaseModel
from shared.datetime_utils import ensure_utc

Role = Literal["customer", "vendor"]
ROLES: tuple[str, ...] = ("customer", "vendor")


class VendorProfile(BaseModel):
    """Embedded vendor sub-document; present only when role is ``vendor``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    business_name: str
    phone: str
    website: Optional[str] = None
    description: str
    categories: list[str] = Field(default_factory=list, alias="primaryCategories")
    logo_url: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _fold_legacy_category(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        key = "categories" if "categories" in data else "primaryCategories"
        legacy = data.get("primaryCategory")
        if not data.get(key) and isinstance(legacy, str) and legacy.strip():
            data = {**data, key: [legacy.strip()]}
        return data


def _legacy(name: str, old_key: str) -> AliasChoices:
    return AliasChoices(to_camel(name), old_key, name)


class AccountDoc(MongoBaseModel):
    """Document model for the `users` collection."""

    model_config = ConfigDict(alias_generator=to_camel, extra="ignore")

    role: Role
    first_name: str
    last_name: str
    email: str
    username: Optional[str] = None
    password_hash: str
    phone: Optional[str] = None
    address: Optional[str] = None
    dob: Optional[datetime] = None
    vendor: Optional[VendorProfile] = None

    is_verified: bool = False
    verify_code_hash: Optional[str] = None
    verify_code_expires_at: Optional[datetime] = Field(
        default=None,
        validation_alias=_legacy("verify_code_expires_at", "verifyCodeExpires"),
    )
    last_verify_email_sent_at: Optional[datetime] = Field(
        default=None,
        validation_alias=_legacy("last_verify_email_sent_at", "lastVerifyEmailAt"),
    )

    reset_code_hash: Optional[str] = None
    reset_code_expires_at: Optional[datetime] = Field(
        default=None,
        validation_alias=_legacy("reset_code_expires_at", "resetCodeExpires"),
    )
    reset_code_attempts: int = Field(default=0, ge=0)
    last_reset_request_at: Optional[datetime] = None

    # ── Verification window ─────────────────────────────────────────────────

    @property
    def has_verify_window(self) -> bool:
        return bool(self.verify_code_hash and self.verify_code_expires_at)

    def verify_window_expired(self, now: datetime) -> bool:
        expires_at = ensure_utc(self.verify_code_expires_at)
        return expires_at is None or expires_at < now

    def open_verify_window(
        self, code_hash: str, expires_at: datetime, sent_at: datetime
    ) -> None:
        self.verify_code_hash = code_hash
        self.verify_code_expires_at = expires_at
        self.last_verify_email_sent_at = sent_at

    def clear_verify_window(self) -> None:
        self.verify_code_hash = None
        self.verify_code_expires_at = None

    # ── Password-reset window ───────────────────────────────────────────────

    @property
    def has_reset_window(self) -> bool:
        return bool(self.reset_code_hash and self.reset_code_expires_at)

    def reset_window_expired(self, now: datetime) -> bool:
        expires_at = ensure_utc(self.reset_code_expires_at)
        return expires_at is None or expires_at < now

    def open_reset_window(
        self, code_hash: str, expires_at: datetime, requested_at: datetime
    ) -> None:
        self.reset_code_hash = code_hash
        self.reset_code_expires_at = expires_at
        self.reset_code_attempts = 0
        self.last_reset_request_at = requested_at

    def clear_reset_window(self) -> None:
        self.reset_code_hash = None
        self.reset_code_expires_at = None
        self.reset_code_attempts = 0


class SafeView(BaseModel):
    """The subset of account fields allowed in any response or session token."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    role: Role
    first_name: str
    last_name: str
    email: str
    username: Optional[str] = None
    is_verified: bool


def to_safe_view(account: AccountDoc) -> SafeView:
    """Project an account onto its safe view. Pure; never reads secrets."""
    return SafeView(
        id=str(account.id),
        role=account.role,
        first_name=account.first_name,
        last_name=account.last_name,
        email=account.email,
        username=account.username,
        is_verified=account.is_verified,
    )
