"""
MongoDB implementation of AccountStore over the `users` collection.

Uniqueness is enforced by indexes (see ensure_indexes), so a registration
race that slips past the service's existence check surfaces here as a
DuplicateKeyError and is translated to the matching AppError.
"""

from __future__ import annotations

from typing import Any, Optional

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from errors import EmailTakenError, UsernameTakenError
from schemas.models.account import AccountDoc
from shared.datetime_utils import utcnow
from shared.logging import get_logger

log = get_logger(__name__)

USERS_COLLECTION = "users"

# Keys older documents used for fields the model now stores under a new name
RENAMED_KEYS = ("verifyCodeExpires", "lastVerifyEmailAt", "resetCodeExpires")


class AccountRepository:
    def __init__(self, collection: Any) -> None:
        self._col = collection

    async def ensure_indexes(self) -> None:
        await self._col.create_index([("email", ASCENDING)], unique=True)
        # Partial index: accounts without a username don't collide on null
        await self._col.create_index(
            [("username", ASCENDING)],
            unique=True,
            partialFilterExpression={"username": {"$type": "string"}},
        )
        await self._col.create_index([("role", ASCENDING)])
        await self._col.create_index([("vendor.primaryCategories", ASCENDING)])

    async def find_by_email(self, email: str) -> Optional[AccountDoc]:
        doc = await self._col.find_one({"email": email.strip().lower()})
        return AccountDoc.from_mongo(doc)

    async def find_by_username(self, username: str) -> Optional[AccountDoc]:
        doc = await self._col.find_one({"username": username})
        return AccountDoc.from_mongo(doc)

    async def find_by_id(self, account_id: str) -> Optional[AccountDoc]:
        if not ObjectId.is_valid(account_id):
            return None
        doc = await self._col.find_one({"_id": ObjectId(account_id)})
        return AccountDoc.from_mongo(doc)

    async def create(self, account: AccountDoc) -> AccountDoc:
        account.touch(utcnow())
        try:
            result = await self._col.insert_one(account.to_mongo())
        except DuplicateKeyError as e:
            key_pattern = (e.details or {}).get("keyPattern", {})
            if "username" in key_pattern:
                log.warning("account_create_failed", reason="duplicate_username")
                raise UsernameTakenError("username already taken", field="username")
            log.warning("account_create_failed", reason="duplicate_email")
            raise EmailTakenError("email already registered", field="email")
        account.id = result.inserted_id
        return account

    async def save(self, account: AccountDoc) -> None:
        account.touch(utcnow())
        await self._col.update_one({"_id": account.id}, _update_for(account))


def _update_for(account: AccountDoc) -> dict:
    """
    $set the modelled fields and $unset the ones that are now empty.

    Vendor fields are written by dotted path so legacy keys inside the
    sub-document survive. Keys under an old name are always unset; the
    model has already read them into the current field.
    """
    doc = account.to_mongo()
    doc.pop("_id", None)
    vendor = doc.pop("vendor", None)
    if vendor is not None:
        doc.update({f"vendor.{key}": value for key, value in vendor.items()})

    to_set = {key: value for key, value in doc.items() if value is not None}
    to_unset = {key: "" for key, value in doc.items() if value is None}
    to_unset.update({key: "" for key in RENAMED_KEYS})
    return {"$set": to_set, "$unset": to_unset}
