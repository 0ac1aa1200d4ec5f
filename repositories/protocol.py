"""AccountStore protocol — services depend on this, not the MongoDB implementation."""

from typing import Optional, Protocol

from schemas.models.account import AccountDoc


class AccountStore(Protocol):
    async def find_by_email(self, email: str) -> Optional[AccountDoc]: ...

    async def find_by_username(self, username: str) -> Optional[AccountDoc]: ...

    async def find_by_id(self, account_id: str) -> Optional[AccountDoc]: ...

    async def create(self, account: AccountDoc) -> AccountDoc:
        """Insert and return the account with its store-assigned id.

        Raises EmailTakenError / UsernameTakenError on a unique-key clash.
        """
        ...

    async def save(self, account: AccountDoc) -> None: ...
