"""
Credential hashing — passwords and one-time codes.

Uses argon2id (via argon2-cffi) with fixed cost parameters. The same hasher
is used for passwords and OTP codes; an OTP's 36^6 space combined with the
10-minute window and the reset attempt cap keeps online guessing infeasible.

Hashing is CPU- and memory-bound, so the async methods run it in a worker
thread with asyncio.to_thread() to keep the event loop free.
"""

from __future__ import annotations

import asyncio

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

# Fixed cost: argon2-cffi's RFC 9106 low-memory profile
DEFAULT_TIME_COST = 3
DEFAULT_MEMORY_COST = 65536  # KiB
DEFAULT_PARALLELISM = 4


class CredentialHasher:
    """Salted one-way hashing with ``hash`` / ``verify``.

    Args:
        time_cost: argon2 iterations.
        memory_cost: argon2 memory in KiB.
        parallelism: argon2 lanes.
    """

    def __init__(
        self,
        time_cost: int = DEFAULT_TIME_COST,
        memory_cost: int = DEFAULT_MEMORY_COST,
        parallelism: int = DEFAULT_PARALLELISM,
    ) -> None:
        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
        )

    def hash_sync(self, plaintext: str) -> str:
        """Return an argon2id hash string (includes parameters and salt)."""
        return self._hasher.hash(plaintext)

    def verify_sync(self, plaintext: str, hashed: str) -> bool:
        """Return ``True`` if *plaintext* matches *hashed*.

        Any failure (mismatch, malformed or empty hash) yields ``False``.
        """
        if not hashed:
            return False
        try:
            return self._hasher.verify(hashed, plaintext)
        except (VerificationError, InvalidHashError):
            return False

    async def hash(self, plaintext: str) -> str:
        return await asyncio.to_thread(self.hash_sync, plaintext)

    async def verify(self, plaintext: str, hashed: str) -> bool:
        return await asyncio.to_thread(self.verify_sync, plaintext, hashed)
