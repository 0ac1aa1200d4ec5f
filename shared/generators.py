"""
Random code generators — pure, side-effect-free functions.

All generators use the ``secrets`` module (cryptographically secure source).
"""

from __future__ import annotations

import secrets
import string

OTP_ALPHABET = string.ascii_uppercase + string.digits
OTP_LENGTH = 6


def generate_otp_code(length: int = OTP_LENGTH, alphabet: str = OTP_ALPHABET) -> str:
    """Generate a one-time code.

    Each position is drawn independently and uniformly from *alphabet*
    (``A-Z0-9`` by default), so output is upper-case by construction. No
    uniqueness guarantee across calls; codes are scoped per account and
    time-bounded.

    Args:
        length: Number of characters (default 6).
        alphabet: Symbols to draw from.

    Returns:
        Random string of the requested length.
    """
    return "".join(secrets.choice(alphabet) for _ in range(length))


def normalize_otp_input(code: str | None) -> str:
    """Trim and upper-case user-supplied code input before comparison."""
    return (code or "").strip().upper()
