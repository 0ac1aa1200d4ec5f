"""
Input validators — framework-agnostic, pure functions.

Shape checks for email addresses, Australian phone numbers, password
strength and vendor category lists. All validators are stateless.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_WHITESPACE_RE = re.compile(r"\s+")
_AU_MOBILE_RE = re.compile(r"^(\+?61|0)4\d{8}$")
_AU_LANDLINE_RE = re.compile(r"^(\+?61|0)[2378]\d{8}$")

MIN_PASSWORD_LENGTH = 8


def normalize_email(email: Optional[str]) -> str:
    """Lower-case and trim an email address (``None`` → ``""``)."""
    return (email or "").strip().lower()


def is_email(value: str) -> bool:
    """Return True if *value* has a ``local@domain.tld`` shape."""
    return bool(_EMAIL_RE.match(value or ""))


def is_au_phone(value: str) -> bool:
    """Return True for an Australian mobile or landline number.

    Whitespace is stripped first. Accepted shapes:
    - mobile: ``04xxxxxxxx``, ``+614xxxxxxxx``, ``614xxxxxxxx``
    - landline: ``0[2378]xxxxxxxx`` and the ``+61`` / ``61`` forms
    """
    compact = _WHITESPACE_RE.sub("", value or "")
    return bool(_AU_MOBILE_RE.match(compact) or _AU_LANDLINE_RE.match(compact))


def is_strong_password(password: str) -> bool:
    """Validate the password policy.

    Rules:
    - At least 8 characters
    - Contains at least one letter
    - Contains at least one digit
    """
    if len(password or "") < MIN_PASSWORD_LENGTH:
        return False
    if not re.search(r"[A-Za-z]", password):
        return False
    if not re.search(r"\d", password):
        return False
    return True


def normalize_categories(categories: Iterable[Optional[str]]) -> list[str]:
    """Trim category tags, drop blanks and duplicates, keep first-seen order."""
    seen: set[str] = set()
    result: list[str] = []
    for raw in categories:
        tag = (raw or "").strip()
        if tag and tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result
