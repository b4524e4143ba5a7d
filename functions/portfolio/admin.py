"""
Password gate for the admin tools.
"""

from __future__ import annotations

import secrets
from typing import Optional


class AdminGate:
    """Session-scoped login flag checked before any admin operation."""

    def __init__(self, password: Optional[str]):
        self._password = password or ""
        self._authenticated = False

    @property
    def is_authenticated(self) -> bool:
        return self._authenticated

    def login(self, candidate: str) -> bool:
        # An unset password keeps the admin closed.
        if not self._password:
            return False
        self._authenticated = secrets.compare_digest(
            candidate.encode(), self._password.encode()
        )
        return self._authenticated

    def logout(self) -> None:
        self._authenticated = False
