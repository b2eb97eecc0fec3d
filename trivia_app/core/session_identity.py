"""Opaque per-browser identity used for the eligibility gate and self-service deletes."""

from __future__ import annotations

import re
import secrets
import time

_TOKEN_PATTERN = re.compile(r"^session_\d{10,}_[a-z0-9]{6,32}$")
_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"


class SessionIdentityService:
    """Issues and checks tokens of the form ``session_<epoch_ms>_<random>``."""

    def __init__(self, random_length: int = 9) -> None:
        self._random_length = random_length

    def issue(self) -> str:
        suffix = "".join(secrets.choice(_ALPHABET) for _ in range(self._random_length))
        return f"session_{int(time.time() * 1000)}_{suffix}"

    def is_valid(self, token: str | None) -> bool:
        return bool(token) and _TOKEN_PATTERN.match(token) is not None

    def ensure(self, token: str | None) -> tuple[str, bool]:
        """Return ``(token, created)``; a new token is issued when ``token`` is unusable."""
        if self.is_valid(token):
            return token, False
        return self.issue(), True
