"""Password policy and bcrypt hashing helpers."""

from __future__ import annotations

import re
from typing import Final

import bcrypt

PASSWORD_SYMBOLS: Final[str] = "@$!%*?&"

_PASSWORD_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?=.*[A-Za-z])(?=.*[0-9])(?=.*[@$!%*?&])[A-Za-z0-9@$!%*?&]{6,}",
    re.ASCII,
)

# bcrypt only consumes the first 72 bytes of a secret
_BCRYPT_MAX_BYTES: Final[int] = 72


def meets_password_policy(password: str) -> bool:
    """Return ``True`` when the password satisfies the sign-up policy.

    The password must be at least six characters long, contain a letter, a
    digit and one of ``@$!%*?&``, and use no other characters.
    """
    return _PASSWORD_PATTERN.fullmatch(password) is not None


class PasswordHasher:
    """Thin wrapper around bcrypt with a configurable cost factor."""

    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds

    def hash(self, password: str) -> str:
        """Return a salted bcrypt digest for ``password``."""
        digest = bcrypt.hashpw(self._encode(password), bcrypt.gensalt(rounds=self._rounds))
        return digest.decode("utf-8")

    def verify(self, password: str, digest: str) -> bool:
        """Check ``password`` against a digest produced by :meth:`hash`."""
        try:
            return bcrypt.checkpw(self._encode(password), digest.encode("utf-8"))
        except ValueError:
            # raised for digests that are not bcrypt-formatted
            return False

    @staticmethod
    def _encode(password: str) -> bytes:
        return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
