"""Utilities for issuing and validating session JWTs."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

import jwt

from ..domain.errors import AuthenticationFailed

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """Identity claims embedded in a session token."""

    user_id: str
    email: str
    issued_at: int
    expires_at: int


class TokenCodec:
    """Sign and verify bearer tokens with an injected HMAC secret.

    Parameters
    ----------
    secret:
        Shared signing key. Tokens signed with any other key are rejected.
    issuer:
        Value written to and required in the ``iss`` claim.
    ttl_seconds:
        Validity window of issued tokens.
    clock:
        Source of the current UNIX time used when issuing tokens.
    """

    def __init__(
        self,
        secret: str,
        *,
        issuer: str,
        ttl_seconds: int = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret
        self._issuer = issuer
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def issue(self, *, user_id: str, email: str) -> str:
        """Create a signed JWT carrying ``userId`` and ``email``."""
        now = int(self._clock())
        payload: dict[str, Any] = {
            "iss": self._issuer,
            "userId": user_id,
            "email": email,
            "iat": now,
            "exp": now + self._ttl_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def decode(self, token: str | None) -> TokenClaims:
        """Verify ``token`` and return its claims.

        Raises
        ------
        AuthenticationFailed
            When the token is missing, malformed, expired, signed with another
            key, or issued by someone else.
        """
        if not token:
            raise AuthenticationFailed("Authentication failed, missing token.")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                issuer=self._issuer,
                options={"require": ["exp", "iat", "iss"]},
            )
        except jwt.ExpiredSignatureError as exc:
            logger.info("rejected expired session token")
            raise AuthenticationFailed() from exc
        except jwt.PyJWTError as exc:
            logger.warning("rejected session token: %s", exc)
            raise AuthenticationFailed() from exc

        user_id = payload.get("userId")
        if not isinstance(user_id, str) or not user_id:
            logger.warning("rejected session token without userId claim")
            raise AuthenticationFailed()
        return TokenClaims(
            user_id=user_id,
            email=str(payload.get("email", "")),
            issued_at=int(payload["iat"]),
            expires_at=int(payload["exp"]),
        )
