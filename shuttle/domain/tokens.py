"""
Verification tokens (QR payload).

A token is an HS256-signed JWT binding ``sub`` (reservation id), ``iat``
(issuance time) and a random ``jti`` nonce.  Without the server secret a
token cannot be derived from the reservation id, and any tampering
breaks the signature.

A valid token only proves that the holder was shown the confirmation of
that reservation; whether the trip may start is decided by the
reservation's lifecycle status.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Callable

import jwt

from .errors import InvalidInput, InvalidToken

TOKEN_TYPE = "transfer-verification"


class VerificationTokenService:
    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        if not secret:
            raise InvalidInput("Verification token secret must not be empty")
        self.secret = secret
        self.algorithm = algorithm
        self.clock = clock

    def issue(self, reservation_id: str) -> str:
        if not reservation_id:
            raise InvalidInput("Cannot issue a token without a reservation id")
        payload = {
            "sub": reservation_id,
            "iat": int(self.clock().timestamp()),
            "jti": secrets.token_urlsafe(12),
            "typ": TOKEN_TYPE,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """Return the reservation id bound to *token*, else raise ``InvalidToken``."""
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "iat", "jti"], "verify_iat": False},
            )
        except jwt.InvalidTokenError as exc:
            raise InvalidToken(f"Verification token rejected: {exc}") from exc
        if payload.get("typ") != TOKEN_TYPE:
            raise InvalidToken("Token is not a transfer verification token")
        return payload["sub"]
