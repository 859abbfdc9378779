"""JWT access token issuing and verification.

Tokens are self-contained: validity is the signature plus the expiry claim,
there is no server-side session or revocation list.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from pds.core.exceptions import TokenExpiredError, TokenInvalidError
from pds.core.logging import get_auth_logger

logger = get_auth_logger()

REQUIRED_CLAIMS = ["sub", "username", "iat", "exp"]


@dataclass(frozen=True)
class TokenClaims:
    """Verified claims of an access token."""

    subject: int
    username: str
    issued_at: datetime
    expires_at: datetime

    def to_payload(self) -> Dict[str, Any]:
        """Claims in their wire form (integer timestamps)."""
        return {
            "sub": self.subject,
            "username": self.username,
            "iat": int(self.issued_at.timestamp()),
            "exp": int(self.expires_at.timestamp()),
        }


class TokenIssuer:
    """Signs and verifies bearer tokens with an injected secret."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expires_delta: timedelta = timedelta(days=2),
    ):
        if not secret_key:
            raise ValueError("secret_key must be a non-empty string")
        if expires_delta <= timedelta(0):
            raise ValueError("expires_delta must be positive")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.expires_delta = expires_delta

    def issue(
        self,
        subject: int,
        username: str,
        expires_delta: Optional[timedelta] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """
        Create a signed access token.

        Args:
            subject: Account id
            username: Account username
            expires_delta: Custom lifetime (overrides the configured one)
            now: Issue time, defaults to the current UTC time

        Returns:
            Encoded JWT
        """
        issued_at = now or datetime.now(timezone.utc)
        expires_at = issued_at + (expires_delta or self.expires_delta)

        payload = {
            # PyJWT requires a string subject
            "sub": str(subject),
            "username": username,
            "iat": issued_at,
            "exp": expires_at,
        }
        token = jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

        logger.debug(
            "Access token created",
            subject=subject,
            expires_at=expires_at.isoformat(),
        )
        return token

    def verify(self, token: str) -> TokenClaims:
        """
        Verify signature and expiry and return the claims.

        Raises:
            TokenExpiredError: If the token has expired
            TokenInvalidError: If the token is malformed, tampered or incomplete
        """
        if not token:
            raise TokenInvalidError()

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Token verification failed: expired signature")
            raise TokenExpiredError()
        except jwt.InvalidSignatureError:
            logger.warning(
                "Token verification failed: invalid signature - possible tampering attempt"
            )
            raise TokenInvalidError()
        except jwt.PyJWTError as e:
            logger.warning("Token verification failed", error=str(e))
            raise TokenInvalidError()

        try:
            subject = int(payload["sub"])
        except (TypeError, ValueError):
            raise TokenInvalidError("Access token subject is invalid")
        username = payload["username"]
        if subject <= 0 or not isinstance(username, str) or not username:
            raise TokenInvalidError("Access token payload is invalid")

        return TokenClaims(
            subject=subject,
            username=username,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
