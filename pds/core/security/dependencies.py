"""FastAPI security dependencies.

Provides:
- HTTPBearer security scheme
- get_current_claims dependency for protected endpoints
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pds.core.exceptions import AuthenticationError
from pds.core.logging import get_auth_logger
from .tokens import TokenClaims, TokenIssuer

logger = get_auth_logger()

# Missing credentials are reported through the application error envelope
security = HTTPBearer(auto_error=False)


def get_token_issuer(request: Request) -> TokenIssuer:
    """Token issuer held by the service container on application state."""
    return request.app.state.container.token_issuer


def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> TokenClaims:
    """
    FastAPI dependency returning the verified claims of the bearer token.

    Args:
        credentials: Bearer credentials parsed by HTTPBearer, if any
        token_issuer: Issuer used to verify signature and expiry

    Returns:
        TokenClaims of the caller

    Raises:
        AuthenticationError: If the token is missing
        TokenExpiredError: If the token has expired
        TokenInvalidError: If the token is malformed or tampered
    """
    if credentials is None or not credentials.credentials:
        logger.debug("Authentication failed: missing bearer token")
        raise AuthenticationError("Missing bearer token")

    claims = token_issuer.verify(credentials.credentials)
    logger.debug("Authentication successful", subject=claims.subject)
    return claims
