"""Security module for authentication.

This module provides:
- Password hashing and verification (bcrypt)
- JWT access token issuing and verification
- FastAPI security dependencies

Usage:
    from pds.core.security import (
        PasswordHasher,
        TokenIssuer,
        get_current_claims,
    )
"""

# Password functions
from .password import (
    DEFAULT_BCRYPT_ROUNDS,
    PasswordHasher,
)

# Token management
from .tokens import TokenClaims, TokenIssuer

# FastAPI dependencies
from .dependencies import (
    security,
    get_current_claims,
    get_token_issuer,
)

__all__ = [
    # Password
    "DEFAULT_BCRYPT_ROUNDS",
    "PasswordHasher",
    # Tokens
    "TokenClaims",
    "TokenIssuer",
    # Dependencies
    "security",
    "get_current_claims",
    "get_token_issuer",
]
