"""Request and response schemas for the HTTP API."""

from .auth import AccessTokenResponse, AccountCredentials, ProfileResponse
from .document import DocumentResponse

__all__ = [
    "AccessTokenResponse",
    "AccountCredentials",
    "ProfileResponse",
    "DocumentResponse",
]
