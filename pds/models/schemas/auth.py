"""Account request/response schemas.

Provides:
- Credentials body shared by registration and login
- Access token response
- Profile response (verified token claims)
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AccountCredentials(BaseModel):
    """Request model for registration and login."""

    username: str = Field(..., description="Account username (case-sensitive)")
    password: str = Field(..., description="Account password")

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={"example": {"username": "alice", "password": "secret1"}},
    )

    @field_validator("username", "password")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Reject empty values; surrounding whitespace is kept verbatim."""
        if not v:
            raise ValueError("must be a non-empty string")
        return v


class AccessTokenResponse(BaseModel):
    """Response model for a successful login."""

    access_token: str = Field(..., description="Signed JWT bearer token")


class ProfileResponse(BaseModel):
    """Claims carried by the caller's verified access token."""

    sub: int = Field(..., description="Account id")
    username: str = Field(..., description="Account username")
    iat: int = Field(..., description="Issued-at, seconds since epoch")
    exp: int = Field(..., description="Expiry, seconds since epoch")
