from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Account(BaseModel):
    """Registered account as read from the credential store."""

    id: int = Field(..., gt=0, description="Store-assigned account identifier")
    username: str = Field(..., min_length=1, description="Unique, case-sensitive")
    password_hash: Optional[str] = Field(None, description="bcrypt password hash")

    model_config = ConfigDict(from_attributes=True, frozen=True)

    def __repr__(self) -> str:
        # password_hash is omitted
        return f"<Account(id={self.id}, username='{self.username}')>"
