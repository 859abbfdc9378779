"""Password hashing utilities.

Provides:
- Password hashing using bcrypt with a fixed work factor
- Password verification
- Dummy verification for unknown accounts
"""

from typing import Optional

from passlib.context import CryptContext

DEFAULT_BCRYPT_ROUNDS = 10


class PasswordHasher:
    """bcrypt hashing with a configurable, fixed work factor."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password string
        """
        return self._context.hash(password)

    def verify(self, plain_password: str, hashed_password: Optional[str]) -> bool:
        """
        Verify a password against its hash.

        Args:
            plain_password: Plain text password
            hashed_password: Previously hashed password, may be missing

        Returns:
            True if password matches, False otherwise (including a missing or
            malformed hash)
        """
        if not hashed_password:
            self.dummy_verify()
            return False
        try:
            return self._context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            return False

    def dummy_verify(self) -> None:
        """Spend the same time as a real verification."""
        self._context.dummy_verify()

