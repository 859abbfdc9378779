import asyncio
from typing import Dict

from pds.core.exceptions import InvalidCredentialsError
from pds.core.logging import get_service_logger
from pds.core.security import PasswordHasher, TokenIssuer
from pds.stores.base import CredentialStore
from pds.utils.validators import require_non_empty

logger = get_service_logger("account")


class AccountService:
    """Service for account registration and login."""

    def __init__(
        self,
        credential_store: CredentialStore,
        password_hasher: PasswordHasher,
        token_issuer: TokenIssuer,
    ):
        self.credential_store = credential_store
        self.password_hasher = password_hasher
        self.token_issuer = token_issuer
        self.logger = logger

    async def register(self, username: str, password: str) -> None:
        """
        Register a new account.

        Args:
            username: Unique, case-sensitive username
            password: Plain text password, stored only as a bcrypt hash

        Raises:
            ValidationError: If username or password is empty
            UsernameTakenError: If the username is already registered
            StorageUnavailableError: If the credential store cannot be reached
        """
        require_non_empty(username, "username")
        require_non_empty(password, "password")

        # bcrypt is CPU bound, keep it off the event loop
        password_hash = await asyncio.to_thread(self.password_hasher.hash, password)
        account = await self.credential_store.create(username, password_hash)

        self.logger.info("Account registered", account_id=account.id)

    async def login(self, username: str, password: str) -> Dict[str, str]:
        """
        Authenticate an account and issue an access token.

        Args:
            username: Account username
            password: Plain text password

        Returns:
            {"access_token": <signed JWT>}

        Raises:
            InvalidCredentialsError: Unknown username, missing hash or wrong password
            StorageUnavailableError: If the credential store cannot be reached
        """
        account = await self.credential_store.find_by_username(username)

        if account is None:
            await asyncio.to_thread(self.password_hasher.dummy_verify)
            self.logger.warning("Login failed - account not found")
            raise InvalidCredentialsError()

        password_valid = await asyncio.to_thread(
            self.password_hasher.verify, password, account.password_hash
        )
        if not password_valid:
            self.logger.warning("Login failed - invalid password", account_id=account.id)
            raise InvalidCredentialsError()

        access_token = self.token_issuer.issue(account.id, account.username)
        self.logger.info("Login successful", account_id=account.id)
        return {"access_token": access_token}
