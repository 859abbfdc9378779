"""Credential store backed by the accounts table."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from pds.core.db_client import DatabaseManager
from pds.core.exceptions import StorageUnavailableError, UsernameTakenError
from pds.core.logging import get_db_logger
from pds.models.account import Account
from pds.models.db_models import AccountModel
from .base import CredentialStore

logger = get_db_logger()

STORE_NAME = "credentials"


class SqlCredentialStore(CredentialStore):
    """Accounts persisted through SQLAlchemy."""

    def __init__(self, db: DatabaseManager):
        self.db = db

    async def create(self, username: str, password_hash: str) -> Account:
        """
        Insert a new account.

        The lookup gives a clear conflict in the common case; the unique
        index decides concurrent registrations of the same username.

        Raises:
            UsernameTakenError: If the username already exists
            StorageUnavailableError: If the database cannot be reached
        """
        try:
            async with self.db.session() as session:
                stmt = select(AccountModel.id).where(AccountModel.username == username)
                result = await session.execute(stmt)
                if result.scalar_one_or_none() is not None:
                    raise UsernameTakenError(username)

                row = AccountModel(username=username, password_hash=password_hash)
                session.add(row)
                await session.flush()
                account = Account.model_validate(row)

            logger.info("Account created", account_id=account.id)
            return account

        except UsernameTakenError:
            logger.info("Account creation rejected: username taken")
            raise
        except IntegrityError:
            logger.info("Account creation lost a concurrent race: username taken")
            raise UsernameTakenError(username)
        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to create account", error=str(e))
            raise StorageUnavailableError(store=STORE_NAME)

    async def find_by_username(self, username: str) -> Optional[Account]:
        """
        Get an account by exact username.

        Raises:
            StorageUnavailableError: If the database cannot be reached
        """
        try:
            async with self.db.session() as session:
                stmt = select(AccountModel).where(AccountModel.username == username)
                result = await session.execute(stmt)
                row = result.scalar_one_or_none()
                return Account.model_validate(row) if row else None

        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to look up account", error=str(e))
            raise StorageUnavailableError(store=STORE_NAME)
