"""SQLAlchemy table definitions for accounts and the document catalog."""

from typing import Optional

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class AccountModel(Base):
    """Credential row: username and bcrypt password hash."""

    __tablename__ = "accounts"
    # AUTOINCREMENT keeps ids monotonic and never reused on SQLite
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Default collations on SQLite and PostgreSQL compare case-sensitively
    username: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<AccountModel(id={self.id}, username='{self.username}')>"


class DocumentModel(Base):
    """Catalog row pairing a stored blob with its owner and key material."""

    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint("name", "owner_id", name="uq_documents_name_owner"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    keys: Mapped[str] = mapped_column(Text, nullable=False)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id"), nullable=False, index=True
    )

    def __repr__(self) -> str:
        return (
            f"<DocumentModel(id={self.id}, name='{self.name}', "
            f"owner_id={self.owner_id})>"
        )
