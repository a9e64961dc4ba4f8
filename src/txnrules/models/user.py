"""User model for data ownership.

Accounts are created and authenticated by the auth service; this table only
holds what rule ownership and the admin re-sync need.
"""
from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from txnrules.models.base import BaseModel


class User(BaseModel):
    """User owning linked items, transactions and rules."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_superuser: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    # Rely on DB-level ON DELETE CASCADE; prevent SQLAlchemy from NULLing FKs on delete.
    items: Mapped[list["Item"]] = relationship(
        "Item", back_populates="user", lazy="selectin", passive_deletes="all"
    )
    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction", back_populates="user", lazy="noload", passive_deletes="all"
    )
    transaction_rules: Mapped[list["TransactionRule"]] = relationship(
        "TransactionRule", back_populates="user", lazy="noload", passive_deletes="all"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, is_active={self.is_active})>"
