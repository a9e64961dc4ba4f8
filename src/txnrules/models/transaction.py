"""Transaction model for transactions synced from linked items.

Amounts follow the storage convention rules are normalized against: expenses
are negative, income is positive.
"""
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from txnrules.models.base import BaseModel


class Transaction(BaseModel):
    """A single bank transaction."""

    __tablename__ = "transactions"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id: Mapped[UUID] = mapped_column(ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id: Mapped[str] = mapped_column(String(100), nullable=False)
    provider_transaction_id: Mapped[str | None] = mapped_column(String(100), nullable=True, unique=True)
    txn_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    merchant_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    primary_category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    pending: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index("ix_transactions_user_id_item_id", "user_id", "item_id"),
    )

    # Relationships
    item: Mapped["Item"] = relationship("Item", back_populates="transactions")
    user: Mapped["User"] = relationship("User", back_populates="transactions")

    def __repr__(self) -> str:
        return f"<Transaction(id={self.id}, name={self.name}, amount={self.amount})>"
