"""User-authored transaction categorization rules.

``conditions`` holds the stored (normalized) condition tree in its JSON wire
shape. Rules are applied in creation order, so ``created_at`` doubles as the
tie-break between rules that match the same transaction.
"""
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from txnrules.models.base import BaseModel


class TransactionRule(BaseModel):
    """Reassigns ``primary_category`` on transactions matching ``conditions``."""

    __tablename__ = "transaction_rules"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    personal_finance_category: Mapped[str] = mapped_column(String(100), nullable=False)
    conditions: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_transaction_rule_user_name"),
    )

    user: Mapped["User"] = relationship("User", back_populates="transaction_rules")

    def __repr__(self) -> str:
        return (
            f"<TransactionRule(id={self.id}, user_id={self.user_id}, "
            f"name={self.name}, category={self.personal_finance_category})>"
        )
