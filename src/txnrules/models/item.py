"""Item model: one linked institution connection (a set of bank accounts)."""
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from txnrules.models.base import BaseModel


class Item(BaseModel):
    """A connection to one institution, as created by the account-linking flow."""

    __tablename__ = "items"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider_item_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    institution_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="items")
    transactions: Mapped[list["Transaction"]] = relationship(
        "Transaction", back_populates="item", lazy="noload", passive_deletes="all"
    )

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, institution={self.institution_name})>"
