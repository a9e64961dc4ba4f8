"""Request/response schemas for transaction rules and the trigger."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from txnrules.rules.categories import category_label
from txnrules.rules.normalizer import StoredConditions, denormalize


# Request schemas


class TransactionRuleCreate(BaseModel):
    """Create a rule. ``conditions`` is the tree as authored in the editor."""

    name: str = Field(min_length=1, max_length=255, description="Rule name (unique per user)")
    personal_finance_category: str = Field(description="Category assigned to matching transactions")
    conditions: dict[str, Any] = Field(
        description="Authored condition tree, e.g. {'and': [{'field': 'amount', 'op': 'gt', 'value': 50}]}"
    )

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _strip_name(v)


class TransactionRuleUpdate(BaseModel):
    """Partial update of a rule. Omitted fields are left unchanged."""

    name: str | None = Field(None, min_length=1, max_length=255)
    personal_finance_category: str | None = None
    conditions: dict[str, Any] | None = Field(None, description="Authored condition tree")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        return v if v is None else _strip_name(v)


def _strip_name(v: str) -> str:
    """Ensure a rule name isn't just whitespace."""
    if not v.strip():
        raise ValueError("Rule name cannot be blank")
    return v.strip()


class ConditionsValidationRequest(BaseModel):
    """Check an authored condition tree without saving it."""

    conditions: Any = Field(description="Authored condition tree")


# Response schemas


class ConditionsValidationResult(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list, description="Path-tagged validation errors")


class TransactionRuleResponse(BaseModel):
    """A saved rule.

    ``conditions`` is the stored form (amounts in transaction sign convention);
    ``editable_conditions`` is the same tree converted back for the editor.
    """

    id: UUID
    name: str
    personal_finance_category: str
    category_label: str
    conditions: dict[str, Any]
    editable_conditions: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_rule(cls, rule: Any) -> "TransactionRuleResponse":
        stored = StoredConditions.from_payload(rule.conditions)
        return cls(
            id=rule.id,
            name=rule.name,
            personal_finance_category=rule.personal_finance_category,
            category_label=category_label(rule.personal_finance_category),
            conditions=stored.to_payload(),
            editable_conditions=denormalize(stored).to_payload(),
            created_at=rule.created_at,
            updated_at=rule.updated_at,
        )


class TriggerResult(BaseModel):
    """Outcome of running the current user's rules over their transactions."""

    num_adjusted: int = Field(description="Transactions whose category was changed")
    num_matched: int = Field(0, description="Transactions matched by any rule")
    num_transactions: int = Field(0, description="Transactions examined")


class ItemSyncResult(BaseModel):
    """Outcome for one linked item during an admin re-sync."""

    item_id: UUID
    success: bool
    error: str | None = None


class UserSyncResult(BaseModel):
    """Admin re-sync result: one entry per linked item."""

    user_id: UUID
    results: list[ItemSyncResult]
