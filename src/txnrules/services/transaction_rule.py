"""Transaction rule service: CRUD with validation and normalization.

Conditions arrive as the user authored them. They are validated, normalized
once into the stored form, and persisted; reads convert them back for the
editor (see ``TransactionRuleResponse``).
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from txnrules.config import settings
from txnrules.core.exceptions import (
    DuplicateRuleNameError,
    InvalidCategoryError,
    InvalidConditionsError,
    RuleNotFoundError,
)
from txnrules.models.transaction_rule import TransactionRule
from txnrules.repositories.transaction_rule import TransactionRuleRepository
from txnrules.rules.categories import is_valid_category
from txnrules.rules.normalizer import AuthoredConditions, StoredConditions, normalize
from txnrules.rules.validator import ValidationResult, validate
from txnrules.schemas.transaction_rule import TransactionRuleCreate, TransactionRuleUpdate

logger = logging.getLogger(__name__)


def check_conditions(payload: Any) -> ValidationResult:
    """Validate an authored condition tree with the configured depth limit."""
    return validate(payload, max_depth=settings.rule_max_depth)


def prepare_conditions(payload: Any) -> StoredConditions:
    """Validate and normalize an authored tree into its stored form.

    Raises:
        InvalidConditionsError: If validation reports any error
    """
    result = check_conditions(payload)
    if not result.valid:
        raise InvalidConditionsError(result.errors)
    return normalize(AuthoredConditions.from_payload(payload))


class TransactionRuleService:
    """Service layer for a user's transaction rules."""

    def __init__(self, db: AsyncSession):
        """Initialize the service.

        Args:
            db: Database session
        """
        self.db = db
        self.rule_repo = TransactionRuleRepository(db)

    async def list_rules(self, user_id: UUID) -> list[TransactionRule]:
        """Get a user's rules in creation order."""
        return await self.rule_repo.list_by_user(user_id)

    async def get_rule(self, user_id: UUID, rule_id: UUID) -> TransactionRule:
        """Get one of the user's rules.

        Raises:
            RuleNotFoundError: If the rule doesn't exist or isn't the user's
        """
        rule = await self.rule_repo.get_by_user(user_id, rule_id)
        if rule is None:
            raise RuleNotFoundError(rule_id)
        return rule

    async def create_rule(self, user_id: UUID, data: TransactionRuleCreate) -> TransactionRule:
        """Validate, normalize and persist a new rule.

        Raises:
            InvalidCategoryError: If the category isn't in the taxonomy
            InvalidConditionsError: If the conditions fail validation
            DuplicateRuleNameError: If the user already has a rule with this name
        """
        if not is_valid_category(data.personal_finance_category):
            raise InvalidCategoryError(data.personal_finance_category)
        stored = prepare_conditions(data.conditions)

        name = data.name
        if await self.rule_repo.name_exists(user_id, name):
            raise DuplicateRuleNameError(name)

        rule = await self.rule_repo.create(
            TransactionRule(
                user_id=user_id,
                name=name,
                personal_finance_category=data.personal_finance_category,
                conditions=stored.to_payload(),
            )
        )
        logger.info("Transaction rule created", extra={"rule_id": str(rule.id), "user_id": str(user_id)})
        return rule

    async def update_rule(
        self, user_id: UUID, rule_id: UUID, data: TransactionRuleUpdate
    ) -> TransactionRule:
        """Apply a partial update to one of the user's rules.

        Raises:
            RuleNotFoundError: If the rule doesn't exist or isn't the user's
            InvalidCategoryError: If the new category isn't in the taxonomy
            InvalidConditionsError: If the new conditions fail validation
            DuplicateRuleNameError: If another of the user's rules has the new name
        """
        rule = await self.get_rule(user_id, rule_id)
        changes: dict[str, Any] = {}

        if data.personal_finance_category is not None:
            if not is_valid_category(data.personal_finance_category):
                raise InvalidCategoryError(data.personal_finance_category)
            changes["personal_finance_category"] = data.personal_finance_category

        if data.conditions is not None:
            changes["conditions"] = prepare_conditions(data.conditions).to_payload()

        if data.name is not None:
            name = data.name
            if await self.rule_repo.name_exists(user_id, name, exclude_id=rule.id):
                raise DuplicateRuleNameError(name)
            changes["name"] = name

        if not changes:
            return rule

        updated = await self.rule_repo.update(rule.id, changes)
        logger.info(
            "Transaction rule updated",
            extra={"rule_id": str(rule.id), "user_id": str(user_id)},
        )
        return updated

    async def delete_rule(self, user_id: UUID, rule_id: UUID) -> None:
        """Delete one of the user's rules.

        Raises:
            RuleNotFoundError: If the rule doesn't exist or isn't the user's
        """
        rule = await self.get_rule(user_id, rule_id)
        await self.rule_repo.delete(rule.id)
        logger.info("Transaction rule deleted", extra={"rule_id": str(rule_id), "user_id": str(user_id)})
