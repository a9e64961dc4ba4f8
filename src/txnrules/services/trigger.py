"""Trigger service: apply a user's rules to their stored transactions.

Both entry points run the same first-match-wins applier:

- ``run_for_user`` is the self-service "Run Rules" action and reports how many
  transactions changed category.
- ``resync_user`` is the admin re-sync. It processes each linked item as its
  own unit of work (load, apply, commit) and reports success or failure per
  item; one item failing never stops the others, and its partial changes are
  rolled back.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from txnrules.config import settings
from txnrules.core.exceptions import TargetUserNotFoundError
from txnrules.models.transaction_rule import TransactionRule
from txnrules.repositories.item import ItemRepository
from txnrules.repositories.transaction import TransactionRepository
from txnrules.repositories.transaction_rule import TransactionRuleRepository
from txnrules.repositories.user import UserRepository
from txnrules.rules.applier import ApplyResult, apply_rules, order_rules, run_item_batches
from txnrules.schemas.transaction_rule import ItemSyncResult, TriggerResult, UserSyncResult

logger = logging.getLogger(__name__)


def rule_snapshot(rule: TransactionRule) -> dict[str, Any]:
    """Copy the columns the applier reads off a persisted rule."""
    return {
        "id": rule.id,
        "name": rule.name,
        "personal_finance_category": rule.personal_finance_category,
        "created_at": rule.created_at,
        "conditions": rule.conditions,
    }


class TriggerService:
    """Runs rule application batches against the database."""

    def __init__(self, db: AsyncSession, page_size: int | None = None):
        """Initialize the service.

        Args:
            db: Database session
            page_size: Transactions loaded per batch (defaults to settings)
        """
        self.db = db
        self.page_size = page_size or settings.trigger_page_size
        self.user_repo = UserRepository(db)
        self.item_repo = ItemRepository(db)
        self.transaction_repo = TransactionRepository(db)
        self.rule_repo = TransactionRuleRepository(db)

    async def run_for_user(self, user_id: UUID) -> TriggerResult:
        """Apply the user's rules to all of their transactions.

        Args:
            user_id: User whose rules and transactions are used

        Returns:
            TriggerResult with the number of transactions re-categorized
        """
        rules = order_rules(await self.rule_repo.list_by_user(user_id))
        total = ApplyResult()

        try:
            if rules:
                skip = 0
                while True:
                    page = await self.transaction_repo.get_by_user(user_id, skip, self.page_size)
                    total = total.merge(apply_rules(rules, page))
                    skip += len(page)
                    if len(page) < self.page_size:
                        break
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Transaction rules triggered",
            extra={
                "user_id": str(user_id),
                "num_rules": len(rules),
                "num_transactions": total.num_transactions,
                "num_adjusted": total.num_adjusted,
            },
        )
        return TriggerResult(
            num_adjusted=total.num_adjusted,
            num_matched=total.num_matched,
            num_transactions=total.num_transactions,
        )

    async def resync_user(self, target_user_id: UUID) -> UserSyncResult:
        """Re-apply a user's rules item by item (admin action).

        Args:
            target_user_id: User whose items are re-processed

        Returns:
            UserSyncResult with one entry per active linked item

        Raises:
            TargetUserNotFoundError: If the user doesn't exist
        """
        user = await self.user_repo.get_by_id(target_user_id)
        if user is None:
            raise TargetUserNotFoundError(target_user_id)

        # Plain snapshots: a rollback after a failed item expires ORM instances
        rules = [rule_snapshot(rule) for rule in await self.rule_repo.list_by_user(target_user_id)]
        item_ids = [item.id for item in await self.item_repo.get_active_by_user(target_user_id)]

        async def load(item_id: UUID) -> list[Any]:
            return await self.transaction_repo.get_by_item(target_user_id, item_id)

        async def save(item_id: UUID, result: ApplyResult) -> None:
            await self.db.commit()

        async def discard(item_id: UUID) -> None:
            await self.db.rollback()

        outcomes = await run_item_batches(item_ids, rules, load, save, discard)

        logger.info(
            "User re-sync completed",
            extra={
                "target_user_id": str(target_user_id),
                "num_items": len(outcomes),
                "num_failed": sum(1 for o in outcomes if not o.success),
            },
        )
        return UserSyncResult(
            user_id=target_user_id,
            results=[ItemSyncResult(**outcome.as_dict()) for outcome in outcomes],
        )
