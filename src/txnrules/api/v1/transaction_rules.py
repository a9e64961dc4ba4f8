"""Transaction rule endpoints: CRUD, dry-run validation and the trigger."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from txnrules.api.deps import get_current_user, get_db
from txnrules.models.user import User
from txnrules.schemas.transaction_rule import (
    ConditionsValidationRequest,
    ConditionsValidationResult,
    TransactionRuleCreate,
    TransactionRuleResponse,
    TransactionRuleUpdate,
    TriggerResult,
)
from txnrules.services.transaction_rule import TransactionRuleService, check_conditions
from txnrules.services.trigger import TriggerService

router = APIRouter(prefix="/transaction-rules", tags=["transaction-rules"])


@router.get(
    "",
    response_model=list[TransactionRuleResponse],
    summary="List transaction rules",
    description="List the current user's rules in the order they are applied (oldest first).",
)
async def list_rules(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[TransactionRuleResponse]:
    rules = await TransactionRuleService(db).list_rules(current_user.id)
    return [TransactionRuleResponse.from_rule(rule) for rule in rules]


@router.post(
    "/validate",
    response_model=ConditionsValidationResult,
    summary="Validate a condition tree",
    description="""
    Check an authored condition tree without saving it.

    Errors are prefixed with the path of the offending node, e.g.
    `root/and[1]: amount value must be a number`.
    """,
)
async def validate_conditions(
    body: ConditionsValidationRequest,
    current_user: User = Depends(get_current_user),
) -> ConditionsValidationResult:
    result = check_conditions(body.conditions)
    return ConditionsValidationResult(valid=result.valid, errors=result.errors)


@router.post(
    "/trigger",
    response_model=TriggerResult,
    summary="Run rules",
    description="""
    Apply all of the current user's rules to their transactions.

    For each transaction the oldest matching rule sets `primary_category`;
    transactions no rule matches are left unchanged. Running it again with the
    same rules changes nothing further.
    """,
)
async def trigger_rules(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TriggerResult:
    return await TriggerService(db).run_for_user(current_user.id)


@router.get(
    "/{rule_id}",
    response_model=TransactionRuleResponse,
    summary="Get a transaction rule",
)
async def get_rule(
    rule_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TransactionRuleResponse:
    rule = await TransactionRuleService(db).get_rule(current_user.id, rule_id)
    return TransactionRuleResponse.from_rule(rule)


@router.post(
    "",
    response_model=TransactionRuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a transaction rule",
    description="""
    Create a rule from an authored condition tree.

    Amount conditions are written in spend terms ("amount gt 50" means spent
    more than 50) and stored in transaction sign convention.
    """,
)
async def create_rule(
    body: TransactionRuleCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TransactionRuleResponse:
    rule = await TransactionRuleService(db).create_rule(current_user.id, body)
    return TransactionRuleResponse.from_rule(rule)


@router.put(
    "/{rule_id}",
    response_model=TransactionRuleResponse,
    summary="Update a transaction rule",
)
async def update_rule(
    rule_id: UUID,
    body: TransactionRuleUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TransactionRuleResponse:
    rule = await TransactionRuleService(db).update_rule(current_user.id, rule_id, body)
    return TransactionRuleResponse.from_rule(rule)


@router.delete(
    "/{rule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a transaction rule",
)
async def delete_rule(
    rule_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    await TransactionRuleService(db).delete_rule(current_user.id, rule_id)
