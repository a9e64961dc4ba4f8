"""Admin endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from txnrules.api.deps import get_current_superuser, get_db
from txnrules.models.user import User
from txnrules.schemas.transaction_rule import UserSyncResult
from txnrules.services.trigger import TriggerService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post(
    "/users/{user_id}/sync",
    response_model=UserSyncResult,
    response_model_exclude_none=True,
    summary="Re-apply a user's rules item by item",
    description="""
    Re-run the target user's transaction rules over each of their linked items.

    Every active item gets one entry in `results`. An item whose transactions
    can't be processed is reported with `success: false` and an `error`; the
    remaining items are still processed.
    """,
)
async def sync_user(
    user_id: UUID,
    current_user: User = Depends(get_current_superuser),
    db: AsyncSession = Depends(get_db),
) -> UserSyncResult:
    return await TriggerService(db).resync_user(user_id)
