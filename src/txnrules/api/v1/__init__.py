"""API version 1 routes."""

from fastapi import APIRouter

from txnrules.api.v1 import admin, transaction_rules

router = APIRouter(prefix="/api/v1")

# Include routers
router.include_router(transaction_rules.router)
router.include_router(admin.router)
