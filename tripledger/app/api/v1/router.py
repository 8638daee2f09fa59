"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from tripledger.app.api.v1.endpoints import (
    auth, admin, trips, participants, expenses,
    treasury, dues, accounts, settlements, blobs
)

router = APIRouter()

router.include_router(auth.router)
router.include_router(admin.router)
router.include_router(trips.router)
router.include_router(participants.router)
router.include_router(expenses.router)
router.include_router(treasury.router)
router.include_router(dues.router)
router.include_router(accounts.router)
router.include_router(settlements.router)
router.include_router(blobs.router)
