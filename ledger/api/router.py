"""
FastAPI Router for the ledger API
"""

from fastapi import APIRouter

from ledger.api.users import router as users_router
from ledger.api.circles import router as circles_router

router = APIRouter()

router.include_router(users_router)
router.include_router(circles_router)
