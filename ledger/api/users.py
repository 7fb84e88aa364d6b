"""
User API Endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends
from loguru import logger
from pydantic import BaseModel, field_validator

from ledger.api.dependencies import get_ledger_service
from ledger.api.fields import reject_bool
from ledger.services.ledger_service import LedgerService

router = APIRouter(tags=["users"])


class UserRequest(BaseModel):
    """Request model for get-or-create user"""
    telegram_id: Optional[int] = None

    telegram_id_not_bool = field_validator("telegram_id", mode="before")(reject_bool)


class UserResponse(BaseModel):
    """Internal user ID"""
    user_id: int


@router.post("/user", response_model=UserResponse)
async def get_or_create_user(
    request: UserRequest,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """
    Look up a user by Telegram ID, creating it on first call

    Returns:
        {"user_id": 1}

    Raises:
        400: telegram_id missing
    """
    user_id = await ledger.get_or_create_user(request.telegram_id)
    logger.debug(f"telegram_id={request.telegram_id} -> user_id={user_id}")
    return UserResponse(user_id=user_id)
