"""
Circle API Endpoints
Open circles, record sells against them and delete them
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from loguru import logger
from pydantic import BaseModel, ConfigDict, field_validator

from ledger.api.dependencies import get_ledger_service
from ledger.api.fields import reject_bool
from ledger.services.ledger_service import LedgerService

router = APIRouter(tags=["circles"])


# ==================== Request/Response Models ====================

class CreateCircleRequest(BaseModel):
    """Request model for opening a circle; presence is checked by the service"""
    user_id: Optional[int] = None
    currency: Optional[str] = None
    buy_rub: Optional[float] = None
    buy_price: Optional[float] = None

    numbers_not_bool = field_validator("user_id", "buy_rub", "buy_price", mode="before")(reject_bool)


class SellRequest(BaseModel):
    """Request model for recording a sell"""
    qty: Optional[float] = None
    price: Optional[float] = None
    rub: Optional[float] = None
    note: Optional[str] = None

    numbers_not_bool = field_validator("qty", "price", "rub", mode="before")(reject_bool)


class CircleResponse(BaseModel):
    """Full circle row"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    currency: str
    buy_rub: float
    buy_price: float
    buy_qty: float
    remaining_qty: float
    sell_qty: float
    sell_rub: float
    closed: bool
    created_at: datetime


class SellResponse(BaseModel):
    """Single sell row"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    circle_id: int
    qty: float
    price: float
    rub: float
    note: str
    created_at: datetime


class SellResultResponse(BaseModel):
    message: str
    closed: bool


class MessageResponse(BaseModel):
    message: str


# ==================== Endpoints ====================

@router.get("/circles/{user_id}", response_model=List[CircleResponse])
async def list_user_circles(
    user_id: int,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """
    Get all circles of a user (newest first)

    Unknown users get an empty list.
    """
    circles = await ledger.list_circles(user_id)
    return [CircleResponse.model_validate(circle) for circle in circles]


@router.post("/circle", response_model=CircleResponse)
async def create_circle(
    request: CreateCircleRequest,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """
    Open a new circle

    buy_qty = buy_rub / buy_price; the whole quantity starts as remaining.

    Raises:
        400: missing field, non-positive amount or unknown user
    """
    circle = await ledger.create_circle(
        user_id=request.user_id,
        currency=request.currency,
        buy_rub=request.buy_rub,
        buy_price=request.buy_price,
    )
    return CircleResponse.model_validate(circle)


@router.get("/circle/{circle_id}", response_model=CircleResponse)
async def get_circle(
    circle_id: int,
    ledger: LedgerService = Depends(get_ledger_service),
):
    circle = await ledger.get_circle(circle_id)
    return CircleResponse.model_validate(circle)


@router.get("/circle/{circle_id}/sells", response_model=List[SellResponse])
async def list_circle_sells(
    circle_id: int,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """Sells of a circle, oldest first"""
    sells = await ledger.list_sells(circle_id)
    return [SellResponse.model_validate(sell) for sell in sells]


@router.post("/circle/{circle_id}/sell", response_model=SellResultResponse)
async def add_sell(
    circle_id: int,
    request: SellRequest,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """
    Record a sell against a circle

    Returns:
        {"message": "Sell added", "closed": false}

    Raises:
        400: circle closed, sell data missing or qty exceeds remaining qty
        404: circle not found
    """
    circle = await ledger.record_sell(
        circle_id,
        qty=request.qty,
        price=request.price,
        rub=request.rub,
        note=request.note,
    )
    if circle.closed:
        logger.info(f"Circle {circle_id} closed, total proceeds {circle.sell_rub}")
    return SellResultResponse(message="Sell added", closed=circle.closed)


@router.delete("/circle/{circle_id}", response_model=MessageResponse)
async def delete_circle(
    circle_id: int,
    ledger: LedgerService = Depends(get_ledger_service),
):
    """
    Delete a circle with all its sells

    Unknown IDs are accepted silently.
    """
    await ledger.delete_circle(circle_id)
    return MessageResponse(message="Circle deleted")
