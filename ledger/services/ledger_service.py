"""
Ledger Service - users, circles and sells

Validates input, runs every operation in a single transaction and keeps the
circle invariants:

    remaining_qty = buy_qty - sell_qty
    closed       <=> remaining_qty <= 0
"""

import math
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.core.exceptions import NotFoundError, StorageError, ValidationError
from ledger.database import crud
from ledger.database.engine import Database
from ledger.database.models import Circle, Sell

MAX_CURRENCY_LENGTH = 20

# users.id / circles.id are 32-bit INTEGER columns
MAX_ROW_ID = 2**31 - 1


def _is_positive(value: float) -> bool:
    return math.isfinite(value) and value > 0


def _is_row_id(value: int) -> bool:
    """Only ids in this range can exist; anything else never reaches the store"""
    return 0 < value <= MAX_ROW_ID


class LedgerService:
    """
    Position-tracking ledger on top of a relational store

    The service owns its ``Database``; every public method acquires one
    pooled connection and releases it before returning.
    """

    def __init__(self, database: Database):
        self.database = database

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Session with an open transaction; store failures become StorageError"""
        try:
            async with self.database.session() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            logger.exception(f"Storage failure in {operation}: {e}")
            raise StorageError() from e

    # ===========================
    # USERS
    # ===========================

    async def get_or_create_user(self, telegram_id: Optional[int]) -> int:
        """
        Return the internal ID for a Telegram user, creating it on first call

        Raises:
            ValidationError: telegram_id missing or not a positive integer
            StorageError: persistence failure
        """
        if telegram_id is None or telegram_id <= 0:
            raise ValidationError("telegram_id required")

        try:
            async with self.database.session() as session:
                async with session.begin():
                    user, created = await crud.get_or_create_user(session, telegram_id)
            return user.id
        except IntegrityError:
            # A concurrent first call won the insert; the unique constraint kept one row
            logger.warning(f"Concurrent registration for telegram_id={telegram_id}, re-reading")
        except SQLAlchemyError as e:
            logger.exception(f"Storage failure in get_or_create_user: {e}")
            raise StorageError() from e

        async with self._transaction("get_or_create_user") as session:
            user = await crud.get_user_by_telegram_id(session, telegram_id)
        if user is None:
            logger.error(f"User telegram_id={telegram_id} vanished after unique violation")
            raise StorageError()
        return user.id

    # ===========================
    # CIRCLES
    # ===========================

    async def list_circles(self, user_id: int) -> List[Circle]:
        """All circles of the user, most recent first"""
        if not _is_row_id(user_id):
            return []
        async with self._transaction("list_circles") as session:
            return await crud.get_user_circles(session, user_id)

    async def get_circle(self, circle_id: int) -> Circle:
        if not _is_row_id(circle_id):
            raise NotFoundError("Circle not found")
        async with self._transaction("get_circle") as session:
            circle = await crud.get_circle(session, circle_id)
        if circle is None:
            raise NotFoundError("Circle not found")
        return circle

    async def create_circle(
        self,
        user_id: Optional[int],
        currency: Optional[str],
        buy_rub: Optional[float],
        buy_price: Optional[float],
    ) -> Circle:
        """
        Open a new circle

        Raises:
            ValidationError: missing field, non-positive amount, bad currency
                or unknown owner
            StorageError: persistence failure
        """
        if (
            user_id is None
            or currency is None
            or not currency.strip()
            or buy_rub is None
            or buy_price is None
        ):
            raise ValidationError("Missing required fields")
        if not _is_positive(buy_rub) or not _is_positive(buy_price):
            raise ValidationError("buy_rub and buy_price must be positive")
        if len(currency) > MAX_CURRENCY_LENGTH:
            raise ValidationError(
                f"currency must be at most {MAX_CURRENCY_LENGTH} characters"
            )
        if not _is_row_id(user_id):
            raise ValidationError("Unknown user_id")

        async with self._transaction("create_circle") as session:
            if await crud.get_user_by_id(session, user_id) is None:
                raise ValidationError("Unknown user_id")
            return await crud.create_circle(
                session,
                user_id=user_id,
                currency=currency,
                buy_rub=buy_rub,
                buy_price=buy_price,
            )

    async def record_sell(
        self,
        circle_id: int,
        qty: Optional[float],
        price: Optional[float],
        rub: Optional[float],
        note: Optional[str] = None,
    ) -> Circle:
        """
        Record a sell against a circle

        The circle row stays locked from the checks until the update is
        committed, so concurrent sells cannot oversell it.

        Returns:
            The updated Circle

        Raises:
            NotFoundError: circle does not exist
            ValidationError: circle closed, sell data missing or not
                positive, qty exceeds remaining_qty
            StorageError: persistence failure
        """
        if not _is_row_id(circle_id):
            raise NotFoundError("Circle not found")
        async with self._transaction("record_sell") as session:
            circle = await crud.get_circle(session, circle_id, for_update=True)
            if circle is None:
                raise NotFoundError("Circle not found")
            if circle.closed:
                logger.warning(f"Sell rejected: circle {circle_id} is closed")
                raise ValidationError("Circle is closed")
            if qty is None or price is None or rub is None:
                raise ValidationError("Missing sell data")
            if not (_is_positive(qty) and _is_positive(price) and _is_positive(rub)):
                raise ValidationError("Sell qty, price and rub must be positive")
            if qty > circle.remaining_qty:
                logger.warning(
                    f"Sell rejected: circle {circle_id} qty {qty} > remaining {circle.remaining_qty}"
                )
                raise ValidationError("Sell qty exceeds remaining qty")

            await crud.apply_sell(session, circle, qty, price, rub, note or "")

        return circle

    async def list_sells(self, circle_id: int) -> List[Sell]:
        """Sells of a circle in the order they were recorded"""
        if not _is_row_id(circle_id):
            raise NotFoundError("Circle not found")
        async with self._transaction("list_sells") as session:
            if await crud.get_circle(session, circle_id) is None:
                raise NotFoundError("Circle not found")
            return await crud.get_circle_sells(session, circle_id)

    async def delete_circle(self, circle_id: int) -> bool:
        """
        Delete a circle and its sells atomically

        Deleting an unknown ID is not an error.

        Returns:
            True if a circle was removed
        """
        if not _is_row_id(circle_id):
            return False
        async with self._transaction("delete_circle") as session:
            return await crud.delete_circle(session, circle_id)
