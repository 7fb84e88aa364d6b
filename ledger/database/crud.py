"""
CRUD operations for Circle Ledger

Async database operations using SQLAlchemy 2.0. These functions only flush;
the caller owns the transaction and decides when to commit.
"""

from typing import List, Optional

from loguru import logger
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.database.models import User, Circle, Sell


# ===========================
# USER OPERATIONS
# ===========================


async def get_user_by_telegram_id(
    session: AsyncSession, telegram_id: int
) -> Optional[User]:
    """
    Get user by Telegram ID

    Args:
        session: Database session
        telegram_id: Telegram user ID

    Returns:
        User model or None
    """
    stmt = select(User).where(User.telegram_id == telegram_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[User]:
    """Get user by internal ID"""
    return await session.get(User, user_id)


async def create_user(session: AsyncSession, telegram_id: int) -> User:
    """
    Create new user

    Raises:
        IntegrityError: if the Telegram ID is already taken
    """
    user = User(telegram_id=telegram_id)
    session.add(user)
    await session.flush()

    logger.info(f"User created: telegram_id={telegram_id}, id={user.id}")
    return user


async def get_or_create_user(
    session: AsyncSession, telegram_id: int
) -> tuple[User, bool]:
    """
    Get existing user or create new one

    Args:
        session: Database session
        telegram_id: Telegram user ID

    Returns:
        Tuple of (User model, is_created)
    """
    user = await get_user_by_telegram_id(session, telegram_id)
    if user:
        return user, False

    user = await create_user(session, telegram_id)
    return user, True


# ===========================
# CIRCLE OPERATIONS
# ===========================


async def get_user_circles(session: AsyncSession, user_id: int) -> List[Circle]:
    """
    Get all circles of a user, newest first

    Args:
        session: Database session
        user_id: Internal user ID

    Returns:
        List of Circle models (empty for unknown users)
    """
    stmt = (
        select(Circle)
        .where(Circle.user_id == user_id)
        .order_by(Circle.created_at.desc(), Circle.id.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_circle(
    session: AsyncSession, circle_id: int, for_update: bool = False
) -> Optional[Circle]:
    """
    Get circle by ID

    Args:
        session: Database session
        circle_id: Circle ID
        for_update: Lock the row until the surrounding transaction ends

    Returns:
        Circle model or None
    """
    stmt = select(Circle).where(Circle.id == circle_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_circle(
    session: AsyncSession,
    user_id: int,
    currency: str,
    buy_rub: float,
    buy_price: float,
) -> Circle:
    """
    Create new circle

    buy_qty is derived from the amount spent and the unit price; the whole
    quantity starts as remaining.

    Args:
        session: Database session
        user_id: Owner ID
        currency: Currency code
        buy_rub: Amount spent in RUB (positive)
        buy_price: Unit price (positive)

    Returns:
        Created Circle model
    """
    buy_qty = buy_rub / buy_price
    circle = Circle(
        user_id=user_id,
        currency=currency,
        buy_rub=buy_rub,
        buy_price=buy_price,
        buy_qty=buy_qty,
        remaining_qty=buy_qty,
        sell_qty=0.0,
        sell_rub=0.0,
        closed=False,
    )
    session.add(circle)
    await session.flush()
    await session.refresh(circle)

    logger.info(
        f"Circle created: id={circle.id}, user={user_id}, {currency} "
        f"qty={buy_qty} @ {buy_price}"
    )
    return circle


async def apply_sell(
    session: AsyncSession,
    circle: Circle,
    qty: float,
    price: float,
    rub: float,
    note: str = "",
) -> Sell:
    """
    Record a sell and update the circle totals

    The caller has already checked that the circle is open and that qty
    does not exceed remaining_qty.

    Args:
        session: Database session
        circle: Circle loaded in the same session (ideally locked)
        qty: Sold quantity
        price: Unit sell price
        rub: Proceeds in RUB
        note: Free-text note

    Returns:
        Created Sell model
    """
    sell = Sell(circle_id=circle.id, qty=qty, price=price, rub=rub, note=note)
    session.add(sell)

    circle.remaining_qty = circle.remaining_qty - qty
    circle.sell_qty = circle.sell_qty + qty
    circle.sell_rub = float(circle.sell_rub) + float(rub)
    circle.closed = circle.remaining_qty <= 0

    await session.flush()

    logger.info(
        f"Sell recorded: circle={circle.id}, qty={qty} @ {price}, rub={rub}, "
        f"remaining={circle.remaining_qty}, closed={circle.closed}"
    )
    return sell


async def get_circle_sells(session: AsyncSession, circle_id: int) -> List[Sell]:
    """Get all sells of a circle in chronological order"""
    stmt = (
        select(Sell)
        .where(Sell.circle_id == circle_id)
        .order_by(Sell.created_at.asc(), Sell.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def delete_circle(session: AsyncSession, circle_id: int) -> bool:
    """
    Delete circle together with its sells

    Args:
        session: Database session
        circle_id: Circle ID

    Returns:
        True if a circle was removed, False if it did not exist
    """
    await session.execute(delete(Sell).where(Sell.circle_id == circle_id))
    result = await session.execute(delete(Circle).where(Circle.id == circle_id))

    removed = result.rowcount > 0
    if removed:
        logger.info(f"Circle {circle_id} deleted")
    else:
        logger.debug(f"Circle {circle_id} not found, nothing to delete")

    return removed
