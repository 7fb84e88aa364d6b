"""
Unit tests for CRUD operations
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from ledger.database.crud import (
    create_user,
    get_user_by_telegram_id,
    get_or_create_user,
    create_circle,
    get_circle,
    get_user_circles,
    apply_sell,
    get_circle_sells,
    delete_circle,
)


@pytest.mark.asyncio
async def test_create_user(db_session):
    """Test user creation"""
    user = await create_user(session=db_session, telegram_id=123456789)

    assert user.id is not None
    assert user.telegram_id == 123456789
    assert user.created_at is not None


@pytest.mark.asyncio
async def test_get_user_by_telegram_id(db_session):
    """Test getting user by Telegram ID"""
    created_user = await create_user(session=db_session, telegram_id=123456789)

    user = await get_user_by_telegram_id(db_session, 123456789)

    assert user is not None
    assert user.id == created_user.id

    # Try non-existent user
    non_existent = await get_user_by_telegram_id(db_session, 999999999)
    assert non_existent is None


@pytest.mark.asyncio
async def test_get_or_create_user(db_session):
    """Test get_or_create_user function"""
    user1, created1 = await get_or_create_user(session=db_session, telegram_id=123456789)

    assert created1 is True
    assert user1.telegram_id == 123456789

    user2, created2 = await get_or_create_user(session=db_session, telegram_id=123456789)

    assert created2 is False
    assert user2.id == user1.id


@pytest.mark.asyncio
async def test_create_circle_derives_quantity(db_session):
    """buy_qty = buy_rub / buy_price, everything still unsold"""
    user = await create_user(session=db_session, telegram_id=1)

    circle = await create_circle(
        db_session, user_id=user.id, currency="USD", buy_rub=1000, buy_price=100
    )

    assert circle.id is not None
    assert circle.buy_qty == pytest.approx(10)
    assert circle.remaining_qty == pytest.approx(10)
    assert circle.sell_qty == 0
    assert circle.sell_rub == 0
    assert circle.closed is False
    assert circle.created_at is not None


@pytest.mark.asyncio
async def test_apply_sell_updates_totals(db_session):
    """Test sell bookkeeping on the circle row"""
    user = await create_user(session=db_session, telegram_id=1)
    circle = await create_circle(
        db_session, user_id=user.id, currency="USD", buy_rub=1000, buy_price=100
    )

    sell = await apply_sell(db_session, circle, qty=6, price=110, rub=660, note="first")

    assert sell.id is not None
    assert sell.circle_id == circle.id
    assert sell.note == "first"
    assert circle.remaining_qty == pytest.approx(4)
    assert circle.sell_qty == pytest.approx(6)
    assert circle.sell_rub == pytest.approx(660)
    assert circle.closed is False

    await apply_sell(db_session, circle, qty=4, price=120, rub=480)

    assert circle.remaining_qty == pytest.approx(0)
    assert circle.closed is True

    sells = await get_circle_sells(db_session, circle.id)
    assert [s.qty for s in sells] == [6, 4]
    assert sells[1].note == ""


@pytest.mark.asyncio
async def test_get_user_circles_newest_first(db_session):
    """Test circle listing order"""
    user = await create_user(session=db_session, telegram_id=1)
    first = await create_circle(db_session, user.id, "USD", 100, 10)
    second = await create_circle(db_session, user.id, "EUR", 200, 20)

    circles = await get_user_circles(db_session, user.id)

    assert [c.id for c in circles] == [second.id, first.id]
    assert await get_user_circles(db_session, user.id + 100) == []


@pytest.mark.asyncio
async def test_delete_circle(db_session):
    """Test circle deletion with its sells"""
    user = await create_user(session=db_session, telegram_id=1)
    circle = await create_circle(db_session, user.id, "USD", 100, 10)
    await apply_sell(db_session, circle, qty=1, price=11, rub=11)

    removed = await delete_circle(db_session, circle.id)

    assert removed is True
    db_session.expunge_all()
    assert await get_circle(db_session, circle.id) is None
    assert await get_circle_sells(db_session, circle.id) == []

    # Second delete finds nothing
    assert await delete_circle(db_session, circle.id) is False


@pytest.mark.asyncio
@pytest.mark.parametrize("for_update, locked", [(True, True), (False, False)])
async def test_get_circle_row_lock_on_postgres(for_update, locked):
    """SQLite drops the lock clause, so check the statement rendered for Postgres"""
    session = AsyncMock()
    session.execute.return_value = MagicMock(scalar_one_or_none=MagicMock(return_value=None))

    assert await get_circle(session, 7, for_update=for_update) is None

    stmt = session.execute.await_args.args[0]
    sql = str(stmt.compile(dialect=postgresql.dialect()))
    assert ("FOR UPDATE" in sql) is locked
