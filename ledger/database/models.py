"""
Database models for Circle Ledger

SQLAlchemy 2.0 models with full type hints
"""

from datetime import datetime, UTC
from typing import List

from sqlalchemy import (
    String,
    BigInteger,
    Text,
    Integer,
    Float,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models"""

    pass


class User(Base):
    """
    User model

    Identified externally by Telegram ID only. Created lazily on the first
    get-or-create call, never updated or deleted.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    telegram_id: Mapped[int] = mapped_column(
        BigInteger, unique=True, index=True, nullable=False, comment="Telegram user ID"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        comment="User registration timestamp",
    )

    circles: Mapped[List["Circle"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, telegram_id={self.telegram_id})>"


class Circle(Base):
    """
    Circle model - one buy-then-sell trading position

    Invariants:
    - remaining_qty = buy_qty - sell_qty
    - closed is True iff remaining_qty <= 0
    """

    __tablename__ = "circles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        comment="Owner (foreign key)",
    )
    currency: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="Currency code (e.g., 'USD', 'USDT')"
    )
    buy_rub: Mapped[float] = mapped_column(
        Float, nullable=False, comment="Amount spent in RUB"
    )
    buy_price: Mapped[float] = mapped_column(
        Float, nullable=False, comment="Unit price at purchase"
    )
    buy_qty: Mapped[float] = mapped_column(
        Float, nullable=False, comment="Purchased quantity (buy_rub / buy_price)"
    )
    remaining_qty: Mapped[float] = mapped_column(
        Float, nullable=False, comment="Unsold quantity"
    )
    sell_qty: Mapped[float] = mapped_column(
        Float, default=0.0, nullable=False, comment="Cumulative sold quantity"
    )
    sell_rub: Mapped[float] = mapped_column(
        Float, default=0.0, nullable=False, comment="Cumulative sell proceeds in RUB"
    )
    closed: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, comment="Position fully sold"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        comment="Circle creation timestamp",
    )

    user: Mapped["User"] = relationship(back_populates="circles")
    sells: Mapped[List["Sell"]] = relationship(
        back_populates="circle",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Sell.created_at",
    )

    __table_args__ = (
        Index("ix_circles_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Circle(id={self.id}, user_id={self.user_id}, currency={self.currency}, "
            f"remaining_qty={self.remaining_qty}, closed={self.closed})>"
        )


class Sell(Base):
    """
    Sell model - one partial or full liquidation of a circle

    Immutable once created; removed only together with its circle.
    """

    __tablename__ = "sells"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    circle_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("circles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Circle (foreign key)",
    )
    qty: Mapped[float] = mapped_column(Float, nullable=False, comment="Sold quantity")
    price: Mapped[float] = mapped_column(Float, nullable=False, comment="Unit sell price")
    rub: Mapped[float] = mapped_column(Float, nullable=False, comment="Proceeds in RUB")
    note: Mapped[str] = mapped_column(
        Text, default="", nullable=False, comment="Free-text note"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        comment="Sell timestamp",
    )

    circle: Mapped["Circle"] = relationship(back_populates="sells")

    def __repr__(self) -> str:
        return f"<Sell(id={self.id}, circle_id={self.circle_id}, qty={self.qty}, rub={self.rub})>"
