"""create_ledger_tables

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('telegram_id', sa.BigInteger(), nullable=False, comment='Telegram user ID'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='User registration timestamp'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_telegram_id'), 'users', ['telegram_id'], unique=True)

    op.create_table(
        'circles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False, comment='Owner (foreign key)'),
        sa.Column('currency', sa.String(length=20), nullable=False, comment="Currency code (e.g., 'USD', 'USDT')"),
        sa.Column('buy_rub', sa.Float(), nullable=False, comment='Amount spent in RUB'),
        sa.Column('buy_price', sa.Float(), nullable=False, comment='Unit price at purchase'),
        sa.Column('buy_qty', sa.Float(), nullable=False, comment='Purchased quantity (buy_rub / buy_price)'),
        sa.Column('remaining_qty', sa.Float(), nullable=False, comment='Unsold quantity'),
        sa.Column('sell_qty', sa.Float(), nullable=False, comment='Cumulative sold quantity'),
        sa.Column('sell_rub', sa.Float(), nullable=False, comment='Cumulative sell proceeds in RUB'),
        sa.Column('closed', sa.Boolean(), nullable=False, comment='Position fully sold'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='Circle creation timestamp'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_circles_user_created', 'circles', ['user_id', 'created_at'], unique=False)

    op.create_table(
        'sells',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('circle_id', sa.Integer(), nullable=False, comment='Circle (foreign key)'),
        sa.Column('qty', sa.Float(), nullable=False, comment='Sold quantity'),
        sa.Column('price', sa.Float(), nullable=False, comment='Unit sell price'),
        sa.Column('rub', sa.Float(), nullable=False, comment='Proceeds in RUB'),
        sa.Column('note', sa.Text(), nullable=False, server_default='', comment='Free-text note'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='Sell timestamp'),
        sa.ForeignKeyConstraint(['circle_id'], ['circles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_sells_circle_id'), 'sells', ['circle_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_sells_circle_id'), table_name='sells')
    op.drop_table('sells')
    op.drop_index('ix_circles_user_created', table_name='circles')
    op.drop_table('circles')
    op.drop_index(op.f('ix_users_telegram_id'), table_name='users')
    op.drop_table('users')
