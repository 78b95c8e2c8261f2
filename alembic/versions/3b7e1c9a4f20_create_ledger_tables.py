"""Create ledger tables

Revision ID: 3b7e1c9a4f20
Revises:
Create Date: 2026-10-18 10:12:41.208115

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b7e1c9a4f20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('agents',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('referral_code', sa.String(), nullable=False),
        sa.Column('commission_rate_override', sa.Numeric(precision=6, scale=4), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_agents_referral_code', 'agents', ['referral_code'], unique=True)

    op.create_table('settings',
        sa.Column('key', sa.String(), nullable=False),
        sa.Column('value', sa.String(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('key')
    )

    op.create_table('orders',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('external_id', sa.String(), nullable=False),
        sa.Column('total_amount_cents', sa.Integer(), nullable=False),
        sa.Column('customer_ref', sa.String(), nullable=True),
        sa.Column('agent_id', sa.UUID(), nullable=True),
        sa.Column('status', sa.Enum('PAID', 'REFUNDED', name='orderstatus'), nullable=False),
        sa.Column('anomaly', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('refunded_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['agent_id'], ['agents.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_orders_external_id', 'orders', ['external_id'], unique=True)
    op.create_index('ix_orders_agent_id', 'orders', ['agent_id'], unique=False)

    op.create_table('commissions',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('order_id', sa.UUID(), nullable=False),
        sa.Column('agent_id', sa.UUID(), nullable=False),
        sa.Column('rate', sa.Numeric(precision=6, scale=4), nullable=False),
        sa.Column('base_amount_cents', sa.Integer(), nullable=False),
        sa.Column('commission_amount_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.Enum('PENDING_CLEARANCE', 'CLEARED', 'REVERSED', name='commissionstatus'), nullable=False),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('cleared_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reversed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['agent_id'], ['agents.id']),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id')
    )
    op.create_index('ix_commissions_agent_id', 'commissions', ['agent_id'], unique=False)
    op.create_index('ix_commissions_status', 'commissions', ['status'], unique=False)

    op.create_table('payouts',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('agent_id', sa.UUID(), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('status', sa.Enum('REQUESTED', 'APPROVED', 'PAID', 'REJECTED', name='payoutstatus'), nullable=False),
        sa.Column('bank_account_iban', sa.String(), nullable=False),
        sa.Column('bank_account_name', sa.String(), nullable=False),
        sa.Column('note', sa.String(), nullable=True),
        sa.Column('requested_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('released_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['agent_id'], ['agents.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_payouts_agent_id', 'payouts', ['agent_id'], unique=False)

    op.create_table('payout_commissions',
        sa.Column('payout_id', sa.UUID(), nullable=False),
        sa.Column('commission_id', sa.UUID(), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('released_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['commission_id'], ['commissions.id']),
        sa.ForeignKeyConstraint(['payout_id'], ['payouts.id']),
        sa.PrimaryKeyConstraint('payout_id', 'commission_id')
    )
    op.create_index(
        'uq_payout_commissions_active_claim', 'payout_commissions', ['commission_id'], unique=True,
        postgresql_where=sa.text('released_at IS NULL'),
        sqlite_where=sa.text('released_at IS NULL'),
    )

    op.create_table('referral_visits',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('agent_id', sa.UUID(), nullable=False),
        sa.Column('referral_code', sa.String(), nullable=False),
        sa.Column('visitor_ip', sa.String(), nullable=True),
        sa.Column('user_agent', sa.String(), nullable=True),
        sa.Column('page_url', sa.String(), nullable=True),
        sa.Column('visited_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['agent_id'], ['agents.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_referral_visits_agent_id', 'referral_visits', ['agent_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_referral_visits_agent_id', table_name='referral_visits')
    op.drop_table('referral_visits')
    op.drop_index('uq_payout_commissions_active_claim', table_name='payout_commissions')
    op.drop_table('payout_commissions')
    op.drop_index('ix_payouts_agent_id', table_name='payouts')
    op.drop_table('payouts')
    op.drop_index('ix_commissions_status', table_name='commissions')
    op.drop_index('ix_commissions_agent_id', table_name='commissions')
    op.drop_table('commissions')
    op.drop_index('ix_orders_agent_id', table_name='orders')
    op.drop_index('ix_orders_external_id', table_name='orders')
    op.drop_table('orders')
    op.drop_table('settings')
    op.drop_index('ix_agents_referral_code', table_name='agents')
    op.drop_table('agents')
    sa.Enum(name='payoutstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='commissionstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='orderstatus').drop(op.get_bind(), checkfirst=True)
