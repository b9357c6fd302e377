"""Brokerage ledger schema baseline

Revision ID: 20261019_01
Revises: None
Create Date: 2026-10-19
"""
# pylint: disable=no-member,invalid-name,wrong-import-order

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_01"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_MONEY = sa.Numeric(20, 4)
_AMOUNT = sa.Numeric(20, 2)
_RATE = sa.Numeric(10, 6)


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "client",
        sa.Column("client_id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("client_name", sa.Text(), nullable=False),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )

    op.create_table(
        "stock",
        sa.Column("stock_id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("symbol", sa.Text(), nullable=False),
        sa.Column("exchange", sa.Text(), nullable=False),
        sa.Column("stock_name", sa.Text(), nullable=True),
        sa.Column("reference_price", _MONEY, nullable=True),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("symbol", "exchange", name="uq_stock_symbol_exchange"),
    )

    op.create_table(
        "trade",
        sa.Column("trade_id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("client_id", sa.BigInteger(), sa.ForeignKey("client.client_id", ondelete="CASCADE"), nullable=False),
        sa.Column("symbol", sa.Text(), nullable=False),
        sa.Column("exchange", sa.Text(), nullable=False),
        sa.Column("side", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", _MONEY, nullable=False),
        sa.Column("trade_timestamp_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("side in ('BUY', 'SELL')", name="ck_trade_side"),
        sa.CheckConstraint("quantity > 0", name="ck_trade_quantity_positive"),
        sa.CheckConstraint("price >= 0", name="ck_trade_price_non_negative"),
    )
    op.create_index("ix_trade_client_timestamp", "trade", ["client_id", "trade_timestamp_utc", "trade_id"])

    op.create_table(
        "quarter_config",
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("quarter_number", sa.Integer(), nullable=False),
        sa.Column("days_in_quarter", sa.Integer(), nullable=False),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("year", "quarter_number", name="pk_quarter_config"),
        sa.CheckConstraint("quarter_number between 1 and 4", name="ck_quarter_config_quarter_number"),
        sa.CheckConstraint("days_in_quarter between 1 and 92", name="ck_quarter_config_days_in_quarter"),
    )

    op.create_table(
        "brokerage_summary",
        sa.Column("brokerage_summary_id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("client_id", sa.BigInteger(), sa.ForeignKey("client.client_id", ondelete="CASCADE"), nullable=False),
        sa.Column("period_kind", sa.Text(), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("total_days_in_period", sa.Integer(), nullable=False),
        sa.Column("brokerage_rate", _RATE, nullable=False),
        sa.Column("total_brokerage", _AMOUNT, nullable=False),
        sa.Column("total_holding_value", _MONEY, nullable=False),
        sa.Column("total_turnover", _MONEY, nullable=False),
        sa.Column("total_trades", sa.Integer(), nullable=False),
        sa.Column("total_holding_days", sa.Integer(), nullable=False),
        sa.Column("total_positions", sa.Integer(), nullable=False),
        sa.Column("days_in_quarter", sa.Integer(), nullable=True),
        sa.Column("average_daily_holding", _AMOUNT, nullable=True),
        sa.Column("average_daily_unused", _AMOUNT, nullable=True),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("paid_amount", _AMOUNT, nullable=True),
        sa.Column("paid_date", sa.Date(), nullable=True),
        sa.Column("calculated_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("client_id", "period_kind", "period_start", name="uq_brokerage_summary_client_period"),
        sa.CheckConstraint("period_kind in ('day', 'month', 'quarter')", name="ck_brokerage_summary_period_kind"),
        sa.CheckConstraint("period_end > period_start", name="ck_brokerage_summary_period_bounds"),
        sa.CheckConstraint(
            "period_kind = 'quarter' OR (is_paid = false AND paid_amount IS NULL AND paid_date IS NULL)",
            name="ck_brokerage_summary_payment_quarter_only",
        ),
    )
    op.create_index("ix_brokerage_summary_period", "brokerage_summary", ["period_kind", "period_start"])

    op.create_table(
        "brokerage_calculation_detail",
        sa.Column("brokerage_calculation_detail_id", sa.BigInteger(), sa.Identity(always=False), primary_key=True),
        sa.Column("client_id", sa.BigInteger(), sa.ForeignKey("client.client_id", ondelete="CASCADE"), nullable=False),
        sa.Column("period_kind", sa.Text(), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("lot_id", sa.Text(), nullable=False),
        sa.Column("buy_trade_id", sa.BigInteger(), sa.ForeignKey("trade.trade_id"), nullable=False),
        sa.Column("sell_trade_id", sa.BigInteger(), sa.ForeignKey("trade.trade_id"), nullable=True),
        sa.Column("symbol", sa.Text(), nullable=False),
        sa.Column("exchange", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("acquired_price", _MONEY, nullable=False),
        sa.Column("disposed_price", _MONEY, nullable=True),
        sa.Column("acquired_at_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("disposed_at_utc", sa.DateTime(timezone=True), nullable=True),
        sa.Column("holding_start_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("holding_end_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("holding_days", sa.Integer(), nullable=False),
        sa.Column("total_days_in_period", sa.Integer(), nullable=False),
        sa.Column("proration_days", sa.Integer(), nullable=False),
        sa.Column("position_value", _MONEY, nullable=False),
        sa.Column("disposal_value", _MONEY, nullable=True),
        sa.Column("closed_within_period", sa.Boolean(), nullable=False),
        sa.Column("brokerage_rate", _RATE, nullable=False),
        sa.Column("fee_formula", sa.Text(), nullable=False),
        sa.Column("calculation_formula", sa.Text(), nullable=False),
        sa.Column("brokerage_amount", _AMOUNT, nullable=False),
        sa.Column("reference_price", _MONEY, nullable=True),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "fee_formula in ('held_prorated', 'disposed_turnover')",
            name="ck_brokerage_calculation_detail_fee_formula",
        ),
        sa.CheckConstraint("quantity > 0", name="ck_brokerage_calculation_detail_quantity_positive"),
    )
    op.create_index(
        "ix_brokerage_calculation_detail_client_period",
        "brokerage_calculation_detail",
        ["client_id", "period_kind", "period_start"],
    )


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index("ix_brokerage_calculation_detail_client_period", table_name="brokerage_calculation_detail")
    op.drop_table("brokerage_calculation_detail")
    op.drop_index("ix_brokerage_summary_period", table_name="brokerage_summary")
    op.drop_table("brokerage_summary")
    op.drop_table("quarter_config")
    op.drop_index("ix_trade_client_timestamp", table_name="trade")
    op.drop_table("trade")
    op.drop_table("stock")
    op.drop_table("client")
