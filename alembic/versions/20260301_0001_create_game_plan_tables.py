"""create game plan dimension, fact and import run tables

Revision ID: 20260301_0001
Revises:
Create Date: 2026-03-01 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20260301_0001"
down_revision = None
branch_labels = None
depends_on = None

NAMED_DIMENSION_TABLES: tuple[str, ...] = (
    "regions",
    "business_units",
    "ranges",
    "media_types",
    "pm_types",
    "campaign_archetypes",
    "financial_cycles",
)

MONTH_BUDGET_COLUMNS: tuple[str, ...] = (
    "jan_budget",
    "feb_budget",
    "mar_budget",
    "apr_budget",
    "may_budget",
    "jun_budget",
    "jul_budget",
    "aug_budget",
    "sep_budget",
    "oct_budget",
    "nov_budget",
    "dec_budget",
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _named_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
    ]


def upgrade() -> None:
    for table_name in NAMED_DIMENSION_TABLES:
        op.create_table(
            table_name,
            *_named_columns(),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("name"),
        )

    op.create_table(
        "sub_regions",
        *_named_columns(),
        sa.Column("region_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["region_id"], ["regions.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "countries",
        *_named_columns(),
        sa.Column("region_id", sa.Integer(), nullable=False),
        sa.Column("sub_region_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["region_id"], ["regions.id"]),
        sa.ForeignKeyConstraint(["sub_region_id"], ["sub_regions.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_countries_region_id", "countries", ["region_id"], unique=False)

    op.create_table(
        "categories",
        *_named_columns(),
        sa.Column("business_unit_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["business_unit_id"], ["business_units.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "category_ranges",
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("range_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["range_id"], ["ranges.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("category_id", "range_id"),
    )

    op.create_table(
        "campaigns",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("range_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False, comment="active, pending_review, archived"),
        sa.Column("created_by", sa.String(length=100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["range_id"], ["ranges.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_campaigns_name", "campaigns", ["name"], unique=False)
    op.create_index("ix_campaigns_range_id", "campaigns", ["range_id"], unique=False)
    op.create_index("ix_campaigns_status", "campaigns", ["status"], unique=False)

    op.create_table(
        "media_sub_types",
        *_named_columns(),
        sa.Column("media_type_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["media_type_id"], ["media_types.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_media_sub_types_media_type_id", "media_sub_types", ["media_type_id"], unique=False)

    op.create_table(
        "game_plans",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("campaign_id", sa.Integer(), nullable=False),
        sa.Column("media_sub_type_id", sa.Integer(), nullable=False),
        sa.Column("pm_type_id", sa.Integer(), nullable=True),
        sa.Column("campaign_archetype_id", sa.Integer(), nullable=True),
        sa.Column("burst", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("total_budget", sa.Float(), nullable=False),
        *[sa.Column(column, sa.Float(), nullable=True) for column in MONTH_BUDGET_COLUMNS],
        sa.Column("total_trps", sa.Float(), nullable=True),
        sa.Column("total_r1_plus", sa.Float(), nullable=True, comment="Reach 1+ as a fraction in [0, 1]"),
        sa.Column("total_r3_plus", sa.Float(), nullable=True, comment="Reach 3+ as a fraction in [0, 1]"),
        sa.Column("ns_vs_wm", sa.String(length=100), nullable=True),
        sa.Column("total_weeks", sa.Float(), nullable=True),
        sa.Column("total_woa", sa.Float(), nullable=True),
        sa.Column("total_woff", sa.Float(), nullable=True),
        sa.Column("weeks_live", sa.Float(), nullable=True),
        sa.Column("playbook_id", sa.String(length=100), nullable=True),
        sa.Column("country_id", sa.Integer(), nullable=False),
        sa.Column("financial_cycle_id", sa.Integer(), nullable=False),
        sa.Column("region_id", sa.Integer(), nullable=True),
        sa.Column("sub_region_id", sa.Integer(), nullable=True),
        sa.Column("business_unit_id", sa.Integer(), nullable=True),
        sa.Column("range_id", sa.Integer(), nullable=True),
        sa.Column("category_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"]),
        sa.ForeignKeyConstraint(["media_sub_type_id"], ["media_sub_types.id"]),
        sa.ForeignKeyConstraint(["pm_type_id"], ["pm_types.id"]),
        sa.ForeignKeyConstraint(["campaign_archetype_id"], ["campaign_archetypes.id"]),
        sa.ForeignKeyConstraint(["country_id"], ["countries.id"]),
        sa.ForeignKeyConstraint(["financial_cycle_id"], ["financial_cycles.id"]),
        sa.ForeignKeyConstraint(["region_id"], ["regions.id"]),
        sa.ForeignKeyConstraint(["sub_region_id"], ["sub_regions.id"]),
        sa.ForeignKeyConstraint(["business_unit_id"], ["business_units.id"]),
        sa.ForeignKeyConstraint(["range_id"], ["ranges.id"]),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_game_plans_partition", "game_plans", ["country_id", "financial_cycle_id"], unique=False)
    op.create_index(
        "ix_game_plans_natural_key",
        "game_plans",
        ["campaign_id", "media_sub_type_id", "start_date", "end_date", "country_id", "financial_cycle_id"],
        unique=False,
    )
    op.create_index("ix_game_plans_business_unit_id", "game_plans", ["business_unit_id"], unique=False)

    op.create_table(
        "import_runs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, comment="idle, running, imported, error"),
        sa.Column("country_id", sa.Integer(), nullable=False),
        sa.Column("financial_cycle_id", sa.Integer(), nullable=False),
        sa.Column("source", sa.String(length=255), nullable=True),
        sa.Column("record_count", sa.Integer(), nullable=False),
        sa.Column("progress_current", sa.Integer(), nullable=False),
        sa.Column("progress_total", sa.Integer(), nullable=False),
        sa.Column("progress_percentage", sa.Integer(), nullable=False),
        sa.Column("progress_stage", sa.String(length=255), nullable=True),
        sa.Column(
            "result_payload",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            comment="Final result ledger, written once at completion or failure",
        ),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["country_id"], ["countries.id"]),
        sa.ForeignKeyConstraint(["financial_cycle_id"], ["financial_cycles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_import_runs_status", "import_runs", ["status"], unique=False)
    op.create_index("ix_import_runs_created_at", "import_runs", ["created_at"], unique=False)
    op.create_index(
        "ix_import_runs_partition_status",
        "import_runs",
        ["country_id", "financial_cycle_id", "status"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_import_runs_partition_status", table_name="import_runs")
    op.drop_index("ix_import_runs_created_at", table_name="import_runs")
    op.drop_index("ix_import_runs_status", table_name="import_runs")
    op.drop_table("import_runs")

    op.drop_index("ix_game_plans_business_unit_id", table_name="game_plans")
    op.drop_index("ix_game_plans_natural_key", table_name="game_plans")
    op.drop_index("ix_game_plans_partition", table_name="game_plans")
    op.drop_table("game_plans")

    op.drop_index("ix_media_sub_types_media_type_id", table_name="media_sub_types")
    op.drop_table("media_sub_types")

    op.drop_index("ix_campaigns_status", table_name="campaigns")
    op.drop_index("ix_campaigns_range_id", table_name="campaigns")
    op.drop_index("ix_campaigns_name", table_name="campaigns")
    op.drop_table("campaigns")

    op.drop_table("category_ranges")
    op.drop_table("categories")

    op.drop_index("ix_countries_region_id", table_name="countries")
    op.drop_table("countries")
    op.drop_table("sub_regions")

    for table_name in reversed(NAMED_DIMENSION_TABLES):
        op.drop_table(table_name)
