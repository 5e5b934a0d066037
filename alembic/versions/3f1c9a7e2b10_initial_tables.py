"""initial_tables

Revision ID: 3f1c9a7e2b10
Revises:
Create Date: 2026-09-28 19:42:05.118230

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c9a7e2b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create meals, water_records, weight_records and user_settings."""
    op.create_table(
        "meals",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(16), nullable=False),
        sa.Column("portion_weight", sa.Integer(), nullable=True),
        sa.Column("calories", sa.Integer(), nullable=False),
        sa.Column("protein", sa.Float(), nullable=False),
        sa.Column("fat", sa.Float(), nullable=False),
        sa.Column("carbs", sa.Float(), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("meal_time", sa.String(32), nullable=False),
        sa.Column("created_at", sa.String(32), nullable=False),
        sa.Column("updated_at", sa.String(32), nullable=False),
    )
    op.create_index("idx_meals_meal_time", "meals", ["meal_time"])
    op.create_index("idx_meals_category", "meals", ["category"])

    op.create_table(
        "water_records",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("amount_ml", sa.Integer(), nullable=False),
        sa.Column("record_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.String(32), nullable=False),
    )
    op.create_index("idx_water_records_date", "water_records", ["record_date"])

    op.create_table(
        "weight_records",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("weight_kg", sa.Float(), nullable=False),
        sa.Column("record_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.String(32), nullable=False),
    )
    op.create_index("idx_weight_records_date", "weight_records", ["record_date"])

    op.create_table(
        "user_settings",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("daily_calorie_goal", sa.Integer(), nullable=False),
        sa.Column("daily_water_goal_ml", sa.Integer(), nullable=False),
        sa.Column("target_weight_kg", sa.Float(), nullable=True),
        sa.Column("initial_weight_kg", sa.Float(), nullable=True),
        sa.Column("notifications_enabled", sa.Boolean(), nullable=False),
        sa.Column("dark_mode", sa.Boolean(), nullable=False),
        sa.Column("language", sa.String(8), nullable=False),
        sa.Column("created_at", sa.String(32), nullable=False),
        sa.Column("updated_at", sa.String(32), nullable=False),
    )


def downgrade() -> None:
    """Drop all record tables."""
    op.drop_table("user_settings")
    op.drop_index("idx_weight_records_date", table_name="weight_records")
    op.drop_table("weight_records")
    op.drop_index("idx_water_records_date", table_name="water_records")
    op.drop_table("water_records")
    op.drop_index("idx_meals_category", table_name="meals")
    op.drop_index("idx_meals_meal_time", table_name="meals")
    op.drop_table("meals")
