"""Initial time tracking schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 00:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("username", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("position", sa.String(length=255), nullable=True),
        sa.Column("work_hours_per_day", sa.Integer(), nullable=False, server_default=sa.text("8")),
        sa.Column("break_minutes", sa.Integer(), nullable=False, server_default=sa.text("60")),
        sa.Column("auto_break", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("work_days", sa.String(length=32), nullable=False, server_default=sa.text("'1,2,3,4,5'")),
        sa.Column("best_streak", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    op.create_table(
        "time_entries",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("hourly_rate", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("mood_rating", sa.Integer(), nullable=True),
        sa.Column("energy_level", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("hourly_rate >= 0", name="ck_time_entries_hourly_rate_non_negative"),
        sa.CheckConstraint(
            "mood_rating IS NULL OR (mood_rating >= 1 AND mood_rating <= 5)",
            name="ck_time_entries_mood_rating_range",
        ),
        sa.CheckConstraint(
            "energy_level IS NULL OR (energy_level >= 1 AND energy_level <= 5)",
            name="ck_time_entries_energy_level_range",
        ),
    )
    op.create_index("ix_time_entries_user_id", "time_entries", ["user_id"])
    op.create_index("ix_time_entries_date", "time_entries", ["date"])
    op.create_index("ix_time_entries_user_id_date", "time_entries", ["user_id", "date"])

    op.create_table(
        "monthly_reports",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("work_days", sa.Integer(), nullable=False),
        sa.Column("worked_minutes", sa.Integer(), nullable=False),
        sa.Column("target_minutes", sa.Integer(), nullable=False),
        sa.Column("overtime_minutes", sa.Integer(), nullable=False),
        sa.Column("vacation_days", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("carried_from_minutes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("carried_to_minutes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "year", "month", name="uq_monthly_reports_user_year_month"),
    )
    op.create_index("ix_monthly_reports_user_id", "monthly_reports", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_monthly_reports_user_id", table_name="monthly_reports")
    op.drop_table("monthly_reports")

    op.drop_index("ix_time_entries_user_id_date", table_name="time_entries")
    op.drop_index("ix_time_entries_date", table_name="time_entries")
    op.drop_index("ix_time_entries_user_id", table_name="time_entries")
    op.drop_table("time_entries")

    op.drop_table("users")
