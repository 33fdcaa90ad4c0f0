"""m1_users_and_streak_state

Revision ID: 3a1f0c9d2b7e
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "3a1f0c9d2b7e"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(128), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("display_name", sa.Text(), nullable=True),
        sa.Column("role", sa.String(16), nullable=False, server_default=sa.text("'user'")),
        sa.Column("hobbies", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("is_new_user", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_password_changed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_inactive", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("inactive_flagged_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("role IN ('admin','user')", name="ck_users_role"),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("idx_users_last_login", "users", ["last_login_at"])
    op.create_index("idx_users_created_at", "users", ["created_at"])

    op.create_table(
        "streak_state",
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("current_streak", sa.Integer(), nullable=False),
        sa.Column("best_streak", sa.Integer(), nullable=False),
        sa.Column("last_check_in_date", sa.Date(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("current_streak >= 0", name="ck_streak_state_current_streak_non_negative"),
        sa.CheckConstraint("best_streak >= current_streak", name="ck_streak_state_best_streak_covers_current"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_streak_state_user_id_users",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("user_id", name="pk_streak_state"),
    )
    op.create_index("idx_streak_last_check_in", "streak_state", ["last_check_in_date"])


def downgrade() -> None:
    op.drop_index("idx_streak_last_check_in", table_name="streak_state")
    op.drop_table("streak_state")
    op.drop_index("idx_users_created_at", table_name="users")
    op.drop_index("idx_users_last_login", table_name="users")
    op.drop_table("users")
