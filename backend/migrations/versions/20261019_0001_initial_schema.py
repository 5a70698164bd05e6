from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=120), nullable=False),
        sa.Column("longrich_code", sa.String(length=32), nullable=False),
        sa.Column("office", sa.String(length=32), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="user"),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("current_level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("terms_accepted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("terms_accepted_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("role IN ('user','admin')", name="ck_users_role"),
        sa.CheckConstraint("current_level >= 1", name="ck_users_level_positive"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "challenges",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("submission_start", sa.Time(), nullable=False),
        sa.Column("submission_end", sa.Time(), nullable=False),
        sa.Column("submission_days", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("min_points", sa.Integer(), nullable=False, server_default="100"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="draft"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("status IN ('draft','active','completed')", name="ck_challenges_status"),
        sa.CheckConstraint("end_date >= start_date", name="ck_challenges_dates"),
        sa.CheckConstraint("min_points >= 0", name="ck_challenges_min_points"),
    )
    op.create_index("ix_challenges_level", "challenges", ["level"])
    op.create_index(
        "uq_challenges_active_level", "challenges", ["level"], unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "challenge_participants",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("challenge_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False),
        sa.Column("current_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("completed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("status IN ('active','completed','failed')", name="ck_participants_status"),
        sa.CheckConstraint("current_points >= 0", name="ck_participants_points"),
    )
    op.create_index("ix_challenge_participants_user_id", "challenge_participants", ["user_id"])
    op.create_index("ix_challenge_participants_challenge_id", "challenge_participants", ["challenge_id"])
    op.create_unique_constraint("uq_participant_user_challenge", "challenge_participants", ["user_id", "challenge_id"])

    op.create_table(
        "rewards",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("challenge_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("min_points", sa.Integer(), nullable=False, server_default="100"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("type IN ('product','badge','bonus')", name="ck_rewards_type"),
    )
    op.create_index("ix_rewards_challenge_id", "rewards", ["challenge_id"])

    op.create_table(
        "matrix_submissions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("challenge_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("challenges.id", ondelete="SET NULL"), nullable=True),
        sa.Column("mxf", sa.Integer(), nullable=False),
        sa.Column("mxm", sa.Integer(), nullable=False),
        sa.Column("mx", sa.Integer(), nullable=False),
        sa.Column("mx_global", sa.Integer(), nullable=False),
        sa.Column("screenshot_url", sa.Text(), nullable=False),
        sa.Column("submission_date", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("reviewed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("status IN ('pending','validated','rejected')", name="ck_submissions_status"),
        sa.CheckConstraint("mxf >= 0 AND mxm >= 0 AND mx >= 0", name="ck_submissions_non_negative"),
        sa.CheckConstraint("mx_global = mxf + mxm + mx", name="ck_submissions_mx_global"),
    )
    op.create_index("ix_matrix_submissions_user_id", "matrix_submissions", ["user_id"])
    op.create_index("ix_matrix_submissions_challenge_id", "matrix_submissions", ["challenge_id"])
    op.create_index("ix_matrix_submissions_status_date", "matrix_submissions", ["status", "submission_date"])

def downgrade() -> None:
    op.drop_index("ix_matrix_submissions_status_date", table_name="matrix_submissions")
    op.drop_index("ix_matrix_submissions_challenge_id", table_name="matrix_submissions")
    op.drop_index("ix_matrix_submissions_user_id", table_name="matrix_submissions")
    op.drop_table("matrix_submissions")
    op.drop_index("ix_rewards_challenge_id", table_name="rewards")
    op.drop_table("rewards")
    op.drop_constraint("uq_participant_user_challenge", "challenge_participants", type_="unique")
    op.drop_index("ix_challenge_participants_challenge_id", table_name="challenge_participants")
    op.drop_index("ix_challenge_participants_user_id", table_name="challenge_participants")
    op.drop_table("challenge_participants")
    op.drop_index("uq_challenges_active_level", table_name="challenges")
    op.drop_index("ix_challenges_level", table_name="challenges")
    op.drop_table("challenges")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
