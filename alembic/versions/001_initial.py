"""Initial schema: users, runs, audit trail, XP ledger, events.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all tables."""
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("wallet_address", sa.String(42), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("login_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("exp", sa.BigInteger(), server_default="0", nullable=False),
        sa.Column("level", sa.Integer(), server_default="1", nullable=False),
        sa.Column("tier", sa.Integer(), server_default="1", nullable=False),
        sa.Column("run_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("verified_run_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_distance_meters", sa.Float(), server_default="0", nullable=False),
        sa.Column("longest_streak_days", sa.Integer(), server_default="0", nullable=False),
        sa.Column("attestation_sequence", sa.BigInteger(), server_default="0", nullable=False),
        sa.Column("last_attestation_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_sync_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("wallet_address", name="users_wallet_address_key"),
    )
    op.execute(
        "ALTER TABLE users ADD CONSTRAINT ck_users_wallet_lowercase "
        "CHECK (wallet_address = lower(wallet_address))"
    )
    op.execute("ALTER TABLE users ADD CONSTRAINT ck_users_exp_nonneg CHECK (exp >= 0)")
    op.execute("ALTER TABLE users ADD CONSTRAINT ck_users_tier_range CHECK (tier BETWEEN 1 AND 5)")

    # --- runs ---
    op.create_table(
        "runs",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("distance_meters", sa.Float(), nullable=False),
        sa.Column("duration_seconds", sa.Float(), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("device_hash", sa.String(256), nullable=True),
        sa.Column("avg_pace_seconds", sa.Integer(), nullable=True),
        sa.Column("reason_code", sa.String(64), nullable=True),
        sa.Column("validator_version", sa.String(16), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("validated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_runs_user_id_submitted_at", "runs", ["user_id", "submitted_at"])
    op.create_index(
        "ix_runs_user_id_verified_end_time",
        "runs",
        ["user_id", "end_time"],
        postgresql_where=sa.text("status = 'VERIFIED'"),
    )
    op.execute(
        "ALTER TABLE runs ADD CONSTRAINT ck_runs_status "
        "CHECK (status IN ('SUBMITTED', 'VALIDATING', 'VERIFIED', 'REJECTED'))"
    )

    # --- run_status_history ---
    op.create_table(
        "run_status_history",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("run_id", sa.BigInteger(), sa.ForeignKey("runs.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("reason_code", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_run_status_history_run_id", "run_status_history", ["run_id"])

    # --- xp_ledger ---
    op.create_table(
        "xp_ledger",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("source", sa.String(32), nullable=False),
        sa.Column("source_id", sa.String(128), nullable=True),
        sa.Column("idempotency_key", sa.String(256), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("idempotency_key", name="xp_ledger_idempotency_key_key"),
    )
    op.create_index("ix_xp_ledger_user_id", "xp_ledger", ["user_id"])

    # --- events ---
    op.create_table(
        "events",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.String(66), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("min_tier", sa.Integer(), server_default="1", nullable=False),
        sa.Column("min_total_distance_meters", sa.Float(), server_default="0", nullable=False),
        sa.Column("target_distance_meters", sa.Float(), nullable=False),
        sa.Column("exp_reward", sa.Integer(), server_default="0", nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("NOW()"), nullable=False),
        sa.UniqueConstraint("event_id", name="events_event_id_key"),
    )
    op.execute("ALTER TABLE events ADD CONSTRAINT ck_events_window CHECK (end_time > start_time)")

    # --- event_participations ---
    op.create_table(
        "event_participations",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("event_id", sa.BigInteger(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "completed_run_id", sa.BigInteger(), sa.ForeignKey("runs.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("user_id", "event_id", name="event_participations_user_id_event_id_key"),
    )
    op.execute(
        "ALTER TABLE event_participations ADD CONSTRAINT ck_event_participations_status "
        "CHECK (status IN ('JOINED', 'IN_PROGRESS', 'COMPLETED'))"
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("event_participations")
    op.drop_table("events")
    op.drop_table("xp_ledger")
    op.drop_table("run_status_history")
    op.drop_table("runs")
    op.drop_table("users")
