# alembic/versions/001_initial_schema.py
"""Initial schema - profiles, availability windows, sessions, overlap guard

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17 00:00:00.000000

Creates the provider/requester profiles, availability windows and booked
sessions. The provider overlap guard is a GiST exclusion constraint on
PostgreSQL and a pair of triggers on SQLite.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from sessionbook.models.types import StringArrayType, UTCDateTime

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OVERLAP_CONSTRAINT = "sessions_no_overlap_per_provider"
ACTIVE_STATUSES = "'SCHEDULED', 'IN_PROGRESS'"


def _timestamps() -> list:
    return [
        sa.Column("created_at", UTCDateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", UTCDateTime(), nullable=True),
    ]


def upgrade() -> None:
    """Create SessionBook tables and the overlap guard."""
    bind = op.get_bind()
    is_postgres = bind.dialect.name == "postgresql"

    op.create_table(
        "provider_profiles",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("display_name", sa.String(120), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("verification_status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_accepting_bookings", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("min_session_duration", sa.Integer(), nullable=False, server_default="15"),
        sa.Column("max_session_duration", sa.Integer(), nullable=False, server_default="180"),
        sa.Column("serves_children", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("serves_teenagers", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("serves_adults", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("accepted_levels", StringArrayType(), nullable=False),
        sa.Column("languages", StringArrayType(), nullable=False),
        sa.Column("specialties", StringArrayType(), nullable=False),
        sa.Column("special_context_experience", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("beginner_friendly", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("free_sessions_only", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("free_trial_available", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("average_rating", sa.Numeric(3, 2), nullable=False, server_default="0"),
        sa.Column("total_reviews", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_sessions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completed_sessions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("country_code", sa.String(2), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        *_timestamps(),
    )
    op.create_index("ix_provider_profiles_user_id", "provider_profiles", ["user_id"], unique=True)
    op.create_index(
        "ix_provider_profiles_verification_status", "provider_profiles", ["verification_status"]
    )

    op.create_table(
        "requester_profiles",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("display_name", sa.String(120), nullable=True),
        sa.Column("learner_category", sa.String(20), nullable=False, server_default="ADULT"),
        sa.Column("current_level", sa.String(20), nullable=False, server_default="NONE"),
        sa.Column("preferred_languages", StringArrayType(), nullable=False),
        sa.Column("needs_special_context", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("total_sessions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completed_sessions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_hours", sa.Float(), nullable=False, server_default="0"),
        sa.Column("country_code", sa.String(2), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_requester_profiles_user_id", "requester_profiles", ["user_id"], unique=True)

    op.create_table(
        "availability_windows",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column(
            "provider_id",
            sa.String(26),
            sa.ForeignKey("provider_profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("specific_date", sa.Date(), nullable=True),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_window_day_of_week"),
        sa.CheckConstraint("start_time < end_time", name="ck_window_time_order"),
    )
    op.create_index(
        "ix_windows_provider_day", "availability_windows", ["provider_id", "day_of_week"]
    )

    op.create_table(
        "sessions",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("provider_id", sa.String(26), sa.ForeignKey("provider_profiles.id"), nullable=False),
        sa.Column(
            "requester_id", sa.String(26), sa.ForeignKey("requester_profiles.id"), nullable=False
        ),
        sa.Column("scheduled_start", UTCDateTime(), nullable=False),
        sa.Column("scheduled_end", UTCDateTime(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        sa.Column("status", sa.String(30), nullable=False, server_default="SCHEDULED"),
        sa.Column("lesson_plan", sa.Text(), nullable=True),
        sa.Column("requester_notes", sa.Text(), nullable=True),
        sa.Column("provider_notes", sa.Text(), nullable=True),
        sa.Column("topics", StringArrayType(), nullable=False),
        sa.Column("started_at", UTCDateTime(), nullable=True),
        sa.Column("completed_at", UTCDateTime(), nullable=True),
        sa.Column("cancelled_at", UTCDateTime(), nullable=True),
        sa.Column("cancelled_by", sa.String(26), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("scheduled_start < scheduled_end", name="ck_session_time_order"),
        sa.CheckConstraint("duration_minutes > 0", name="ck_session_duration_positive"),
    )
    op.create_index("ix_sessions_status", "sessions", ["status"])
    op.create_index("ix_sessions_provider_start", "sessions", ["provider_id", "scheduled_start"])
    op.create_index("ix_sessions_requester_start", "sessions", ["requester_id", "scheduled_start"])

    if is_postgres:
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            f"""
            ALTER TABLE sessions
              ADD CONSTRAINT {OVERLAP_CONSTRAINT}
              EXCLUDE USING gist (
                provider_id WITH =,
                tstzrange(scheduled_start, scheduled_end, '[)') WITH &&
              )
              WHERE (status IN ({ACTIVE_STATUSES}))
            """
        )
    elif bind.dialect.name == "sqlite":
        for event_name, self_filter in (("insert", ""), ("update", "AND id != NEW.id")):
            timing = (
                "BEFORE INSERT"
                if event_name == "insert"
                else "BEFORE UPDATE OF scheduled_start, scheduled_end, status"
            )
            op.execute(
                f"""
                CREATE TRIGGER IF NOT EXISTS sessions_no_overlap_{event_name}
                {timing} ON sessions
                WHEN NEW.status IN ({ACTIVE_STATUSES})
                BEGIN
                  SELECT RAISE(ABORT, '{OVERLAP_CONSTRAINT}')
                  WHERE EXISTS (
                    SELECT 1 FROM sessions
                    WHERE provider_id = NEW.provider_id
                      {self_filter}
                      AND status IN ({ACTIVE_STATUSES})
                      AND scheduled_start < NEW.scheduled_end
                      AND scheduled_end > NEW.scheduled_start
                  );
                END
                """
            )


def downgrade() -> None:
    """Drop SessionBook tables."""
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute(f"ALTER TABLE sessions DROP CONSTRAINT IF EXISTS {OVERLAP_CONSTRAINT}")
    elif bind.dialect.name == "sqlite":
        op.execute("DROP TRIGGER IF EXISTS sessions_no_overlap_insert")
        op.execute("DROP TRIGGER IF EXISTS sessions_no_overlap_update")

    op.drop_index("ix_sessions_requester_start", table_name="sessions")
    op.drop_index("ix_sessions_provider_start", table_name="sessions")
    op.drop_index("ix_sessions_status", table_name="sessions")
    op.drop_table("sessions")
    op.drop_index("ix_windows_provider_day", table_name="availability_windows")
    op.drop_table("availability_windows")
    op.drop_index("ix_requester_profiles_user_id", table_name="requester_profiles")
    op.drop_table("requester_profiles")
    op.drop_index("ix_provider_profiles_verification_status", table_name="provider_profiles")
    op.drop_index("ix_provider_profiles_user_id", table_name="provider_profiles")
    op.drop_table("provider_profiles")
