# sessionbook/models/session.py
"""
Booked session model for SessionBook.

A session is a self-contained commitment between a provider and a
requester: it stores its own absolute start/end instants so later edits
to availability windows never rewrite history.

Double-booking protection lives in the database as well as in the
service: two active sessions for the same provider may not overlap.
PostgreSQL enforces this with a GiST exclusion constraint; SQLite with
triggers. A writer that loses a race gets an IntegrityError naming
``sessions_no_overlap_per_provider``.
"""

from sqlalchemy import DDL, CheckConstraint, Column, ForeignKey, Index, Integer, String, Text, event
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.enums import SessionStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import StringArrayType, UTCDateTime

PROVIDER_OVERLAP_CONSTRAINT = "sessions_no_overlap_per_provider"

_ACTIVE_STATUS_SQL = ", ".join(f"'{status.value}'" for status in SessionStatus.active())


class BookedSession(Base):
    __tablename__ = "sessions"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    provider_id = Column(String(26), ForeignKey("provider_profiles.id"), nullable=False)
    requester_id = Column(String(26), ForeignKey("requester_profiles.id"), nullable=False)

    scheduled_start = Column(UTCDateTime, nullable=False)
    scheduled_end = Column(UTCDateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    timezone = Column(String(64), nullable=False, default="UTC")

    status = Column(String(30), nullable=False, default=SessionStatus.SCHEDULED.value, index=True)

    lesson_plan = Column(Text, nullable=True)
    requester_notes = Column(Text, nullable=True)
    provider_notes = Column(Text, nullable=True)
    topics = Column(StringArrayType, nullable=False, default=lambda: [])

    started_at = Column(UTCDateTime, nullable=True)
    completed_at = Column(UTCDateTime, nullable=True)
    cancelled_at = Column(UTCDateTime, nullable=True)
    cancelled_by = Column(String(26), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, onupdate=func.now())

    provider = relationship("ProviderProfile", backref="sessions")
    requester = relationship("RequesterProfile", backref="sessions")

    __table_args__ = (
        CheckConstraint("scheduled_start < scheduled_end", name="ck_session_time_order"),
        CheckConstraint("duration_minutes > 0", name="ck_session_duration_positive"),
        Index("ix_sessions_provider_start", "provider_id", "scheduled_start"),
        Index("ix_sessions_requester_start", "requester_id", "scheduled_start"),
    )

    @property
    def status_enum(self) -> SessionStatus:
        return SessionStatus(self.status)

    def __repr__(self) -> str:
        return f"<BookedSession {self.id} {self.status} {self.scheduled_start}>"


# PostgreSQL: range exclusion on (provider, [start, end)) for active sessions
event.listen(
    BookedSession.__table__,
    "after_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    BookedSession.__table__,
    "after_create",
    DDL(
        f"""
        ALTER TABLE sessions
          ADD CONSTRAINT {PROVIDER_OVERLAP_CONSTRAINT}
          EXCLUDE USING gist (
            provider_id WITH =,
            tstzrange(scheduled_start, scheduled_end, '[)') WITH &&
          )
          WHERE (status IN ({_ACTIVE_STATUS_SQL}))
        """
    ).execute_if(dialect="postgresql"),
)

# SQLite: same guarantee via triggers
event.listen(
    BookedSession.__table__,
    "after_create",
    DDL(
        f"""
        CREATE TRIGGER IF NOT EXISTS sessions_no_overlap_insert
        BEFORE INSERT ON sessions
        WHEN NEW.status IN ({_ACTIVE_STATUS_SQL})
        BEGIN
          SELECT RAISE(ABORT, '{PROVIDER_OVERLAP_CONSTRAINT}')
          WHERE EXISTS (
            SELECT 1 FROM sessions
            WHERE provider_id = NEW.provider_id
              AND status IN ({_ACTIVE_STATUS_SQL})
              AND scheduled_start < NEW.scheduled_end
              AND scheduled_end > NEW.scheduled_start
          );
        END
        """
    ).execute_if(dialect="sqlite"),
)
event.listen(
    BookedSession.__table__,
    "after_create",
    DDL(
        f"""
        CREATE TRIGGER IF NOT EXISTS sessions_no_overlap_update
        BEFORE UPDATE OF scheduled_start, scheduled_end, status ON sessions
        WHEN NEW.status IN ({_ACTIVE_STATUS_SQL})
        BEGIN
          SELECT RAISE(ABORT, '{PROVIDER_OVERLAP_CONSTRAINT}')
          WHERE EXISTS (
            SELECT 1 FROM sessions
            WHERE provider_id = NEW.provider_id
              AND id != NEW.id
              AND status IN ({_ACTIVE_STATUS_SQL})
              AND scheduled_start < NEW.scheduled_end
              AND scheduled_end > NEW.scheduled_start
          );
        END
        """
    ).execute_if(dialect="sqlite"),
)
