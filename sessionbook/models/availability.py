# sessionbook/models/availability.py
"""
Provider availability windows.

A window is a wall-clock interval in the provider's timezone on one day of
the week, either recurring every week or pinned to a specific date.
Overlap between enabled windows on the same day is rejected when windows
are written; there is no standing database constraint for it.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, Date, ForeignKey, Index, Integer, String, Time
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime


class AvailabilityWindow(Base):
    __tablename__ = "availability_windows"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    provider_id = Column(
        String(26), ForeignKey("provider_profiles.id", ondelete="CASCADE"), nullable=False
    )
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_recurring = Column(Boolean, nullable=False, default=True)
    specific_date = Column(Date, nullable=True)
    is_enabled = Column(Boolean, nullable=False, default=True)

    created_at = Column(UTCDateTime, server_default=func.now())
    updated_at = Column(UTCDateTime, onupdate=func.now())

    provider = relationship("ProviderProfile", backref="availability_windows")

    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_window_day_of_week"),
        CheckConstraint("start_time < end_time", name="ck_window_time_order"),
        Index("ix_windows_provider_day", "provider_id", "day_of_week"),
    )

    def applies_to(self, local_date) -> bool:
        """True when the window is live on ``local_date``."""
        if not self.is_enabled:
            return False
        return bool(self.is_recurring) or self.specific_date == local_date

    def __repr__(self) -> str:
        return (
            f"<AvailabilityWindow {self.provider_id} day={self.day_of_week} "
            f"{self.start_time}-{self.end_time}>"
        )
