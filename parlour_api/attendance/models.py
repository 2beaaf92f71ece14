# parlour_api/attendance/models.py
import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, ForeignKey, Index
from sqlalchemy.orm import relationship, validates

from parlour_api.database import Base, UTCDateTime, utcnow

# Must import Employee so SQLAlchemy knows the table
from parlour_api.employees.models import Employee


class PunchType(str, enum.Enum):
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"

    @property
    def action(self) -> str:
        return "in" if self is PunchType.CHECK_IN else "out"


def day_key_for(ts: datetime) -> str:
    """YYYY-MM-DD of the timestamp in UTC (naive values are already UTC)."""
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.date().isoformat()


class Punch(Base):
    __tablename__ = "attendance_punches"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False)            # 'check-in' / 'check-out'
    timestamp = Column(UTCDateTime, nullable=False, default=utcnow)
    date_only = Column(String(10), nullable=False)       # YYYY-MM-DD

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    employee = relationship(Employee, back_populates="punches")

    __table_args__ = (
        Index("ix_punch_employee_day", "employee_id", "date_only"),
        Index("ix_punch_day", "date_only"),
        Index("ix_punch_timestamp", "timestamp"),
    )

    @validates("type")
    def _validate_type(self, key, value):
        return PunchType(value).value

    @property
    def punch_type(self) -> PunchType:
        return PunchType(self.type)

    def set_timestamp(self, ts: datetime) -> None:
        # day key always moves together with the timestamp
        self.timestamp = ts
        self.date_only = day_key_for(ts)

    def __repr__(self):
        return f"<Punch id={self.id} employee_id={self.employee_id} type={self.type} day={self.date_only}>"
