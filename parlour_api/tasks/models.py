# parlour_api/tasks/models.py
import enum

from sqlalchemy import Column, Integer, String, Text, Date, ForeignKey
from sqlalchemy.orm import relationship

from parlour_api.database import Base, UTCDateTime, utcnow

# Must import Employee so SQLAlchemy knows the table
from parlour_api.employees.models import Employee


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    assigned_to = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    due_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=TaskStatus.PENDING.value)
    created_by = Column(Integer, nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    employee = relationship(Employee, backref="tasks")

    def __repr__(self):
        return f"<Task id={self.id} title={self.title}>"
