from datetime import date

from sqlalchemy import Column, Integer, String, Date, Boolean
from sqlalchemy.orm import relationship

from parlour_api.database import Base, UTCDateTime, utcnow


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(150), nullable=False, unique=True)
    mobile = Column(String(20), nullable=False)
    role = Column(String(50), nullable=False)       # job role label, e.g. Stylist
    position = Column(String(50), nullable=False)
    status = Column(Boolean, nullable=False, default=True)
    join_date = Column(Date, nullable=False, default=date.today)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    punches = relationship(
        "Punch",
        back_populates="employee",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Employee id={self.id} name={self.name} email={self.email}>"
