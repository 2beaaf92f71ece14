# parlour_api/attendance/repository.py
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from parlour_api.attendance.models import Punch, PunchType, day_key_for
from parlour_api.attendance.schemas import AttendanceFilter
from parlour_api.employees.models import Employee


class PunchRepository:
    """Queries over the punch log. Never commits; the caller owns the transaction."""

    def __init__(self, db: Session):
        self._db = db

    def get(self, punch_id: int) -> Optional[Punch]:
        return self._db.get(Punch, punch_id)

    def get_many(self, punch_ids: List[int]) -> List[Punch]:
        return self._db.query(Punch).filter(Punch.id.in_(punch_ids)).all()

    def find_recent(self, employee_id: int, punch_type: PunchType, since: datetime) -> Optional[Punch]:
        return (
            self._db.query(Punch)
            .filter(
                Punch.employee_id == employee_id,
                Punch.type == punch_type.value,
                Punch.timestamp >= since,
            )
            .first()
        )

    def add(self, employee_id: int, punch_type: PunchType, timestamp: datetime,
            day_key: Optional[str] = None) -> Punch:
        punch = Punch(
            employee_id=employee_id,
            type=punch_type.value,
            timestamp=timestamp,
            date_only=day_key or day_key_for(timestamp),
        )
        self._db.add(punch)
        return punch

    def list_with_employees(self, flt: AttendanceFilter, newest_first: bool = True) -> List[Tuple[Punch, Optional[Employee]]]:
        q = self._db.query(Punch, Employee).outerjoin(Employee, Employee.id == Punch.employee_id)

        if flt.day is not None:
            q = q.filter(Punch.date_only == flt.day.isoformat())
        else:
            if flt.day_from is not None:
                q = q.filter(Punch.date_only >= flt.day_from.isoformat())
            if flt.day_to is not None:
                q = q.filter(Punch.date_only <= flt.day_to.isoformat())

        if flt.employee_id is not None:
            q = q.filter(Punch.employee_id == flt.employee_id)

        order = Punch.timestamp.desc() if newest_first else Punch.timestamp.asc()
        return q.order_by(order, Punch.id).all()

    def list_for_day(self, employee_id: int, day_key: str) -> List[Punch]:
        return (
            self._db.query(Punch)
            .filter(Punch.employee_id == employee_id, Punch.date_only == day_key)
            .order_by(Punch.timestamp.asc())
            .all()
        )

    def delete_for_day(self, employee_id: int, day_key: str) -> int:
        return (
            self._db.query(Punch)
            .filter(Punch.employee_id == employee_id, Punch.date_only == day_key)
            .delete(synchronize_session="fetch")
        )

    def delete(self, punch: Punch) -> None:
        self._db.delete(punch)
