# parlour_api/attendance/service.py
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from parlour_api.attendance.models import Punch, PunchType
from parlour_api.attendance.repository import PunchRepository
from parlour_api.attendance.schemas import AttendanceFilter
from parlour_api.config import DUPLICATE_WINDOW_SECONDS
from parlour_api.employees.models import Employee
from parlour_api.errors import Conflict, Internal, InvalidArgument, NotFound, parse_id
from parlour_api.realtime.broadcaster import (
    ATTENDANCE_DAILY_UPDATE,
    ATTENDANCE_DELETE,
    ATTENDANCE_UPDATE,
    Publisher,
)

logger = logging.getLogger(__name__)


# -----------------------------
# Helpers to format timestamps
# -----------------------------
def as_utc(ts: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _fmt_time_ampm(ts: Optional[datetime]) -> Optional[str]:
    """Return human-friendly time like '6:51 AM' or None."""
    if ts is None:
        return None
    hour = ts.hour % 12 or 12
    return f"{hour}:{ts.strftime('%M')} {'AM' if ts.hour < 12 else 'PM'}"


def _fmt_date(ts: datetime) -> str:
    """'May 1, 2024'"""
    return f"{ts.strftime('%b')} {ts.day}, {ts.year}"


def _fmt_day_key(day_key: str) -> str:
    """'Wed, May 1, 2024'"""
    d = datetime.strptime(day_key, "%Y-%m-%d")
    return f"{d.strftime('%a')}, {_fmt_date(d)}"


def _iso(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts is not None else None


def parse_punch_type(raw) -> PunchType:
    try:
        return PunchType(raw)
    except ValueError:
        allowed = ", ".join(t.value for t in PunchType)
        raise InvalidArgument(f"Invalid attendance type. Must be one of: {allowed}")


def serialize_punch(punch: Punch, employee: Optional[Employee]) -> Dict[str, Any]:
    ts = punch.timestamp
    return {
        "id": punch.id,
        "employeeId": punch.employee_id,
        "employeeName": employee.name if employee is not None else "Unknown",
        "type": punch.type,
        "action": punch.punch_type.action,
        "timestamp": _iso(ts),
        "dateOnly": punch.date_only,
        "time": _fmt_time_ampm(ts),
        "date": _fmt_date(ts),
    }


# -----------------------------
# Daily aggregation
# -----------------------------
@dataclass
class DailySummary:
    employee_id: int
    employee_name: str
    day: str
    first_check_in: Optional[datetime] = None
    last_check_out: Optional[datetime] = None
    log_ids: List[int] = field(default_factory=list)

    @property
    def total_hours(self) -> Optional[float]:
        # an inverted pair gives a negative value on purpose
        if self.first_check_in is None or self.last_check_out is None:
            return None
        seconds = (self.last_check_out - self.first_check_in).total_seconds()
        return round(seconds / 3600, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": ",".join(str(i) for i in self.log_ids),
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "date": self.day,
            "dateFormatted": _fmt_day_key(self.day),
            "checkInTime": _fmt_time_ampm(self.first_check_in),
            "checkOutTime": _fmt_time_ampm(self.last_check_out),
            "checkInTimestamp": _iso(self.first_check_in),
            "checkOutTimestamp": _iso(self.last_check_out),
            "totalHours": self.total_hours,
            "logIds": list(self.log_ids),
        }


def build_daily_summaries(rows: Iterable[Tuple[Punch, Optional[Employee]]]) -> List[DailySummary]:
    """
    Fold punches into one summary per (employee, day).
    Punches whose employee is gone are skipped. Result is sorted by day
    descending, then employee name.
    """
    groups: Dict[Tuple[int, str], DailySummary] = {}

    for punch, employee in sorted(rows, key=lambda r: (r[0].timestamp, r[0].id)):
        if employee is None:
            continue
        key = (punch.employee_id, punch.date_only)
        summary = groups.get(key)
        if summary is None:
            summary = groups[key] = DailySummary(
                employee_id=punch.employee_id,
                employee_name=employee.name,
                day=punch.date_only,
            )
        summary.log_ids.append(punch.id)

        if punch.type == PunchType.CHECK_IN.value:
            if summary.first_check_in is None or punch.timestamp < summary.first_check_in:
                summary.first_check_in = punch.timestamp
        elif punch.type == PunchType.CHECK_OUT.value:
            if summary.last_check_out is None or punch.timestamp > summary.last_check_out:
                summary.last_check_out = punch.timestamp

    result = sorted(groups.values(), key=lambda s: s.employee_name)
    result.sort(key=lambda s: s.day, reverse=True)
    return result


class AttendanceService:
    """
    Punch recording, daily aggregation and the admin edit paths.
    Every mutation commits on its own and then notifies the publisher.
    """

    def __init__(
        self,
        db: Session,
        publisher: Publisher,
        *,
        duplicate_window_seconds: int = DUPLICATE_WINDOW_SECONDS,
    ):
        self._db = db
        self._punches = PunchRepository(db)
        self._publisher = publisher
        self._window = timedelta(seconds=int(duplicate_window_seconds))

    # -----------------------------
    # Punch recorder
    # -----------------------------
    def record_punch(self, employee_id, punch_type, timestamp: Optional[datetime] = None, *,
                     now: Optional[datetime] = None) -> Dict[str, Any]:
        if employee_id in (None, ""):
            raise InvalidArgument("Employee ID is required")
        kind = parse_punch_type(punch_type)
        emp_id = parse_id(employee_id, "employee ID")

        employee = self._db.get(Employee, emp_id)
        if employee is None:
            raise NotFound("Employee not found")

        now = as_utc(now or datetime.now(timezone.utc))
        ts = as_utc(timestamp) if timestamp is not None else now

        recent = self._punches.find_recent(emp_id, kind, since=now - self._window)
        if recent is not None:
            logger.warning("Rejected repeat %s for employee %s (recent punch id=%s)", kind.value, emp_id, recent.id)
            verb = "checked in" if kind is PunchType.CHECK_IN else "checked out"
            raise Conflict(f"Already {verb} recently")

        punch = self._punches.add(emp_id, kind, ts)
        self._commit("Failed to create attendance record")
        self._db.refresh(punch)

        payload = serialize_punch(punch, employee)
        logger.info("Employee %s %s at %s (punch id=%s)", emp_id, kind.value, payload["timestamp"], punch.id)

        self._publisher.publish(ATTENDANCE_UPDATE, payload)
        self._publisher.publish(ATTENDANCE_DAILY_UPDATE, {
            "employeeId": emp_id,
            "dateOnly": punch.date_only,
            "updated": True,
        })
        return payload

    # -----------------------------
    # Listings
    # -----------------------------
    def list_punches(self, flt: AttendanceFilter) -> List[Dict[str, Any]]:
        result = []
        for punch, employee in self._punches.list_with_employees(flt, newest_first=True):
            row = serialize_punch(punch, employee)
            row["employee"] = {
                "id": employee.id,
                "name": employee.name,
                "email": employee.email,
            } if employee is not None else None
            result.append(row)
        return result

    def list_daily(self, flt: AttendanceFilter, *, today: Optional[date] = None) -> List[Dict[str, Any]]:
        if not flt.has_day_filter:
            # no day given: today, in UTC like the day keys
            today = today or datetime.now(timezone.utc).date()
            flt = AttendanceFilter(day=today, employee_id=flt.employee_id)

        rows = self._punches.list_with_employees(flt, newest_first=False)
        return [s.to_dict() for s in build_daily_summaries(rows)]

    # -----------------------------
    # Addressing helpers
    # -----------------------------
    def get_punch(self, punch_id: int) -> Punch:
        punch = self._punches.get(punch_id)
        if punch is None:
            raise NotFound("Attendance record not found")
        return punch

    def group_of(self, punch_ids: List[int]) -> Tuple[int, str]:
        """
        Resolve the (employee, day) group addressed by a list of punch ids.
        The first id picks the group; every other id must belong to it.
        """
        first = self.get_punch(punch_ids[0])
        group = (first.employee_id, first.date_only)

        others = [i for i in punch_ids[1:] if i != first.id]
        if others:
            found = self._punches.get_many(others)
            if len(found) != len(set(others)):
                raise NotFound("Attendance record not found")
            if any((p.employee_id, p.date_only) != group for p in found):
                raise InvalidArgument("Attendance records belong to different employees or days")
        return group

    # -----------------------------
    # Daily record editor
    # -----------------------------
    def replace_daily_punches(self, employee_id: int, day_key: str,
                              check_in: Optional[datetime] = None,
                              check_out: Optional[datetime] = None) -> None:
        if not self._punches.list_for_day(employee_id, day_key):
            raise NotFound("Attendance record not found")

        try:
            removed = self._punches.delete_for_day(employee_id, day_key)
            # new rows stay in the edited day even if a time crosses midnight
            if check_in is not None:
                self._punches.add(employee_id, PunchType.CHECK_IN, as_utc(check_in), day_key=day_key)
            if check_out is not None:
                self._punches.add(employee_id, PunchType.CHECK_OUT, as_utc(check_out), day_key=day_key)
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception("Daily replace failed for employee %s on %s; rolled back", employee_id, day_key)
            raise Internal("Failed to update attendance records")

        logger.info("Replaced %s punch(es) for employee %s on %s", removed, employee_id, day_key)
        self._publisher.publish(ATTENDANCE_DAILY_UPDATE, {
            "employeeId": employee_id,
            "dateOnly": day_key,
            "updated": True,
        })

    # -----------------------------
    # Single-record editor / deleter
    # -----------------------------
    def update_punch(self, punch_id: int, timestamp: datetime, punch_type=None) -> Dict[str, Any]:
        punch = self.get_punch(punch_id)
        kind = parse_punch_type(punch_type) if punch_type not in (None, "") else punch.punch_type

        old_day = punch.date_only
        punch.set_timestamp(as_utc(timestamp))
        punch.type = kind.value
        self._commit("Failed to update attendance record")
        self._db.refresh(punch)

        employee = self._db.get(Employee, punch.employee_id)
        payload = serialize_punch(punch, employee)
        logger.info("Punch %s updated to %s %s", punch.id, punch.type, payload["timestamp"])

        self._publisher.publish(ATTENDANCE_UPDATE, payload)
        for day in dict.fromkeys((old_day, punch.date_only)):
            self._publisher.publish(ATTENDANCE_DAILY_UPDATE, {
                "employeeId": punch.employee_id,
                "dateOnly": day,
                "updated": True,
            })
        return payload

    def delete_punch(self, punch_id: int) -> int:
        punch = self.get_punch(punch_id)
        employee_id, day_key = punch.employee_id, punch.date_only
        employee = self._db.get(Employee, employee_id)

        self._punches.delete(punch)
        self._commit("Failed to delete attendance record")
        logger.info("Punch %s deleted (employee %s, %s)", punch_id, employee_id, day_key)

        self._publish_day_deleted(employee_id, employee, day_key)
        self._publisher.publish(ATTENDANCE_DELETE, {
            "id": punch_id,
            "employeeId": employee_id,
            "dateOnly": day_key,
        })
        return 1

    def delete_punches_for(self, employee_id: int, day_key: str) -> int:
        employee = self._db.get(Employee, employee_id)
        count = self._punches.delete_for_day(employee_id, day_key)
        self._commit("Failed to delete attendance records")
        logger.info("Deleted %s punch(es) for employee %s on %s", count, employee_id, day_key)

        self._publish_day_deleted(employee_id, employee, day_key)
        return count

    # -----------------------------
    # internals
    # -----------------------------
    def _publish_day_deleted(self, employee_id: int, employee: Optional[Employee], day_key: str) -> None:
        self._publisher.publish(ATTENDANCE_DAILY_UPDATE, {
            "employeeId": employee_id,
            "employeeName": employee.name if employee is not None else "Unknown Employee",
            "dateOnly": day_key,
            "deleted": True,
        })

    def _commit(self, message: str) -> None:
        try:
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            logger.exception(message)
            raise Internal(message)
