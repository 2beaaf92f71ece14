from datetime import date, datetime
from typing import Optional, Union

from fastapi import Query
from pydantic import BaseModel, Field, ValidationError

from parlour_api.errors import InvalidArgument


class PunchCreate(BaseModel):
    employee_id: Optional[Union[int, str]] = Field(None, alias="employeeId")
    type: Optional[str] = None
    timestamp: Optional[datetime] = None

    model_config = {"populate_by_name": True}


class PunchUpdate(BaseModel):
    """
    Either a single-record edit ({timestamp, type}) or a whole-day
    replace ({checkInTime?, checkOutTime?}).
    """
    timestamp: Optional[datetime] = None
    type: Optional[str] = None
    check_in_time: Optional[datetime] = Field(None, alias="checkInTime")
    check_out_time: Optional[datetime] = Field(None, alias="checkOutTime")

    model_config = {"populate_by_name": True}

    @property
    def is_single_update(self) -> bool:
        return self.timestamp is not None

    @property
    def is_daily_update(self) -> bool:
        return bool({"check_in_time", "check_out_time"} & self.model_fields_set)


class AttendanceFilter(BaseModel):
    day: Optional[date] = None
    day_from: Optional[date] = None
    day_to: Optional[date] = None
    employee_id: Optional[int] = Field(None, gt=0)

    model_config = {"frozen": True}

    @property
    def has_day_filter(self) -> bool:
        return any(d is not None for d in (self.day, self.day_from, self.day_to))


def attendance_filter(
    date_: Optional[str] = Query(None, alias="date"),
    date_only: Optional[str] = Query(None, alias="dateOnly"),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    employee_id: Optional[str] = Query(None, alias="employeeId"),
) -> AttendanceFilter:
    """Build the listing filter from query params; empty params count as absent."""
    try:
        return AttendanceFilter(
            day=date_ or date_only or None,
            day_from=date_from or None,
            day_to=date_to or None,
            employee_id=employee_id or None,
        )
    except ValidationError as exc:
        fields = ", ".join(str(e["loc"][0]) for e in exc.errors())
        raise InvalidArgument(f"Invalid filter value: {fields}")
