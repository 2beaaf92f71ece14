# parlour_api/attendance/router.py
from typing import List
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from parlour_api.database import get_db
from parlour_api.attendance.schemas import AttendanceFilter, PunchCreate, PunchUpdate, attendance_filter
from parlour_api.attendance.service import AttendanceService
from parlour_api.auth.dependencies import Identity, any_role, super_admin_only
from parlour_api.errors import InvalidArgument, parse_id
from parlour_api.realtime.broadcaster import Publisher, get_publisher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/attendance", tags=["attendance"])


def get_attendance_service(
    db: Session = Depends(get_db),
    publisher: Publisher = Depends(get_publisher),
) -> AttendanceService:
    return AttendanceService(db, publisher)


# -----------------------------
# Helper: ":id" is one id or a comma-joined group of ids
# -----------------------------
def _parse_id_list(raw: str) -> List[int]:
    parts = [p for p in (raw or "").split(",") if p.strip()]
    if not parts:
        raise InvalidArgument("Invalid attendance record ID format")
    return [parse_id(p, "attendance record ID") for p in parts]


# -----------------------------
# Raw punch log (newest first)
# -----------------------------
@router.get("")
def list_attendance(
    flt: AttendanceFilter = Depends(attendance_filter),
    identity: Identity = Depends(any_role),
    service: AttendanceService = Depends(get_attendance_service),
):
    return {"success": True, "data": service.list_punches(flt)}


# -----------------------------
# Record one punch
# -----------------------------
@router.post("", status_code=status.HTTP_201_CREATED)
def create_attendance(
    body: PunchCreate,
    identity: Identity = Depends(any_role),
    service: AttendanceService = Depends(get_attendance_service),
):
    data = service.record_punch(body.employee_id, body.type, body.timestamp)
    return {"success": True, "data": data}


# -----------------------------
# Daily summaries
# -----------------------------
@router.get("/daily")
def list_daily_attendance(
    flt: AttendanceFilter = Depends(attendance_filter),
    identity: Identity = Depends(any_role),
    service: AttendanceService = Depends(get_attendance_service),
):
    return {"success": True, "data": service.list_daily(flt)}


# -----------------------------
# Edit: single record or whole day (super-admin)
# -----------------------------
@router.put("/{ids}")
def update_attendance(
    ids: str,
    body: PunchUpdate,
    identity: Identity = Depends(super_admin_only),
    service: AttendanceService = Depends(get_attendance_service),
):
    punch_ids = _parse_id_list(ids)

    if body.is_single_update:
        if len(punch_ids) != 1:
            raise InvalidArgument("A single record update takes exactly one attendance record ID")
        data = service.update_punch(punch_ids[0], body.timestamp, body.type)
        return {"success": True, "message": "Attendance record updated successfully", "data": data}

    if body.is_daily_update:
        employee_id, day_key = service.group_of(punch_ids)
        service.replace_daily_punches(employee_id, day_key, body.check_in_time, body.check_out_time)
        logger.info("user_id=%s replaced punches of employee %s on %s", identity.subject_id, employee_id, day_key)
        return {"success": True, "message": "Attendance records updated successfully"}

    raise InvalidArgument(
        "Invalid update data. Please provide either timestamp and type for single record update, "
        "or checkInTime/checkOutTime for daily record update."
    )


# -----------------------------
# Delete: single record or whole day (super-admin)
# -----------------------------
@router.delete("/{ids}")
def delete_attendance(
    ids: str,
    identity: Identity = Depends(super_admin_only),
    service: AttendanceService = Depends(get_attendance_service),
):
    punch_ids = _parse_id_list(ids)

    if "," not in ids:
        count = service.delete_punch(punch_ids[0])
    else:
        employee_id, day_key = service.group_of(punch_ids)
        count = service.delete_punches_for(employee_id, day_key)

    return {
        "success": True,
        "message": "Successfully deleted attendance record(s)",
        "deletedCount": count,
    }
