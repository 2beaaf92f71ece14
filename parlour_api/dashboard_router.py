# parlour_api/dashboard_router.py

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from parlour_api.database import get_db
from parlour_api.attendance.models import Punch, PunchType
from parlour_api.auth.dependencies import Identity, any_role
from parlour_api.employees.models import Employee
from parlour_api.tasks.models import Task, TaskStatus

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


# -----------------------------
# Headline numbers for the dashboard home
# -----------------------------
@router.get("/stats")
def dashboard_stats(db: Session = Depends(get_db), identity: Identity = Depends(any_role)):
    today = datetime.now(timezone.utc).date().isoformat()

    total_employees = db.query(func.count(Employee.id)).scalar() or 0
    active_employees = db.query(func.count(Employee.id)).filter(Employee.status.is_(True)).scalar() or 0

    task_counts = {s.value: 0 for s in TaskStatus}
    for status_value, count in db.query(Task.status, func.count(Task.id)).group_by(Task.status).all():
        task_counts[status_value] = count

    checked_in_today = (
        db.query(func.count(func.distinct(Punch.employee_id)))
        .filter(Punch.date_only == today, Punch.type == PunchType.CHECK_IN.value)
        .scalar()
        or 0
    )

    return {
        "success": True,
        "data": {
            "date": today,
            "totalEmployees": total_employees,
            "activeEmployees": active_employees,
            "totalTasks": sum(task_counts.values()),
            "tasksByStatus": task_counts,
            "checkedInToday": checked_in_today,
        },
    }
