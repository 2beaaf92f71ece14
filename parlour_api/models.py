# parlour_api/models.py
# Import every model so Base.metadata and the mapper registry know all tables.
from parlour_api.auth.models import User
from parlour_api.employees.models import Employee
from parlour_api.tasks.models import Task, TaskStatus
from parlour_api.attendance.models import Punch, PunchType

__all__ = ["User", "Employee", "Task", "TaskStatus", "Punch", "PunchType"]
