# parlour_api/tasks/router.py
from typing import Any, Dict, Optional
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from parlour_api.database import get_db
from parlour_api.tasks.models import Task, TaskStatus
from parlour_api.tasks.schemas import TaskCreate, TaskStatusUpdate, TaskUpdate
from parlour_api.employees.models import Employee
from parlour_api.auth.dependencies import Identity, any_role, super_admin_only
from parlour_api.errors import Internal, InvalidArgument, NotFound, parse_id
from parlour_api.realtime.broadcaster import TASK_UPDATE, Publisher, get_publisher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


def serialize_task(task: Task) -> Dict[str, Any]:
    employee = task.employee
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description or "",
        "assignedTo": task.assigned_to,
        "employeeName": employee.name if employee is not None else "Unassigned",
        "dueDate": task.due_date.isoformat() if task.due_date else None,
        "status": task.status,
        "createdBy": task.created_by,
        "createdAt": task.created_at.isoformat() if task.created_at else None,
    }


def _parse_status(raw: Optional[str]) -> str:
    try:
        return TaskStatus(raw).value
    except ValueError:
        raise InvalidArgument("Invalid status value")


def _resolve_assignee(db: Session, raw) -> int:
    emp_id = parse_id(raw, "employee ID")
    if db.get(Employee, emp_id) is None:
        raise NotFound("Employee not found")
    return emp_id


def _get_task_or_404(db: Session, raw_id) -> Task:
    task = db.get(Task, parse_id(raw_id, "task ID"))
    if not task:
        raise NotFound("Task not found")
    return task


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("DB error while trying to %s task", action)
        raise Internal(f"Failed to {action} task")


# ---------------------------------------
# GET: List tasks (newest first)
# ---------------------------------------
@router.get("")
def list_tasks(db: Session = Depends(get_db), identity: Identity = Depends(any_role)):
    tasks = db.query(Task).order_by(Task.created_at.desc(), Task.id.desc()).all()
    data = [serialize_task(t) for t in tasks]
    return {"success": True, "count": len(data), "data": data}


# ---------------------------------------
# POST: Create task (super-admin only)
# ---------------------------------------
@router.post("", status_code=status.HTTP_201_CREATED)
def create_task(
    body: TaskCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(super_admin_only),
):
    title = (body.title or "").strip()
    if not title:
        raise InvalidArgument("Task title is required")
    if body.assigned_to in (None, ""):
        raise InvalidArgument("assignedTo is required")
    if body.due_date is None:
        raise InvalidArgument("dueDate is required")

    new_task = Task(
        title=title,
        description=body.description or "",
        assigned_to=_resolve_assignee(db, body.assigned_to),
        due_date=body.due_date,
        status=_parse_status(body.status) if body.status else TaskStatus.PENDING.value,
        created_by=identity.subject_id,
    )
    db.add(new_task)
    _commit(db, "create")
    db.refresh(new_task)
    logger.info("Task %s created by user_id=%s", new_task.id, identity.subject_id)
    return {"success": True, "data": serialize_task(new_task)}


# ---------------------------------------
# PUT: Full edit (super-admin only)
# ---------------------------------------
@router.put("/{task_id}")
def update_task(
    task_id: str,
    body: TaskUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(super_admin_only),
):
    task = _get_task_or_404(db, task_id)
    updates = body.model_dump(exclude_unset=True)

    if "title" in updates:
        title = (updates["title"] or "").strip()
        if not title:
            raise InvalidArgument("Task title cannot be empty")
        task.title = title
    if "description" in updates:
        task.description = updates["description"] or ""
    if updates.get("assigned_to") not in (None, ""):
        task.assigned_to = _resolve_assignee(db, updates["assigned_to"])
    if updates.get("due_date") is not None:
        task.due_date = updates["due_date"]
    if updates.get("status") is not None:
        task.status = _parse_status(updates["status"])

    _commit(db, "update")
    db.refresh(task)
    return {"success": True, "data": serialize_task(task)}


# ---------------------------------------
# DELETE (super-admin only)
# ---------------------------------------
@router.delete("/{task_id}")
def delete_task(task_id: str, db: Session = Depends(get_db), identity: Identity = Depends(super_admin_only)):
    task = _get_task_or_404(db, task_id)
    db.delete(task)
    _commit(db, "delete")
    return {"success": True, "message": "Task deleted successfully"}


# ---------------------------------------
# PATCH: status only (any role)
# ---------------------------------------
@router.patch("/{task_id}/status")
def update_task_status(
    task_id: str,
    body: TaskStatusUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(any_role),
    publisher: Publisher = Depends(get_publisher),
):
    new_status = _parse_status(body.status)
    task = _get_task_or_404(db, task_id)
    task.status = new_status
    _commit(db, "update status of")
    db.refresh(task)

    logger.info("Task %s status -> %s by user_id=%s", task.id, task.status, identity.subject_id)
    publisher.publish(TASK_UPDATE, {"id": task.id, "status": task.status})
    return {"success": True, "data": serialize_task(task)}
