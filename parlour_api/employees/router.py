# parlour_api/employees/router.py
from typing import Any, Dict
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from parlour_api.database import get_db
from parlour_api.employees.models import Employee
from parlour_api.employees.schemas import EmployeeCreate, EmployeeUpdate
from parlour_api.auth.dependencies import Identity, any_role, super_admin_only
from parlour_api.errors import Conflict, Internal, InvalidArgument, NotFound, parse_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])


def serialize_employee(emp: Employee) -> Dict[str, Any]:
    return {
        "id": emp.id,
        "name": emp.name,
        "email": emp.email,
        "mobile": emp.mobile,
        "role": emp.role,
        "position": emp.position,
        "status": bool(emp.status),
        "joinDate": emp.join_date.isoformat() if emp.join_date else None,
        "createdAt": emp.created_at.isoformat() if emp.created_at else None,
        "updatedAt": emp.updated_at.isoformat() if emp.updated_at else None,
    }


def _get_employee_or_404(db: Session, raw_id) -> Employee:
    emp = db.get(Employee, parse_id(raw_id, "employee ID"))
    if not emp:
        raise NotFound("Employee not found")
    return emp


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("An employee with this email already exists")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("DB error while trying to %s employee", action)
        raise Internal(f"Failed to {action} employee")


# List employees
@router.get("")
def list_employees(db: Session = Depends(get_db), identity: Identity = Depends(any_role)):
    employees = db.query(Employee).order_by(Employee.name, Employee.id).all()
    data = [serialize_employee(e) for e in employees]
    return {"success": True, "count": len(data), "data": data}


# Employee detail
@router.get("/{emp_id}")
def get_employee(emp_id: str, db: Session = Depends(get_db), identity: Identity = Depends(any_role)):
    return {"success": True, "data": serialize_employee(_get_employee_or_404(db, emp_id))}


# Create employee
@router.post("", status_code=status.HTTP_201_CREATED)
def create_employee(
    body: EmployeeCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(super_admin_only),
):
    if body.missing_fields():
        raise InvalidArgument("Please provide all required fields")

    new_emp = Employee(
        name=body.name.strip(),
        email=body.email.strip().lower(),
        mobile=body.mobile.strip(),
        role=body.role.strip(),
        position=body.position.strip(),
        status=body.status,
    )
    if body.join_date:
        new_emp.join_date = body.join_date

    db.add(new_emp)
    _commit(db, "create")
    db.refresh(new_emp)
    logger.info("Employee %s created by user_id=%s", new_emp.id, identity.subject_id)
    return {"success": True, "data": serialize_employee(new_emp)}


# Update employee (only the fields sent)
@router.put("/{emp_id}")
def update_employee(
    emp_id: str,
    body: EmployeeUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(super_admin_only),
):
    emp = _get_employee_or_404(db, emp_id)

    updates = body.model_dump(exclude_unset=True)
    for key in ("name", "email", "mobile", "role", "position"):
        if key in updates:
            value = (updates[key] or "").strip()
            if not value:
                raise InvalidArgument(f"{key} cannot be empty")
            setattr(emp, key, value.lower() if key == "email" else value)
    if updates.get("status") is not None:
        emp.status = updates["status"]
    if updates.get("join_date") is not None:
        emp.join_date = updates["join_date"]

    _commit(db, "update")
    db.refresh(emp)
    return {"success": True, "data": serialize_employee(emp)}


# Delete employee (their punch log goes with them)
@router.delete("/{emp_id}")
def delete_employee(emp_id: str, db: Session = Depends(get_db), identity: Identity = Depends(super_admin_only)):
    emp = _get_employee_or_404(db, emp_id)
    deleted_id = emp.id
    db.delete(emp)
    _commit(db, "delete")
    logger.info("Employee %s deleted by user_id=%s", deleted_id, identity.subject_id)
    return {"success": True, "message": "Employee deleted successfully"}
