from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class EmployeeCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None
    role: Optional[str] = None
    position: Optional[str] = None
    status: bool = True
    join_date: Optional[date] = Field(None, alias="joinDate")

    model_config = {"populate_by_name": True}

    def missing_fields(self):
        return [f for f in ("name", "email", "mobile", "role", "position")
                if not (getattr(self, f) or "").strip()]


class EmployeeUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None
    role: Optional[str] = None
    position: Optional[str] = None
    status: Optional[bool] = None
    join_date: Optional[date] = Field(None, alias="joinDate")

    model_config = {"populate_by_name": True}
