from datetime import date
from typing import Optional, Union

from pydantic import BaseModel, Field


class TaskCreate(BaseModel):
    title: Optional[str] = None
    description: str = ""
    assigned_to: Optional[Union[int, str]] = Field(None, alias="assignedTo")
    due_date: Optional[date] = Field(None, alias="dueDate")
    status: Optional[str] = None

    model_config = {"populate_by_name": True}


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    assigned_to: Optional[Union[int, str]] = Field(None, alias="assignedTo")
    due_date: Optional[date] = Field(None, alias="dueDate")
    status: Optional[str] = None

    model_config = {"populate_by_name": True}


class TaskStatusUpdate(BaseModel):
    status: Optional[str] = None
