from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime, timezone
from enum import Enum

from taskhub.schemas.user import UserSummary

class TaskStatus(str, Enum):
    todo = "todo"
    in_progress = "in-progress"
    completed = "completed"

class TaskPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"

def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive timestamps are taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

class _CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        use_enum_values = True

class TaskCreate(_CamelModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=10)
    due_date: datetime
    priority: TaskPriority = TaskPriority.medium
    status: TaskStatus = TaskStatus.todo
    assigned_to: Optional[str] = None  # defaults to the creator

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v: datetime) -> datetime:
        return as_utc(v)

class TaskUpdate(_CamelModel):
    # Absent and null both mean "keep the current value"
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = Field(None, min_length=10)
    due_date: Optional[datetime] = None
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    assigned_to: Optional[str] = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    def supplied(self) -> dict:
        return self.model_dump(exclude_none=True)

class NotificationResponse(_CamelModel):
    id: str
    message: str
    created_at: datetime
    read: bool

    class Config:
        from_attributes = True

class TaskResponse(_CamelModel):
    id: str
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime
    created_by: UserSummary
    assigned_to: UserSummary
    notifications: List[NotificationResponse] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class TaskNotifications(_CamelModel):
    """A visible task reduced to what the notification popover shows."""
    id: str
    title: str
    notifications: List[NotificationResponse]

    class Config:
        from_attributes = True

class UnreadCount(BaseModel):
    unread: int
