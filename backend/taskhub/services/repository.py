from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.models.task import Notification, Task
from taskhub.models.user import User

ME = "me"
ALL = "all"


@dataclass
class TaskFilters:
    status: Optional[str] = None
    priority: Optional[str] = None
    search: Optional[str] = None
    due_date: Optional[datetime] = None
    assigned_to: Optional[str] = None  # "me" or a user id
    created_by: Optional[str] = None  # "me" or a user id


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class TaskRepository:
    """Query building over the tasks table. No authorization happens here."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def visible_to(self, user_id: str):
        return or_(Task.assigned_to_id == user_id, Task.created_by_id == user_id)

    def build_query(self, user_id: str, filters: TaskFilters):
        query = select(Task).where(self.visible_to(user_id))

        if filters.status and filters.status != ALL:
            query = query.where(Task.status == filters.status)

        if filters.priority and filters.priority != ALL:
            query = query.where(Task.priority == filters.priority)

        if filters.due_date is not None:
            query = query.where(Task.due_date <= filters.due_date)

        if filters.assigned_to:
            assignee = user_id if filters.assigned_to == ME else filters.assigned_to
            query = query.where(Task.assigned_to_id == assignee)

        if filters.created_by:
            creator = user_id if filters.created_by == ME else filters.created_by
            query = query.where(Task.created_by_id == creator)

        if filters.search:
            pattern = f"%{_escape_like(filters.search.lower())}%"
            query = query.where(
                or_(
                    func.lower(Task.title).like(pattern, escape="\\"),
                    func.lower(Task.description).like(pattern, escape="\\"),
                )
            )

        return query.order_by(Task.created_at.desc())

    async def find(self, user_id: str, filters: TaskFilters) -> List[Task]:
        result = await self.db.execute(self.build_query(user_id, filters))
        return list(result.scalars().all())

    async def get(self, task_id: str) -> Optional[Task]:
        result = await self.db.execute(
            select(Task)
            .where(Task.id == task_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def insert(self, task: Task) -> Task:
        self.db.add(task)
        await self.db.commit()
        return await self.get(task.id)

    async def save(self, task: Task) -> Task:
        await self.db.commit()
        return await self.get(task.id)

    async def delete(self, task: Task) -> None:
        # Notifications go with the task through the delete-orphan cascade
        await self.db.delete(task)
        await self.db.commit()

    async def unread_notifications(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count(Notification.id))
            .join(Task, Notification.task_id == Task.id)
            .where(self.visible_to(user_id), Notification.read.is_(False))
        )
        return result.scalar_one()
