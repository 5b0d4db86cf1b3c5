import logging
from typing import List

from taskhub.core.errors import NotFound
from taskhub.models.task import Task
from taskhub.schemas.task import TaskCreate, TaskPriority, TaskStatus, TaskUpdate
from taskhub.services import notifications
from taskhub.services.policy import Operation, ensure_permitted
from taskhub.services.repository import TaskFilters, TaskRepository

logger = logging.getLogger(__name__)


class TaskLifecycleManager:
    """
    Create, read, change and remove tasks on behalf of a principal.

    Every operation loads the task first (missing -> NotFound), then asks the
    policy (denied -> Forbidden), and only then mutates. A task and its
    notification ledger are persisted together in one commit.
    """

    def __init__(self, repo: TaskRepository):
        self.repo = repo

    async def _load(self, task_id: str) -> Task:
        task = await self.repo.get(task_id)
        if task is None:
            raise NotFound("Task not found")
        return task

    async def _user(self, user_id: str):
        user = await self.repo.get_user(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def create(self, principal, data: TaskCreate) -> Task:
        creator = await self._user(principal.id)
        assignee = creator
        if data.assigned_to and data.assigned_to != principal.id:
            assignee = await self._user(data.assigned_to)

        task = Task(
            title=data.title,
            description=data.description,
            due_date=data.due_date,
            priority=TaskPriority(data.priority).value,
            status=TaskStatus(data.status).value,
            created_by=creator,
            assigned_to=assignee,
        )
        notifications.append(task, notifications.CREATED_MESSAGE.format(title=data.title))

        task = await self.repo.insert(task)
        logger.info("Task %s created by %s, assigned to %s", task.id, principal.id, assignee.id)
        return task

    async def list(self, principal, filters: TaskFilters) -> List[Task]:
        return await self.repo.find(principal.id, filters)

    async def get(self, principal, task_id: str) -> Task:
        task = await self._load(task_id)
        ensure_permitted(principal, task, Operation.read)
        return task

    async def update(self, principal, task_id: str, changes: TaskUpdate) -> Task:
        task = await self._load(task_id)
        ensure_permitted(principal, task, Operation.update)

        supplied = changes.supplied()
        new_assignee_id = supplied.pop("assigned_to", None)
        new_assignee = None
        if new_assignee_id is not None and new_assignee_id != task.assigned_to_id:
            new_assignee = await self._user(new_assignee_id)

        for field in ("title", "description", "due_date"):
            if field in supplied:
                setattr(task, field, supplied[field])
        if "priority" in supplied:
            task.priority = TaskPriority(supplied["priority"]).value
        if "status" in supplied:
            task.status = TaskStatus(supplied["status"]).value

        if new_assignee is not None:
            task.assigned_to = new_assignee
            # task.title already carries the incoming title when one was sent
            notifications.append(task, notifications.REASSIGNED_MESSAGE.format(title=task.title))
            logger.info("Task %s reassigned to %s", task.id, new_assignee.id)

        task = await self.repo.save(task)
        logger.info("Task %s updated by %s", task.id, principal.id)
        return task

    async def delete(self, principal, task_id: str) -> None:
        task = await self._load(task_id)
        ensure_permitted(principal, task, Operation.delete)
        await self.repo.delete(task)
        logger.info("Task %s deleted by %s", task_id, principal.id)

    async def mark_complete(self, principal, task_id: str) -> Task:
        task = await self._load(task_id)
        ensure_permitted(principal, task, Operation.mark_complete)
        task.status = TaskStatus.completed.value
        task = await self.repo.save(task)
        logger.info("Task %s completed by %s", task.id, principal.id)
        return task
