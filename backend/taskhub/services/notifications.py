"""The notification ledger embedded in every task.

Entries are appended in insertion order and only their ``read`` flag ever
changes afterwards. Nothing outside this module builds or edits a
``Notification`` directly.
"""

import logging

from taskhub.core.errors import NotFound
from taskhub.models.task import Notification, Task
from taskhub.models.user import new_id, utcnow
from taskhub.services.policy import Operation, ensure_permitted
from taskhub.services.repository import TaskRepository

logger = logging.getLogger(__name__)

CREATED_MESSAGE = 'Task "{title}" has been created and assigned'
REASSIGNED_MESSAGE = 'Task "{title}" has been reassigned'


def append(task: Task, message: str) -> Notification:
    notification = Notification(id=new_id(), message=message, created_at=utcnow(), read=False)
    task.notifications.append(notification)
    return notification


class NotificationLedger:
    def __init__(self, repo: TaskRepository):
        self.repo = repo

    async def mark_read(self, principal, task_id: str, notification_id: str) -> Notification:
        task = await self.repo.get(task_id)
        if task is None:
            raise NotFound("Task not found")

        ensure_permitted(principal, task, Operation.read_notification)

        notification = next((n for n in task.notifications if n.id == notification_id), None)
        if notification is None:
            raise NotFound("Notification not found")

        if not notification.read:
            notification.read = True
            await self.repo.save(task)
            logger.info("Notification %s on task %s marked read by %s", notification_id, task_id, principal.id)
        return notification

    async def unread_count(self, principal) -> int:
        return await self.repo.unread_notifications(principal.id)
