"""Who may do what to a task.

``permit`` is a pure decision over the principal and the task as loaded; it
never touches the database. Callers that need an exception instead of a bool
use ``ensure_permitted``.
"""

import logging
from enum import Enum

from taskhub.core.errors import Forbidden
from taskhub.schemas.task import TaskStatus

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    read = "read"
    update = "update"
    delete = "delete"
    mark_complete = "markComplete"
    read_notification = "readNotification"


DENIAL_MESSAGES = {
    Operation.read: "Not authorized to view this task",
    Operation.update: "Not authorized to update this task",
    Operation.delete: "Not authorized to delete this task",
    Operation.mark_complete: "Not authorized to complete this task",
    Operation.read_notification: "Not authorized to update this notification",
}


def _is_creator(principal, task) -> bool:
    return principal.id == task.created_by_id


def _is_assignee(principal, task) -> bool:
    return principal.id == task.assigned_to_id


def permit(principal, task, operation: Operation) -> bool:
    if operation in (Operation.read, Operation.read_notification):
        return _is_creator(principal, task) or _is_assignee(principal, task)
    if operation in (Operation.update, Operation.delete):
        return _is_creator(principal, task)
    if operation == Operation.mark_complete:
        return _is_assignee(principal, task) and task.status != TaskStatus.completed.value
    return False


def ensure_permitted(principal, task, operation: Operation) -> None:
    if not permit(principal, task, operation):
        logger.warning(
            "Denied %s on task %s for user %s", operation.value, task.id, principal.id
        )
        if operation == Operation.mark_complete and _is_assignee(principal, task):
            raise Forbidden("Task is already completed")
        raise Forbidden(DENIAL_MESSAGES[operation])
