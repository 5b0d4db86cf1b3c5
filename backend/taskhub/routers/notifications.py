from typing import List

from fastapi import APIRouter, Depends

from taskhub.routers.auth import get_current_principal
from taskhub.routers.tasks import get_ledger, get_task_manager
from taskhub.schemas.task import TaskNotifications, UnreadCount
from taskhub.schemas.user import Principal
from taskhub.services.notifications import NotificationLedger
from taskhub.services.repository import TaskFilters
from taskhub.services.tasks import TaskLifecycleManager

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
)

@router.get("", response_model=List[TaskNotifications])
async def get_notifications(
    principal: Principal = Depends(get_current_principal),
    manager: TaskLifecycleManager = Depends(get_task_manager),
):
    """Visible tasks that carry at least one notification, newest task first."""
    tasks = await manager.list(principal, TaskFilters())
    return [task for task in tasks if task.notifications]

@router.get("/unread-count", response_model=UnreadCount)
async def get_unread_count(
    principal: Principal = Depends(get_current_principal),
    ledger: NotificationLedger = Depends(get_ledger),
):
    return {"unread": await ledger.unread_count(principal)}
