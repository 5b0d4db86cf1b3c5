from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.database import get_db
from taskhub.routers.auth import get_current_principal
from taskhub.schemas.task import TaskCreate, TaskResponse, TaskUpdate, as_utc
from taskhub.schemas.user import MessageResponse, Principal
from taskhub.services.notifications import NotificationLedger
from taskhub.services.repository import TaskFilters, TaskRepository
from taskhub.services.tasks import TaskLifecycleManager

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
    responses={404: {"description": "Not found"}},
)

def get_task_manager(db: AsyncSession = Depends(get_db)) -> TaskLifecycleManager:
    return TaskLifecycleManager(TaskRepository(db))

def get_ledger(db: AsyncSession = Depends(get_db)) -> NotificationLedger:
    return NotificationLedger(TaskRepository(db))

@router.get("", response_model=List[TaskResponse])
async def get_tasks(
    task_status: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = None,
    search: Optional[str] = None,
    due_date: Optional[datetime] = Query(None, alias="dueDate"),
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    created_by: Optional[str] = Query(None, alias="createdBy"),
    principal: Principal = Depends(get_current_principal),
    manager: TaskLifecycleManager = Depends(get_task_manager),
):
    filters = TaskFilters(
        status=task_status,
        priority=priority,
        search=search,
        due_date=as_utc(due_date),
        assigned_to=assigned_to,
        created_by=created_by,
    )
    return await manager.list(principal, filters)

@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    principal: Principal = Depends(get_current_principal),
    manager: TaskLifecycleManager = Depends(get_task_manager),
):
    return await manager.create(principal, task_in)

@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    principal: Principal = Depends(get_current_principal),
    manager: TaskLifecycleManager = Depends(get_task_manager),
):
    return await manager.get(principal, task_id)

@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    changes: TaskUpdate,
    principal: Principal = Depends(get_current_principal),
    manager: TaskLifecycleManager = Depends(get_task_manager),
):
    return await manager.update(principal, task_id, changes)

@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: str,
    principal: Principal = Depends(get_current_principal),
    manager: TaskLifecycleManager = Depends(get_task_manager),
):
    await manager.delete(principal, task_id)
    return {"message": "Task removed"}

@router.patch("/{task_id}/complete", response_model=TaskResponse)
async def complete_task(
    task_id: str,
    principal: Principal = Depends(get_current_principal),
    manager: TaskLifecycleManager = Depends(get_task_manager),
):
    return await manager.mark_complete(principal, task_id)

@router.patch("/{task_id}/notifications/{notification_id}/read", response_model=MessageResponse)
async def mark_notification_read(
    task_id: str,
    notification_id: str,
    principal: Principal = Depends(get_current_principal),
    ledger: NotificationLedger = Depends(get_ledger),
):
    await ledger.mark_read(principal, task_id, notification_id)
    return {"message": "Notification marked as read"}
