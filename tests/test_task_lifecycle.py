# tests/test_task_lifecycle.py

import pytest
from sqlalchemy import func, select

from taskhub.core.errors import Forbidden, NotFound
from taskhub.models.task import Notification
from taskhub.schemas.task import TaskCreate, TaskUpdate

from .helpers import future


def report(**overrides) -> TaskCreate:
    fields = dict(
        title="Write report",
        description="Draft the quarterly report",
        due_date=future(),
        priority="high",
        status="todo",
    )
    fields.update(overrides)
    return TaskCreate(**fields)


async def test_create_defaults_assignee_to_creator(manager, alice) -> None:
    task = await manager.create(alice, report())

    assert task.created_by_id == alice.id
    assert task.assigned_to_id == alice.id
    assert task.assigned_to.name == "Alice"
    assert task.status == "todo"
    assert task.priority == "high"
    assert len(task.notifications) == 1
    assert task.notifications[0].message == 'Task "Write report" has been created and assigned'
    assert task.notifications[0].read is False


async def test_create_with_explicit_assignee(manager, alice, bob) -> None:
    task = await manager.create(alice, report(assigned_to=bob.id))

    assert task.created_by_id == alice.id
    assert task.assigned_to_id == bob.id
    assert len(task.notifications) == 1


async def test_create_with_unknown_assignee_fails(manager, alice) -> None:
    with pytest.raises(NotFound):
        await manager.create(alice, report(assigned_to="no-such-user"))


async def test_create_uses_medium_todo_defaults(manager, alice) -> None:
    task = await manager.create(
        alice,
        TaskCreate(title="Plan", description="Plan the next sprint", due_date=future()),
    )
    assert task.priority == "medium"
    assert task.status == "todo"


async def test_write_report_scenario(manager, alice, bob, carol) -> None:
    task = await manager.create(alice, report())
    assert task.assigned_to_id == alice.id

    task = await manager.update(alice, task.id, TaskUpdate(assigned_to=bob.id))
    assert task.assigned_to_id == bob.id
    assert [n.message for n in task.notifications] == [
        'Task "Write report" has been created and assigned',
        'Task "Write report" has been reassigned',
    ]

    task = await manager.mark_complete(bob, task.id)
    assert task.status == "completed"

    with pytest.raises(Forbidden):
        await manager.mark_complete(bob, task.id)

    with pytest.raises(Forbidden):
        await manager.get(carol, task.id)


async def test_reassign_to_same_user_adds_no_notification(manager, alice, bob) -> None:
    task = await manager.create(alice, report(assigned_to=bob.id))

    task = await manager.update(alice, task.id, TaskUpdate(assigned_to=bob.id))

    assert len(task.notifications) == 1


async def test_reassign_message_uses_incoming_title(manager, alice, bob) -> None:
    task = await manager.create(alice, report())

    task = await manager.update(
        alice, task.id, TaskUpdate(title="Write final report", assigned_to=bob.id)
    )

    assert task.title == "Write final report"
    assert task.notifications[-1].message == 'Task "Write final report" has been reassigned'


async def test_partial_update_keeps_omitted_fields(manager, alice) -> None:
    task = await manager.create(alice, report())
    due = task.due_date

    task = await manager.update(alice, task.id, TaskUpdate(priority="low", description=None))

    assert task.priority == "low"
    assert task.title == "Write report"
    assert task.description == "Draft the quarterly report"
    assert task.status == "todo"
    assert task.due_date == due
    assert len(task.notifications) == 1


async def test_assignee_cannot_update_or_delete(manager, alice, bob) -> None:
    task = await manager.create(alice, report(assigned_to=bob.id))

    with pytest.raises(Forbidden):
        await manager.update(bob, task.id, TaskUpdate(title="Taken over"))
    with pytest.raises(Forbidden):
        await manager.delete(bob, task.id)


async def test_creator_cannot_complete_task_assigned_elsewhere(manager, alice, bob) -> None:
    task = await manager.create(alice, report(assigned_to=bob.id))

    with pytest.raises(Forbidden):
        await manager.mark_complete(alice, task.id)


async def test_failed_second_completion_changes_nothing(manager, alice) -> None:
    task = await manager.create(alice, report())
    task = await manager.mark_complete(alice, task.id)
    completed_at = task.updated_at

    with pytest.raises(Forbidden):
        await manager.mark_complete(alice, task.id)

    task = await manager.get(alice, task.id)
    assert task.status == "completed"
    assert task.updated_at == completed_at
    assert len(task.notifications) == 1


async def test_owner_can_reopen_completed_task(manager, alice) -> None:
    task = await manager.create(alice, report())
    await manager.mark_complete(alice, task.id)

    task = await manager.update(alice, task.id, TaskUpdate(status="in-progress"))
    assert task.status == "in-progress"

    task = await manager.mark_complete(alice, task.id)
    assert task.status == "completed"


async def test_assignee_can_read(manager, alice, bob) -> None:
    task = await manager.create(alice, report(assigned_to=bob.id))
    fetched = await manager.get(bob, task.id)
    assert fetched.id == task.id


async def test_missing_task_is_not_found_for_everyone(manager, alice, carol) -> None:
    for call in (
        manager.get(carol, "missing"),
        manager.update(alice, "missing", TaskUpdate(title="Nope")),
        manager.delete(alice, "missing"),
        manager.mark_complete(alice, "missing"),
    ):
        with pytest.raises(NotFound):
            await call


async def test_delete_cascades_notifications(manager, db, alice, bob) -> None:
    task = await manager.create(alice, report())
    await manager.update(alice, task.id, TaskUpdate(assigned_to=bob.id))

    await manager.delete(alice, task.id)

    with pytest.raises(NotFound):
        await manager.get(alice, task.id)
    remaining = await db.execute(select(func.count(Notification.id)))
    assert remaining.scalar_one() == 0
