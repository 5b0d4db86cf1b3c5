# tests/test_notifications.py

import pytest

from taskhub.core.errors import Forbidden, NotFound
from taskhub.schemas.task import TaskCreate, TaskUpdate

from .helpers import future


async def make(manager, owner, **fields):
    return await manager.create(
        owner,
        TaskCreate(title="Ship release", description="Tag and publish the release", due_date=future(), **fields),
    )


async def test_mark_read_flips_only_that_entry(manager, ledger, alice, bob) -> None:
    task = await make(manager, alice)
    task = await manager.update(alice, task.id, TaskUpdate(assigned_to=bob.id))
    first, second = task.notifications

    await ledger.mark_read(bob, task.id, second.id)

    task = await manager.get(alice, task.id)
    assert [n.read for n in task.notifications] == [False, True]
    assert [n.id for n in task.notifications] == [first.id, second.id]


async def test_mark_read_is_idempotent(manager, ledger, alice) -> None:
    task = await make(manager, alice)
    notification_id = task.notifications[0].id

    first = await ledger.mark_read(alice, task.id, notification_id)
    again = await ledger.mark_read(alice, task.id, notification_id)

    assert first.read is True
    assert again.read is True


async def test_mark_read_unknown_notification(manager, ledger, alice) -> None:
    task = await make(manager, alice)
    with pytest.raises(NotFound) as exc:
        await ledger.mark_read(alice, task.id, "no-such-notification")
    assert exc.value.message == "Notification not found"


async def test_mark_read_unknown_task(ledger, alice) -> None:
    with pytest.raises(NotFound) as exc:
        await ledger.mark_read(alice, "no-such-task", "whatever")
    assert exc.value.message == "Task not found"


async def test_outsider_cannot_mark_read(manager, ledger, alice, carol) -> None:
    task = await make(manager, alice)
    with pytest.raises(Forbidden):
        await ledger.mark_read(carol, task.id, task.notifications[0].id)


async def test_unread_count_spans_visible_tasks(manager, ledger, alice, bob, carol) -> None:
    own = await make(manager, alice)
    delegated = await make(manager, alice, assigned_to=bob.id)
    await manager.update(alice, delegated.id, TaskUpdate(assigned_to=carol.id))
    await make(manager, carol)

    assert await ledger.unread_count(alice) == 3
    assert await ledger.unread_count(bob) == 0
    assert await ledger.unread_count(carol) == 3

    await ledger.mark_read(alice, own.id, own.notifications[0].id)
    assert await ledger.unread_count(alice) == 2
