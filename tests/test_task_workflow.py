from __future__ import annotations

import itertools
import random
from datetime import datetime, timedelta, timezone

import pytest

from task_tracker.runtime.domain.inputs import UNSET, NewTask, TaskPatch, TaskQuery
from task_tracker.runtime.errors import ForbiddenError, InvalidAssignmentError, NotFoundError
from task_tracker.runtime.events import EventBus, TaskEventScope
from task_tracker.runtime.events.channel import user_group
from task_tracker.runtime.services import TaskWorkflowService
from task_tracker.runtime.services.tasks import assignee_changed, should_notify

from .conftest import RecordingChannel, make_user


def _new_task(title: str = "Write report", assignee_id=None, **extra) -> NewTask:
    due = (datetime.now(timezone.utc) + timedelta(days=3)).isoformat()
    return NewTask(title=title, description="Quarterly numbers", due_date=due, assignee_id=assignee_id, **extra)


def test_create_applies_defaults_and_resolves_creator(container, workflow) -> None:
    alice = make_user(container, "Alice")

    task = workflow.create_task(_new_task(), alice.id)

    assert task["priority"] == "Medium"
    assert task["status"] == "To Do"
    assert task["creator"] == {"id": alice.id, "name": "Alice", "email": "alice@example.com"}
    assert task["assignee"] is None


def test_create_with_unknown_assignee_is_not_found(container, workflow, channel) -> None:
    alice = make_user(container, "Alice")

    with pytest.raises(NotFoundError, match="Assigned user not found"):
        workflow.create_task(_new_task(assignee_id="user-0000000000"), alice.id)

    assert container.tasks.list() == []
    assert channel.broadcasts == []


def test_assigning_to_any_unverified_user_fails(container, workflow) -> None:
    alice = make_user(container, "Alice")
    created = workflow.create_task(_new_task(), alice.id)
    unverified = [make_user(container, f"Pending {idx}", verified=False) for idx in range(5)]

    for user in unverified:
        with pytest.raises(InvalidAssignmentError):
            workflow.create_task(_new_task(assignee_id=user.id), alice.id)
        with pytest.raises(InvalidAssignmentError):
            workflow.update_task(created["id"], TaskPatch(assignee_id=user.id), alice.id)

    assert len(container.tasks.list()) == 1
    assert container.tasks.get(created["id"]).assignee_id is None


def test_only_creator_can_update_or_delete_over_random_pairs(container, workflow) -> None:
    users = [make_user(container, f"User {idx}") for idx in range(6)]
    rng = random.Random(7)
    pairs = [pair for pair in itertools.permutations(users, 2)]
    rng.shuffle(pairs)

    for creator, other in pairs[:12]:
        task = workflow.create_task(_new_task(title=f"Owned by {creator.name}"), creator.id)
        with pytest.raises(ForbiddenError, match="not authorized to update"):
            workflow.update_task(task["id"], TaskPatch(status="Completed"), other.id)
        with pytest.raises(ForbiddenError, match="not authorized to delete"):
            workflow.delete_task(task["id"], other.id)
        stored = container.tasks.get(task["id"])
        assert stored is not None
        assert stored.status == "To Do"
        assert stored.creator_id == creator.id


def test_assignee_cannot_mutate_task_assigned_to_them(container, workflow) -> None:
    alice = make_user(container, "Alice")
    bob = make_user(container, "Bob")
    task = workflow.create_task(_new_task(assignee_id=bob.id), alice.id)

    with pytest.raises(ForbiddenError):
        workflow.update_task(task["id"], TaskPatch(status="In Progress"), bob.id)

    assert workflow.get_task(task["id"])["assignee"]["id"] == bob.id


def test_creator_is_immutable_through_updates(container, workflow) -> None:
    alice = make_user(container, "Alice")
    task = workflow.create_task(_new_task(), alice.id)

    container.tasks.update(task["id"], {"creator_id": "user-ffffffffff", "title": "Renamed"})

    stored = container.tasks.get(task["id"])
    assert stored.creator_id == alice.id
    assert stored.title == "Renamed"


def test_update_and_delete_missing_task_is_not_found(container, workflow) -> None:
    alice = make_user(container, "Alice")

    with pytest.raises(NotFoundError, match="Task not found"):
        workflow.update_task("task-missing", TaskPatch(title="x"), alice.id)
    with pytest.raises(NotFoundError, match="Task not found"):
        workflow.delete_task("task-missing", alice.id)


@pytest.mark.parametrize(
    ("patch", "previous", "expected"),
    [
        (TaskPatch(), None, False),
        (TaskPatch(), "user-aaaaaaaaaa", False),
        (TaskPatch(status="Review"), "user-aaaaaaaaaa", False),
        (TaskPatch(assignee_id="user-aaaaaaaaaa"), "user-aaaaaaaaaa", False),
        (TaskPatch(assignee_id=None), None, False),
        (TaskPatch(assignee_id="user-aaaaaaaaaa"), None, True),
        (TaskPatch(assignee_id=None), "user-aaaaaaaaaa", True),
        (TaskPatch(assignee_id="user-bbbbbbbbbb"), "user-aaaaaaaaaa", True),
    ],
)
def test_assignee_changed_truth_table(patch, previous, expected) -> None:
    assert assignee_changed(patch, previous) is expected


@pytest.mark.parametrize(
    ("changed", "new_assignee", "actor", "expected"),
    [
        (True, "user-bbbbbbbbbb", "user-aaaaaaaaaa", True),
        (False, "user-bbbbbbbbbb", "user-aaaaaaaaaa", False),
        (True, None, "user-aaaaaaaaaa", False),
        (True, "user-aaaaaaaaaa", "user-aaaaaaaaaa", False),
    ],
)
def test_should_notify_combinations(changed, new_assignee, actor, expected) -> None:
    assert should_notify(changed, new_assignee, actor) is expected


def test_update_notifies_only_on_real_assignment_change(container, workflow, channel) -> None:
    alice = make_user(container, "Alice")
    bob = make_user(container, "Bob")
    carol = make_user(container, "Carol")
    task = workflow.create_task(_new_task(), alice.id)

    result = workflow.update_task(task["id"], TaskPatch(assignee_id=bob.id), alice.id)
    assert result.assignee_changed is True
    assert result.previous_assignee_id is None

    # same assignee again
    result = workflow.update_task(task["id"], TaskPatch(assignee_id=bob.id), alice.id)
    assert result.assignee_changed is False

    # self-assignment by the creator
    result = workflow.update_task(task["id"], TaskPatch(assignee_id=alice.id), alice.id)
    assert result.assignee_changed is True

    # unassign
    result = workflow.update_task(task["id"], TaskPatch(assignee_id=None), alice.id)
    assert result.assignee_changed is True
    assert result.task["assignee"] is None

    workflow.update_task(task["id"], TaskPatch(assignee_id=carol.id), alice.id)

    assert [n.user_id for n in container.notifications.for_user(bob.id)] == [bob.id]
    assert container.notifications.for_user(alice.id) == []
    carol_notes = container.notifications.for_user(carol.id)
    assert len(carol_notes) == 1
    assert carol_notes[0].message == f"Alice assigned you a task: {task['title']}"
    assert [group for group, _, _ in channel.targeted] == [user_group(bob.id), user_group(carol.id)]
    assert [event for event, _ in channel.broadcasts].count("task:updated") == 5


def test_scenario_create_without_assignee(container, workflow, channel) -> None:
    alice = make_user(container, "Alice")

    workflow.create_task(_new_task(), alice.id)

    assert [event for event, _ in channel.broadcasts] == ["task:created"]
    assert channel.targeted == []
    assert container.notifications.for_user(alice.id) == []


def test_scenario_create_assigned_to_other_verified_user(container, workflow, channel, mailer) -> None:
    alice = make_user(container, "Alice")
    bob = make_user(container, "Bob")

    task = workflow.create_task(_new_task(title="Ship release", assignee_id=bob.id), alice.id)

    assert [event for event, _ in channel.broadcasts] == ["task:created"]
    assert channel.broadcasts[0][1]["assignee"]["name"] == "Bob"
    assert channel.targeted == [
        (
            user_group(bob.id),
            "notification:assigned",
            {
                "taskId": task["id"],
                "taskTitle": "Ship release",
                "message": "You have been assigned a new task: Ship release",
            },
        )
    ]
    notes = container.notifications.for_user(bob.id)
    assert len(notes) == 1
    assert notes[0].kind == "task_assigned"
    assert notes[0].task_id == task["id"]
    assert [mail["to"] for mail in mailer.sent] == ["bob@example.com"]


def test_scenario_status_only_update(container, workflow, channel) -> None:
    alice = make_user(container, "Alice")
    bob = make_user(container, "Bob")
    task = workflow.create_task(_new_task(assignee_id=bob.id), alice.id)
    channel.broadcasts.clear()
    channel.targeted.clear()

    result = workflow.update_task(task["id"], TaskPatch(status="In Progress"), alice.id)

    assert result.assignee_changed is False
    assert result.task["status"] == "In Progress"
    assert result.task["assignee"]["id"] == bob.id
    assert [event for event, _ in channel.broadcasts] == ["task:updated"]
    assert channel.targeted == []
    assert len(container.notifications.for_user(bob.id)) == 1


def test_scenario_non_creator_delete(container, workflow, channel) -> None:
    alice = make_user(container, "Alice")
    bob = make_user(container, "Bob")
    task = workflow.create_task(_new_task(), alice.id)
    channel.broadcasts.clear()

    with pytest.raises(ForbiddenError):
        workflow.delete_task(task["id"], bob.id)

    assert container.tasks.get(task["id"]) is not None
    assert channel.broadcasts == []


def test_delete_broadcasts_identifier_only(container, workflow, channel) -> None:
    alice = make_user(container, "Alice")
    task = workflow.create_task(_new_task(), alice.id)

    workflow.delete_task(task["id"], alice.id)

    assert container.tasks.get(task["id"]) is None
    assert channel.broadcasts[-1] == ("task:deleted", {"id": task["id"]})


def test_emission_failure_does_not_fail_mutation(container, notifier, channel) -> None:
    class _Broken(RecordingChannel):
        def emit_to_all(self, event, payload):
            raise RuntimeError("socket gone")

    bus = EventBus(_Broken())
    service = TaskWorkflowService(container.tasks, container.users, notifier, bus)
    alice = make_user(container, "Alice")

    task = service.create_task(_new_task(), alice.id)

    assert container.tasks.get(task["id"]) is not None


def test_dashboards_scope_by_caller(container, workflow) -> None:
    alice = make_user(container, "Alice")
    bob = make_user(container, "Bob")
    past = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    mine = workflow.create_task(_new_task(title="Alice own"), alice.id)
    to_bob = workflow.create_task(_new_task(title="For Bob", assignee_id=bob.id), alice.id)
    bob_late = workflow.create_task(NewTask(title="Bob late", description="d", due_date=past), bob.id)
    done_late = workflow.create_task(
        NewTask(title="Done late", description="d", due_date=past, status="Completed", assignee_id=alice.id),
        bob.id,
    )
    late_for_alice = workflow.create_task(
        NewTask(title="Late for Alice", description="d", due_date=past, assignee_id=alice.id), bob.id
    )

    assigned = workflow.assigned_to(bob.id, TaskQuery())
    created = workflow.created_by(alice.id, TaskQuery())
    overdue = workflow.overdue_for(alice.id, TaskQuery(sort_by="dueDate", sort_order="asc"))

    assert [t["id"] for t in assigned.items] == [to_bob["id"]]
    assert {t["id"] for t in created.items} == {mine["id"], to_bob["id"]}
    assert [t["id"] for t in overdue.items] == [late_for_alice["id"]]
    assert done_late["id"] not in {t["id"] for t in overdue.items}
    assert bob_late["id"] not in {t["id"] for t in overdue.items}


def test_patch_changes_skip_unset_fields() -> None:
    patch = TaskPatch(title="New", assignee_id=None)

    assert patch.changes() == {"title": "New", "assignee_id": None}
    assert TaskPatch().changes() == {}
    assert TaskPatch().assignee_id is UNSET


def test_task_events_follow_the_configured_scope(container, notifier) -> None:
    class _TeamScope(TaskEventScope):
        def group_for(self, task):
            return "team:core"

    channel = RecordingChannel()
    service = TaskWorkflowService(container.tasks, container.users, notifier, EventBus(channel, _TeamScope()))
    alice = make_user(container, "Alice")

    task = service.create_task(_new_task(), alice.id)
    service.delete_task(task["id"], alice.id)

    assert channel.broadcasts == []
    assert [(group, event) for group, event, _ in channel.targeted] == [
        ("team:core", "task:created"),
        ("team:core", "task:deleted"),
    ]
