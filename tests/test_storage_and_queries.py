from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import yaml

from task_tracker.runtime.domain.inputs import Page, TaskFilters, TaskQuery
from task_tracker.runtime.domain.models import Notification, Task, User
from task_tracker.runtime.errors import ConflictError
from task_tracker.runtime.storage.bootstrap import ensure_state_root
from task_tracker.runtime.storage.container import Container


def _task(container: Container, title: str, **fields) -> Task:
    fields.setdefault("due_date", (datetime.now(timezone.utc) + timedelta(days=1)).isoformat())
    fields.setdefault("creator_id", "user-aaaaaaaaaa")
    return container.tasks.create(Task(title=title, description="d", **fields))


def test_bootstrap_seeds_versioned_collections(tmp_path: Path) -> None:
    root = ensure_state_root(tmp_path / "state")

    for name in ("users.yaml", "tasks.yaml", "notifications.yaml"):
        assert yaml.safe_load((root / name).read_text(encoding="utf-8")) == {"version": 1}


def test_bootstrap_keeps_existing_data(tmp_path: Path) -> None:
    root = tmp_path / "state"
    root.mkdir()
    (root / "tasks.yaml").write_text("version: 1\ntasks:\n  - id: task-0123456789\n    title: Kept\n", encoding="utf-8")

    container = Container(root)

    assert [t.title for t in container.tasks.list()] == ["Kept"]


def test_user_email_is_unique_and_case_insensitive(container: Container) -> None:
    first = container.users.upsert(User(email="Dana@Example.com", name="Dana"))

    assert container.users.get_by_email("DANA@example.COM").id == first.id
    with pytest.raises(ConflictError, match="Duplicate entry"):
        container.users.upsert(User(email="dana@example.com", name="Other Dana"))

    first.name = "Dana R."
    container.users.upsert(first)
    assert container.users.get(first.id).name == "Dana R."


def test_list_verified_excludes_pending_users(container: Container) -> None:
    container.users.upsert(User(email="a@example.com", name="A", is_verified=True))
    container.users.upsert(User(email="b@example.com", name="B", is_verified=False))

    assert [u.email for u in container.users.list_verified()] == ["a@example.com"]


def test_task_state_survives_a_new_container(tmp_path: Path) -> None:
    first = Container(tmp_path / "state")
    task = _task(first, "Persisted", assignee_id="user-bbbbbbbbbb")

    reloaded = Container(tmp_path / "state").tasks.get(task.id)

    assert reloaded is not None
    assert reloaded.assignee_id == "user-bbbbbbbbbb"
    assert reloaded.created_at == task.created_at


@pytest.mark.parametrize(("total", "limit"), [(0, 10), (1, 10), (10, 10), (11, 10), (25, 7), (100, 100)])
def test_page_counters(total: int, limit: int) -> None:
    expected_pages = math.ceil(total / limit)
    for page_no in range(1, max(expected_pages, 1) + 1):
        page = Page(items=[], total=total, page=page_no, limit=limit)
        assert page.total_pages == expected_pages
        assert page.has_next_page is (page_no < expected_pages)
        assert page.has_prev_page is (page_no > 1)


def test_pagination_payload_uses_wire_names() -> None:
    assert Page(items=[], total=23, page=2, limit=10).pagination() == {
        "total": 23,
        "page": 2,
        "limit": 10,
        "totalPages": 3,
        "hasNextPage": True,
        "hasPrevPage": True,
    }


@pytest.mark.parametrize(
    "kwargs",
    [{"page": 0}, {"limit": 0}, {"limit": 101}, {"sort_by": "assignee"}, {"sort_order": "up"}],
)
def test_task_query_rejects_out_of_range_values(kwargs) -> None:
    with pytest.raises(ValueError):
        TaskQuery(**kwargs)


def test_query_slices_pages(container: Container) -> None:
    for idx in range(23):
        _task(container, f"Task {idx:02d}")

    last = container.tasks.query(TaskQuery(sort_by="title", sort_order="asc", page=3, limit=10))

    assert [t.title for t in last.items] == ["Task 20", "Task 21", "Task 22"]
    assert last.total == 23
    assert last.has_next_page is False


def test_overdue_boundary_is_strict() -> None:
    now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    task = Task(title="t", due_date=now.isoformat())

    assert task.is_overdue(now) is False
    assert task.is_overdue(now + timedelta(microseconds=1)) is True
    task.status = "Completed"
    assert task.is_overdue(now + timedelta(days=30)) is False


def test_overdue_filter_and_other_filters(container: Container) -> None:
    past = (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat()
    late = _task(container, "Late", due_date=past, priority="High")
    _task(container, "Late but done", due_date=past, status="Completed")
    _task(container, "Future", priority="High", assignee_id="user-bbbbbbbbbb")

    overdue = container.tasks.query(TaskQuery(filters=TaskFilters(overdue=True)))
    high = container.tasks.query(TaskQuery(filters=TaskFilters(priority="High")))
    for_bob = container.tasks.query(TaskQuery(filters=TaskFilters(involving_user_id="user-bbbbbbbbbb")))

    assert [t.id for t in overdue.items] == [late.id]
    assert {t.title for t in high.items} == {"Late", "Future"}
    assert [t.title for t in for_bob.items] == ["Future"]


def test_priority_and_status_sort_by_workflow_rank(container: Container) -> None:
    _task(container, "u", priority="Urgent", status="Review")
    _task(container, "l", priority="Low", status="Completed")
    _task(container, "h", priority="High", status="To Do")
    _task(container, "m", priority="Medium", status="In Progress")

    by_priority = container.tasks.query(TaskQuery(sort_by="priority", sort_order="asc"))
    by_status = container.tasks.query(TaskQuery(sort_by="status", sort_order="desc"))

    assert [t.priority for t in by_priority.items] == ["Low", "Medium", "High", "Urgent"]
    assert [t.status for t in by_status.items] == ["Completed", "Review", "In Progress", "To Do"]


def test_notifications_newest_first_and_read_state(container: Container) -> None:
    for idx in range(3):
        container.notifications.create(
            Notification(
                user_id="user-bbbbbbbbbb",
                message=f"n{idx}",
                task_id="task-0000000000",
                created_at=f"2026-01-0{idx + 1}T00:00:00+00:00",
            )
        )
    container.notifications.create(Notification(user_id="user-cccccccccc", message="other"))

    listed = container.notifications.for_user("user-bbbbbbbbbb")
    assert [n.message for n in listed] == ["n2", "n1", "n0"]

    container.notifications.mark_read(listed[0].id)
    assert container.notifications.unread_count("user-bbbbbbbbbb") == 2
    assert [n.message for n in container.notifications.for_user("user-bbbbbbbbbb", unread_only=True)] == ["n1", "n0"]

    assert container.notifications.mark_all_read("user-bbbbbbbbbb") == 2
    assert container.notifications.mark_all_read("user-bbbbbbbbbb") == 0
    assert container.notifications.unread_count("user-cccccccccc") == 1


def test_notification_listing_respects_limit(container: Container) -> None:
    for idx in range(5):
        container.notifications.create(Notification(user_id="user-bbbbbbbbbb", message=f"n{idx}"))

    assert len(container.notifications.for_user("user-bbbbbbbbbb", limit=3)) == 3
