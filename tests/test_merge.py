# tests/test_merge.py

from __future__ import annotations

from habit_sync.core.merge import MERGE_WINDOW_MS, merge_states
from habit_sync.core.models import AppState, DayStatus, Task

from .fakes import T0


def _task(task_id: str, name: str | None = None) -> Task:
    return Task(id=task_id, name=name or task_id.upper(), icon="star", created_at="2024-01-01")


def _state(
    task_ids: list[str],
    statuses: dict[str, dict[str, DayStatus]] | None = None,
    *,
    at: int,
) -> AppState:
    return AppState(
        tasks=[_task(i) for i in task_ids],
        task_states=statuses if statuses is not None else {i: {} for i in task_ids},
        last_modified=at,
    )


def test_missing_side_returns_the_other() -> None:
    a = _state(["t1"], at=T0)
    assert merge_states(None, a) is a
    assert merge_states(a, None) is a
    assert merge_states(None, None) is None


def test_merge_with_itself_is_identity_up_to_timestamp() -> None:
    a = _state(["t1", "t2"], {"t1": {"2024-01-01": DayStatus.COMPLETED}, "t2": {}}, at=T0)

    merged = merge_states(a, a, now=T0 + 10)

    assert merged is not None
    assert merged.task_ids() == ["t1", "t2"]
    assert merged.task_states == a.task_states
    assert merged.last_modified == T0 + 10


def test_remote_much_newer_wins_outright() -> None:
    local = _state(["t1"], {"t1": {"2024-01-01": DayStatus.COMPLETED}}, at=T0)
    remote = _state(["t2"], at=T0 + MERGE_WINDOW_MS + 1)

    merged = merge_states(local, remote, now=T0 + 99_999)

    assert merged is not None
    assert merged.to_dict() == remote.to_dict()


def test_local_much_newer_wins_outright() -> None:
    local = _state(["t1"], at=T0 + 60_000)
    remote = _state(["t2"], at=T0)

    merged = merge_states(local, remote, now=T0 + 99_999)

    assert merged is not None
    assert merged.to_dict() == local.to_dict()


def test_missing_timestamp_counts_as_epoch() -> None:
    local = _state(["t1"], at=0)
    remote = _state(["t2"], at=T0)

    merged = merge_states(local, remote)

    assert merged is not None
    assert merged.task_ids() == ["t2"]


def test_boundary_of_window_still_combines() -> None:
    local = _state(["t1"], at=T0)
    remote = _state(["t2"], at=T0 + MERGE_WINDOW_MS)

    merged = merge_states(local, remote, now=T0 + MERGE_WINDOW_MS + 1)

    assert merged is not None
    assert merged.task_ids() == ["t2", "t1"]


def test_concurrent_disjoint_tasks_are_unioned() -> None:
    local = _state(["t1", "shared"], at=T0)
    remote = _state(["t2", "shared"], at=T0 + 2000)

    merged = merge_states(local, remote, now=T0 + 3000)

    assert merged is not None
    # remote order first, local-only appended, no duplicates by id
    assert merged.task_ids() == ["t2", "shared", "t1"]
    assert merged.last_modified > max(local.last_modified, remote.last_modified)


def test_concurrent_statuses_overlay_per_date() -> None:
    local = _state(
        ["t1"],
        {"t1": {"2024-01-01": DayStatus.COMPLETED, "2024-01-03": DayStatus.COMPLETED}},
        at=T0,
    )
    remote = _state(
        ["t1"],
        {"t1": {"2024-01-02": DayStatus.IN_PROGRESS, "2024-01-03": DayStatus.IN_PROGRESS}},
        at=T0 + 1000,
    )

    merged = merge_states(local, remote, now=T0 + 2000)

    assert merged is not None
    assert merged.task_states["t1"] == {
        "2024-01-01": DayStatus.COMPLETED,
        "2024-01-02": DayStatus.IN_PROGRESS,
        "2024-01-03": DayStatus.COMPLETED,  # local wins on the same date
    }


def test_local_only_and_orphaned_mappings_are_copied() -> None:
    local = _state(
        ["t1"],
        {"t1": {"2024-01-01": DayStatus.COMPLETED}, "orphan": {"2024-01-01": DayStatus.COMPLETED}},
        at=T0,
    )
    remote = _state(["t2"], {"t2": {"2024-01-05": DayStatus.IN_PROGRESS}}, at=T0)

    merged = merge_states(local, remote, now=T0)

    assert merged is not None
    assert set(merged.task_states) == {"t1", "t2", "orphan"}


def test_inputs_are_not_mutated() -> None:
    local = _state(["t1"], {"t1": {"2024-01-01": DayStatus.COMPLETED}}, at=T0)
    remote = _state(["t1", "t2"], {"t1": {"2024-01-02": DayStatus.COMPLETED}, "t2": {}}, at=T0)
    local_before = local.to_dict()
    remote_before = remote.to_dict()

    merged = merge_states(local, remote, now=T0 + 1)
    assert merged is not None
    merged.tasks[0].name = "changed"
    merged.task_states["t1"]["2024-01-09"] = DayStatus.COMPLETED

    assert local.to_dict() == local_before
    assert remote.to_dict() == remote_before
