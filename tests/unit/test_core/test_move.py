"""Tests for within-tag moves."""

import pytest

from taskgraph.core.errors import (
    BatchSizeMismatchError,
    DanglingReferenceError,
    DependencyError,
    InvalidTaskIdError,
    SubtaskMoveError,
    TagNotFoundError,
    TaskNotFoundError,
)
from taskgraph.core.task import (
    MOVE_NOOP,
    MOVE_RELABEL,
    MOVE_SWAP,
    move_tasks_within_tag,
    move_within_tag,
)
from taskgraph.core.validation import validate_tasks


def _by_title(tag):
    return {t.title: (t.id, list(t.dependencies)) for t in tag.tasks}


class TestMoveWithinTag:
    def test_existing_destination_swaps(self, make_store):
        store = make_store({"A": {1: [], 2: [], 3: [1]}})
        result = move_within_tag(store, "A", 1, 2)

        assert result.action == MOVE_SWAP
        tag = result.store.get_tag("A")
        assert _by_title(tag) == {
            "Task 1": (2, []),
            "Task 2": (1, []),
            # 3 still points at the task that used to be 1
            "Task 3": (3, [2]),
        }
        assert tag.task_ids() == [1, 2, 3]

    def test_swap_leaves_input_untouched(self, make_store):
        store = make_store({"A": {1: [], 2: [1]}})
        before = store.to_dict()
        move_within_tag(store, "A", "1", "2")
        assert store.to_dict() == before

    def test_free_destination_relabels(self, make_store):
        store = make_store({"A": {1: [], 2: [1], 3: []}})
        result = move_within_tag(store, "A", 1, 5)

        assert result.action == MOVE_RELABEL
        tag = result.store.get_tag("A")
        assert tag.task_ids() == [2, 3, 5]
        assert tag.find_task(2).dependencies == [5]
        assert validate_tasks(tag.tasks).valid

    def test_identity_is_noop(self, make_store):
        store = make_store({"A": {1: [], 2: [1]}})
        result = move_within_tag(store, "A", 2, "2")

        assert result.action == MOVE_NOOP
        assert [t.model_dump() for t in result.store.get_tag("A").tasks] == [
            t.model_dump() for t in store.get_tag("A").tasks
        ]

    def test_swap_twice_restores_graph(self, make_store):
        store = make_store({"A": {1: [], 2: [1], 3: [2]}})
        once = move_within_tag(store, "A", 1, 3)
        twice = move_within_tag(once.store, "A", 3, 1)
        assert _by_title(twice.store.get_tag("A")) == _by_title(store.get_tag("A"))

    def test_subtask_references_follow(self, make_store):
        store = make_store(
            {
                "A": {
                    1: {"subtasks": [{"id": 1, "title": "s", "dependencies": ["2.1", 2]}]},
                    2: {"subtasks": [{"id": 1, "title": "t"}]},
                    3: {"parentTaskId": 2},
                }
            }
        )
        tag = move_within_tag(store, "A", 2, 7).store.get_tag("A")

        assert tag.find_task(1).subtasks[0].dependencies == ["7.1", 7]
        assert tag.find_task(3).parent_task_id == 7

    def test_relabel_onto_sibling_subtask_id_rejected(self, make_store):
        store = make_store(
            {
                "A": {
                    1: {"subtasks": [{"id": 1, "title": "s", "dependencies": [3]}, {"id": 2, "title": "t"}]},
                    3: [],
                }
            }
        )
        with pytest.raises(DependencyError):
            move_within_tag(store, "A", 3, 2)
        assert store.get_tag("A").task_ids() == [1, 3]

    @pytest.mark.parametrize("from_id, to_id", [("1.1", 2), (1, "2.1")])
    def test_subtask_addresses_rejected(self, make_store, from_id, to_id):
        with pytest.raises(SubtaskMoveError):
            move_within_tag(make_store({"A": {1: [], 2: []}}), "A", from_id, to_id)

    def test_relabel_onto_dangling_id_rejected(self, make_store):
        store = make_store({"A": {1: [], 2: [5]}})
        with pytest.raises(DanglingReferenceError) as exc_info:
            move_within_tag(store, "A", 1, 5)
        assert exc_info.value.details["references"] == [{"task_id": 5, "owners": ["2"]}]

    def test_missing_source(self, make_store):
        with pytest.raises(TaskNotFoundError):
            move_within_tag(make_store({"A": {1: []}}), "A", 4, 5)

    def test_missing_tag(self, make_store):
        with pytest.raises(TagNotFoundError):
            move_within_tag(make_store({"A": {1: []}}), "B", 1, 2)


class TestBatchMove:
    def test_partial_failure_keeps_good_pairs(self, make_store):
        store = make_store({"A": {1: [], 2: [1]}})
        result = move_tasks_within_tag(store, "A", "1,9,2", [10, 11, 12])

        assert result.success is False
        assert [(m.from_id, m.to_id) for m in result.moved] == [(1, 10), (2, 12)]
        assert result.failed[0]["from_id"] == "9"
        assert result.failed[0]["error"]["code"] == "TASK_NOT_FOUND"
        tag = result.store.get_tag("A")
        assert tag.task_ids() == [10, 12]
        assert tag.find_task(12).dependencies == [10]

        payload = result.to_dict()
        assert payload["moved_count"] == 2
        assert payload["failed_count"] == 1

    def test_pairs_apply_in_order(self, make_store):
        store = make_store({"A": {1: [], 2: []}})
        result = move_tasks_within_tag(store, "A", [1, 2], [5, 1])
        assert _by_title(result.store.get_tag("A")) == {"Task 1": (5, []), "Task 2": (1, [])}

    def test_size_mismatch(self, make_store):
        with pytest.raises(BatchSizeMismatchError):
            move_tasks_within_tag(make_store({"A": {1: []}}), "A", "1,2", "3")

    def test_malformed_id_applies_nothing(self, make_store):
        with pytest.raises(InvalidTaskIdError):
            move_tasks_within_tag(make_store({"A": {1: []}}), "A", "1,x", "3,4")

    def test_unknown_tag(self, make_store):
        with pytest.raises(TagNotFoundError):
            move_tasks_within_tag(make_store({"A": {1: []}}), "B", "1", "2")
