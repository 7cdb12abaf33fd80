"""Tests for task mutations: add, remove, promote and dependency edits."""

import pytest
from pydantic import ValidationError

from taskgraph.core.errors import (
    CircularDependencyError,
    DanglingReferenceError,
    DependencyError,
    IntegrityError,
    InvalidTaskIdError,
    TaskIdCollisionError,
    TaskNotFoundError,
)
from taskgraph.core.task import (
    add_dependency,
    add_subtask,
    add_task,
    clear_subtasks,
    promote_subtask,
    remove_dependency,
    remove_task,
)
from taskgraph.core.validation import validate_tasks


class TestAddTask:
    def test_assigns_next_id(self, make_store):
        store = make_store({"master": {1: [], 4: []}})
        result = add_task(store, "master", "New", dependencies=["1", 4], priority="high")

        tag = result.store.get_tag("master")
        assert result.task_id == "5"
        assert tag.task_ids() == [1, 4, 5]
        assert tag.find_task(5).dependencies == [1, 4]
        assert tag.find_task(5).priority == "high"
        assert store.get_tag("master").task_ids() == [1, 4]

    def test_explicit_id_inserted_in_order(self, make_store):
        result = add_task(make_store({"master": {1: [], 4: []}}), "master", "New", task_id=2)
        assert result.store.get_tag("master").task_ids() == [1, 2, 4]

    def test_next_id_skips_ids_named_by_unresolved_entries(self, make_store):
        result = add_task(make_store({"master": {1: [3], 2: []}}), "master", "New")

        assert result.task_id == "4"
        assert validate_tasks(result.store.get_tag("master").tasks).counts == {"missing-dependency": 1}

    def test_explicit_id_named_by_unresolved_entry(self, make_store):
        with pytest.raises(DanglingReferenceError) as exc_info:
            add_task(make_store({"master": {1: [3]}}), "master", "New", task_id=3)
        assert exc_info.value.code == "DANGLING_REFERENCE"
        assert exc_info.value.details["references"] == [{"task_id": 3, "owners": ["1"]}]

    def test_explicit_id_collision(self, make_store):
        with pytest.raises(TaskIdCollisionError):
            add_task(make_store({"master": {1: []}}), "master", "New", task_id=1)

    def test_missing_dependency(self, make_store):
        with pytest.raises(TaskNotFoundError):
            add_task(make_store({"master": {1: []}}), "master", "New", dependencies=[3])

    def test_subtask_dependency_rejected(self, make_store):
        with pytest.raises(DependencyError):
            add_task(make_store({"master": {1: []}}), "master", "New", dependencies=["1.1"])

    def test_blank_title(self, make_store):
        with pytest.raises(ValidationError):
            add_task(make_store({"master": {}}), "master", " ")


class TestAddSubtask:
    def test_appends_with_next_subtask_id(self, make_store):
        store = make_store({"master": {1: {"subtasks": [{"id": 2, "title": "s"}]}, 2: []}})
        result = add_subtask(store, "master", 1, "New sub", dependencies=[2, 2])

        assert result.task_id == "1.3"
        subtask = result.store.get_tag("master").find_task(1).find_subtask(3)
        # 2 is a sibling subtask id, so it names 1.2
        assert subtask.dependencies == [2]

    def test_skips_ids_existing_entries_would_resolve_to(self, make_store):
        store = make_store(
            {
                "master": {
                    1: {"subtasks": [{"id": 1, "title": "s", "dependencies": [2]}]},
                    2: {"subtasks": [{"id": 1, "title": "t", "dependencies": ["1.3"]}]},
                }
            }
        )
        result = add_subtask(store, "master", 1, "New sub")

        # 1.1 depends on task 2 and 2.1 names a missing 1.3
        assert result.task_id == "1.4"
        assert result.store.get_tag("master").find_task(1).subtasks[0].dependencies == [2]

    def test_cross_task_address(self, make_store):
        store = make_store({"master": {1: [], 2: {"subtasks": [{"id": 1, "title": "s"}]}}})
        result = add_subtask(store, "master", "1", "New sub", dependencies=["2.1"])
        assert result.store.get_tag("master").find_task(1).subtasks[0].dependencies == ["2.1"]

    def test_dangling_dependency_rejected(self, make_store):
        with pytest.raises(IntegrityError) as exc_info:
            add_subtask(make_store({"master": {1: []}}), "master", 1, "New sub", dependencies=[7])
        assert exc_info.value.details["violations"][0]["kind"] == "missing-dependency"

    def test_parent_must_be_a_task(self, make_store):
        with pytest.raises(InvalidTaskIdError):
            add_subtask(make_store({"master": {1: []}}), "master", "1.1", "x")


class TestRemoveTask:
    def test_cascades_to_dependents(self, make_store):
        store = make_store({"master": {1: [], 2: [1], 3: [1, 2]}})
        result = remove_task(store, "master", 1)

        tag = result.store.get_tag("master")
        assert {t.id: t.dependencies for t in tag.tasks} == {2: [], 3: [2]}
        assert result.warnings == [
            "Removed dependency 2 -> 1 (1 removed)",
            "Removed dependency 3 -> 1 (1 removed)",
        ]
        assert result.to_dict()["removed_dependencies"] == 2

    def test_removing_task_drops_references_to_its_subtasks(self, make_store):
        store = make_store(
            {"master": {1: {"subtasks": [{"id": 1, "title": "s"}]}, 2: {"subtasks": [{"id": 1, "title": "t", "dependencies": ["1.1"]}]}}}
        )
        tag = remove_task(store, "master", 1).store.get_tag("master")
        assert tag.find_task(2).subtasks[0].dependencies == []

    def test_remove_subtask(self, make_store):
        store = make_store(
            {"master": {1: {"subtasks": [{"id": 1, "title": "s"}, {"id": 2, "title": "t", "dependencies": [1]}]}}}
        )
        result = remove_task(store, "master", "1.1")

        parent = result.store.get_tag("master").find_task(1)
        assert [s.id for s in parent.subtasks] == [2]
        assert parent.subtasks[0].dependencies == []
        assert len(result.warnings) == 1

    def test_logs_dropped_edges(self, make_store, caplog):
        with caplog.at_level("WARNING", logger="taskgraph"):
            remove_task(make_store({"master": {1: [], 2: [1]}}), "master", 1)
        assert "Removed dependency 2 -> 1" in caplog.text

    @pytest.mark.parametrize("task_id", [9, "1.9"])
    def test_missing(self, make_store, task_id):
        with pytest.raises(TaskNotFoundError):
            remove_task(make_store({"master": {1: []}}), "master", task_id)


class TestClearSubtasks:
    @pytest.fixture
    def store(self, make_store):
        return make_store(
            {
                "master": {
                    1: {"subtasks": [{"id": 1, "title": "a"}, {"id": 2, "title": "b", "dependencies": [1]}]},
                    2: {"subtasks": [{"id": 1, "title": "c", "dependencies": ["1.2"]}]},
                    3: [],
                }
            }
        )

    def test_clears_named_tasks_and_drops_references(self, store):
        result = clear_subtasks(store, "master", "1")

        tag = result.store.get_tag("master")
        assert tag.find_task(1).subtasks == []
        assert tag.find_task(2).subtasks[0].dependencies == []
        assert result.warnings == ["Removed dependency 2.1 -> 1.2 (subtasks cleared)"]
        assert result.to_dict()["cleared"] == {"1": 2}
        assert len(store.get_tag("master").find_task(1).subtasks) == 2

    def test_clears_every_task(self, store):
        result = clear_subtasks(store, "master")

        assert all(t.subtasks == [] for t in result.store.get_tag("master").tasks)
        assert result.warnings == []
        assert result.to_dict()["removed_count"] == 3

    def test_task_without_subtasks_is_left_alone(self, store):
        result = clear_subtasks(store, "master", [3, 3])
        assert result.task_id == "3"
        assert result.to_dict()["cleared"] == {}

    def test_subtask_address_rejected(self, store):
        with pytest.raises(InvalidTaskIdError):
            clear_subtasks(store, "master", "1.1")

    def test_missing_task(self, store):
        with pytest.raises(TaskNotFoundError):
            clear_subtasks(store, "master", "1,9")


class TestPromoteSubtask:
    def test_promotes_and_rewrites_references(self, make_store):
        store = make_store(
            {
                "master": {
                    1: {
                        "subtasks": [
                            {"id": 1, "title": "First", "dependencies": [3]},
                            {"id": 2, "title": "Second", "dependencies": [1]},
                        ]
                    },
                    3: [],
                }
            }
        )
        result = promote_subtask(store, "master", "1.1")

        tag = result.store.get_tag("master")
        promoted = tag.find_task(4)
        assert result.task_id == "4"
        assert promoted.title == "First"
        assert promoted.dependencies == [3]
        assert promoted.parent_task_id == 1
        assert [s.id for s in tag.find_task(1).subtasks] == [2]
        assert tag.find_task(1).subtasks[0].dependencies == [4]
        assert result.warnings == []
        assert result.to_dict()["previous_id"] == "1.1"
        assert validate_tasks(tag.tasks).valid

    def test_new_id_skips_unresolved_reference(self, make_store):
        store = make_store(
            {
                "master": {
                    1: {
                        "subtasks": [
                            {"id": 1, "title": "First", "dependencies": [3]},
                            {"id": 2, "title": "Second"},
                        ]
                    },
                    2: [],
                }
            }
        )
        result = promote_subtask(store, "master", "1.2")

        tag = result.store.get_tag("master")
        assert result.task_id == "4"
        assert tag.find_task(1).subtasks[0].dependencies == [3]
        assert validate_tasks(tag.tasks).counts == {"missing-dependency": 1}

    def test_sibling_dependencies_dropped_with_warning(self, make_store):
        store = make_store(
            {"master": {1: {"subtasks": [{"id": 1, "title": "a"}, {"id": 2, "title": "b", "dependencies": [1]}]}}}
        )
        result = promote_subtask(store, "master", "1.2")

        assert result.store.get_tag("master").find_task(2).dependencies == []
        assert len(result.warnings) == 1

    def test_requires_subtask_address(self, make_store):
        with pytest.raises(InvalidTaskIdError):
            promote_subtask(make_store({"master": {1: []}}), "master", "1")

    def test_missing_subtask(self, make_store):
        with pytest.raises(TaskNotFoundError):
            promote_subtask(make_store({"master": {1: []}}), "master", "1.1")


class TestAddDependency:
    def test_adds_edge(self, make_store):
        result = add_dependency(make_store({"master": {1: [], 2: []}}), "master", 2, 1)
        assert result.store.get_tag("master").find_task(2).dependencies == [1]

    def test_cycle_rejected_with_path(self, make_store):
        store = make_store({"master": {1: [], 2: [1], 3: [2]}})
        with pytest.raises(CircularDependencyError) as exc_info:
            add_dependency(store, "master", 1, 3)
        assert exc_info.value.details["cycle_path"] == ["1", "3", "2", "1"]

    def test_self_reference(self, make_store):
        with pytest.raises(DependencyError):
            add_dependency(make_store({"master": {1: []}}), "master", 1, "1")

    def test_duplicate(self, make_store):
        with pytest.raises(DependencyError):
            add_dependency(make_store({"master": {1: [], 2: [1]}}), "master", 2, 1)

    def test_task_cannot_depend_on_subtask(self, make_store):
        store = make_store({"master": {1: {"subtasks": [{"id": 1, "title": "s"}]}, 2: []}})
        with pytest.raises(DependencyError):
            add_dependency(store, "master", 2, "1.1")

    def test_missing_end(self, make_store):
        with pytest.raises(TaskNotFoundError) as exc_info:
            add_dependency(make_store({"master": {1: []}}), "master", 1, 5)
        assert exc_info.value.details["task_ids"] == ["5"]

    @pytest.mark.parametrize(
        "dependency, entry",
        [("1.2", 2), ("2.1", "2.1"), (3, 3)],
    )
    def test_subtask_entries(self, make_store, dependency, entry):
        store = make_store(
            {
                "master": {
                    1: {"subtasks": [{"id": 1, "title": "a"}, {"id": 2, "title": "b"}]},
                    2: {"subtasks": [{"id": 1, "title": "c"}]},
                    3: [],
                }
            }
        )
        result = add_dependency(store, "master", "1.1", dependency)
        assert result.store.get_tag("master").find_task(1).subtasks[0].dependencies == [entry]

    def test_subtask_reference_ambiguous_with_sibling(self, make_store):
        store = make_store({"master": {1: {"subtasks": [{"id": 1, "title": "a"}, {"id": 2, "title": "b"}]}, 2: []}})
        with pytest.raises(DependencyError):
            add_dependency(store, "master", "1.1", 2)


class TestRemoveDependency:
    def test_removes_edge(self, make_store):
        result = remove_dependency(make_store({"master": {1: [], 2: [1]}}), "master", 2, 1)
        assert result.store.get_tag("master").find_task(2).dependencies == []

    def test_dangling_entry_can_be_removed(self, make_store):
        result = remove_dependency(make_store({"master": {1: [9]}}), "master", 1, 9)
        assert result.store.get_tag("master").find_task(1).dependencies == []

    def test_absent_edge(self, make_store):
        with pytest.raises(DependencyError):
            remove_dependency(make_store({"master": {1: [], 2: []}}), "master", 2, 1)

    def test_missing_owner(self, make_store):
        with pytest.raises(TaskNotFoundError):
            remove_dependency(make_store({"master": {1: []}}), "master", 4, 1)
