"""Tests for graph validation rules."""

import pytest

from taskgraph.core.errors import TagNotFoundError
from taskgraph.core.models import Task
from taskgraph.core.validation import (
    CYCLE,
    DUPLICATE_ID,
    INVALID_SUBTASK_ID,
    MISSING_DEPENDENCY,
    SELF_DEPENDENCY,
    GraphIndex,
    build_dependency_graph,
    find_path,
    introduced_violations,
    validate_tags,
    validate_tasks,
)
from taskgraph.core.validation.rules import (
    DEP_INVALID,
    DEP_MISSING,
    DEP_OK,
    DEP_SELF,
    classify_dependency,
)


def _tasks(make_store, graph):
    return make_store({"t": graph}).get_tag("t").tasks


class TestValidateTasks:
    def test_clean_graph(self, make_store):
        result = validate_tasks(_tasks(make_store, {1: [], 2: [1], 3: [1, 2]}))
        assert result.valid is True
        assert result.violations == []
        assert result.cycles == []

    def test_duplicate_ids_reported_once(self):
        tasks = [Task(id=1, title="a"), Task(id=1, title="b"), Task(id=1, title="c")]
        result = validate_tasks(tasks)
        assert [v.kind for v in result.violations] == [DUPLICATE_ID]
        assert result.violations[0].path == ["1"]

    def test_missing_dependency(self, make_store):
        result = validate_tasks(_tasks(make_store, {1: [9]}))
        violation = result.violations[0]
        assert violation.kind == MISSING_DEPENDENCY
        assert violation.path == ["1", "9"]
        assert violation.value == 9
        assert result.valid is False

    def test_self_dependency(self, make_store):
        result = validate_tasks(_tasks(make_store, {1: [1]}))
        assert [v.kind for v in result.violations] == [SELF_DEPENDENCY]

    def test_existence_checked_before_self_reference(self, make_store):
        result = validate_tasks(_tasks(make_store, {1: [1, 9]}))
        assert [v.kind for v in result.violations] == [MISSING_DEPENDENCY, SELF_DEPENDENCY]

    def test_two_cycle(self, make_store):
        result = validate_tasks(_tasks(make_store, {1: [2], 2: [1]}))
        assert result.cycles == [["1", "2"]]
        assert result.violations[0].kind == CYCLE
        assert result.violations[0].message == "Circular dependency: 1 -> 2 -> 1"

    def test_three_cycle_follows_dependency_order(self, make_store):
        result = validate_tasks(_tasks(make_store, {1: [3], 2: [1], 3: [2]}))
        assert result.cycles == [["1", "3", "2"]]

    def test_cycle_through_subtasks(self, make_store):
        tasks = _tasks(
            make_store,
            {
                1: {"subtasks": [{"id": 1, "title": "a", "dependencies": ["2.1"]}]},
                2: {"subtasks": [{"id": 1, "title": "b", "dependencies": ["1.1"]}]},
            },
        )
        assert validate_tasks(tasks).cycles == [["1.1", "2.1"]]

    def test_input_not_mutated(self, make_store):
        tasks = _tasks(make_store, {1: [1, 9], 2: [2]})
        before = [t.model_dump() for t in tasks]
        validate_tasks(tasks)
        assert [t.model_dump() for t in tasks] == before


class TestSubtaskRules:
    def test_int_dependency_prefers_sibling(self, make_store):
        tasks = _tasks(
            make_store,
            {
                1: {"subtasks": [{"id": 1, "title": "a", "dependencies": [2]}, {"id": 2, "title": "b"}]},
            },
        )
        assert validate_tasks(tasks).valid is True
        graph = build_dependency_graph(tasks)
        assert graph[(1, 1)] == [(1, 2)]

    def test_int_dependency_falls_back_to_task(self, make_store):
        tasks = _tasks(make_store, {1: {"subtasks": [{"id": 1, "title": "a", "dependencies": [2]}]}, 2: []})
        assert build_dependency_graph(tasks)[(1, 1)] == [(2, 0)]

    def test_missing_subtask_address(self, make_store):
        tasks = _tasks(make_store, {1: {"subtasks": [{"id": 1, "title": "a", "dependencies": ["4.2"]}]}})
        result = validate_tasks(tasks)
        assert [v.kind for v in result.violations] == [MISSING_DEPENDENCY]
        assert result.violations[0].path == ["1.1", "4.2"]

    def test_duplicate_subtask_ids(self, make_store):
        tasks = _tasks(make_store, {1: {"subtasks": [{"id": 1, "title": "a"}, {"id": 1, "title": "b"}]}})
        assert [v.kind for v in validate_tasks(tasks).violations] == [INVALID_SUBTASK_ID]

    def test_malformed_subtask_dependency(self, make_store):
        tasks = _tasks(make_store, {1: {"subtasks": [{"id": 1, "title": "a", "dependencies": ["x.y"]}]}})
        assert [v.kind for v in validate_tasks(tasks).violations] == [INVALID_SUBTASK_ID]

    def test_subtask_self_reference(self, make_store):
        tasks = _tasks(make_store, {1: {"subtasks": [{"id": 1, "title": "a", "dependencies": [1]}]}})
        assert [v.kind for v in validate_tasks(tasks).violations] == [SELF_DEPENDENCY]


class TestClassifyDependency:
    @pytest.fixture
    def index(self, make_store):
        return GraphIndex(_tasks(make_store, {1: {"subtasks": [{"id": 1, "title": "a"}, {"id": 3, "title": "c"}]}, 2: []}))

    @pytest.mark.parametrize(
        "owner, raw, expected",
        [
            ((1, 0), 2, (DEP_OK, (2, 0))),
            ((1, 0), 5, (DEP_MISSING, (5, 0))),
            ((1, 0), 1, (DEP_SELF, (1, 0))),
            ((1, 1), 3, (DEP_OK, (1, 3))),
            ((1, 1), 2, (DEP_OK, (2, 0))),
            ((1, 1), "1.1", (DEP_SELF, (1, 1))),
            ((2, 0), "1.3", (DEP_OK, (1, 3))),
            ((1, 0), 0, (DEP_INVALID, None)),
            ((1, 0), "nope", (DEP_INVALID, None)),
            ((1, 0), True, (DEP_INVALID, None)),
        ],
    )
    def test_outcomes(self, index, owner, raw, expected):
        assert classify_dependency(index, owner, raw) == expected


class TestValidateTags:
    def test_all_tags(self, make_store):
        store = make_store({"a": {1: []}, "b": {1: [2]}})
        result = validate_tags(store)

        assert set(result.results) == {"a", "b"}
        assert result.valid is False
        assert result.violation_count == 1
        payload = result.to_dict()
        assert payload["tags"]["a"]["valid"] is True
        assert payload["tags"]["b"]["counts"] == {MISSING_DEPENDENCY: 1}

    def test_single_tag(self, make_store):
        result = validate_tags(make_store({"a": {1: []}, "b": {1: [2]}}), "a")
        assert list(result.results) == ["a"]
        assert result.valid is True

    def test_unknown_tag(self, make_store):
        with pytest.raises(TagNotFoundError):
            validate_tags(make_store({"a": {}}), "b")


class TestIntroducedViolations:
    def test_relabeled_existing_violation_is_not_new(self, make_store):
        before = validate_tasks(_tasks(make_store, {1: [9], 2: []}))
        after = validate_tasks(_tasks(make_store, {2: [], 3: [9]}))
        assert introduced_violations(before, after) == []

    def test_new_cycle_is_reported(self, make_store):
        before = validate_tasks(_tasks(make_store, {1: [], 2: [1]}))
        after = validate_tasks(_tasks(make_store, {1: [2], 2: [1]}))
        assert [v.kind for v in introduced_violations(before, after)] == [CYCLE]


def test_find_path(make_store):
    graph = build_dependency_graph(_tasks(make_store, {1: [], 2: [1], 3: [2]}))
    assert find_path(graph, (3, 0), (1, 0)) == [(3, 0), (2, 0), (1, 0)]
    assert find_path(graph, (1, 0), (3, 0)) is None
