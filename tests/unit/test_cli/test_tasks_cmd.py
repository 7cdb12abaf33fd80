"""Tests for the ``taskgraph tasks`` commands."""


def _deps(data, tag="master"):
    return {t["id"]: t.get("dependencies", []) for t in data[tag]["tasks"]}


class TestAddRemove:
    def test_add(self, invoke, tasks_file, read_tasks):
        result, payload = invoke("tasks", "add", "Write docs", "--dependencies", "2,3", "--priority", "low")

        assert result.exit_code == 0
        assert payload["data"]["task_id"] == "4"
        assert _deps(read_tasks(tasks_file))[4] == [2, 3]

    def test_add_to_other_tag(self, invoke, tasks_file, read_tasks):
        result, payload = invoke("tasks", "add", "Prototype", "--tag", "feature")
        assert payload["data"]["task_id"] == "11"
        assert [t["id"] for t in read_tasks(tasks_file)["feature"]["tasks"]] == [10, 11]

    def test_add_with_missing_dependency(self, invoke):
        result, payload = invoke("tasks", "add", "Orphan", "--dependencies", "9")
        assert result.exit_code == 1
        assert payload["success"] is False
        assert payload["data"]["error_code"] == "TASK_NOT_FOUND"

    def test_add_subtask(self, invoke, tasks_file, read_tasks):
        result, payload = invoke("tasks", "add-subtask", "3", "Write help", "--dependencies", "2")
        assert payload["data"]["task_id"] == "3.3"
        subtasks = read_tasks(tasks_file)["master"]["tasks"][2]["subtasks"]
        assert subtasks[-1]["dependencies"] == [2]

    def test_remove_reports_dropped_edges(self, invoke, tasks_file, read_tasks):
        result, payload = invoke("tasks", "remove", "2")

        assert result.exit_code == 0
        assert payload["meta"]["warnings"] == ["Removed dependency 3 -> 2 (2 removed)"]
        assert _deps(read_tasks(tasks_file)) == {1: [], 3: []}

    def test_invalid_id(self, invoke):
        result, payload = invoke("tasks", "remove", "abc")
        assert result.exit_code == 1
        assert payload["data"]["error_code"] == "INVALID_TASK_ID"

    def test_promote(self, invoke, tasks_file, read_tasks):
        result, payload = invoke("tasks", "promote", "3.1")

        assert payload["data"]["task_id"] == "4"
        tasks = read_tasks(tasks_file)["master"]["tasks"]
        assert tasks[-1]["title"] == "Parse args"
        assert tasks[-1]["parentTaskId"] == 3
        assert tasks[2]["subtasks"][0]["dependencies"] == [4]

    def test_clear_subtasks(self, invoke, tasks_file, read_tasks):
        result, payload = invoke("tasks", "clear-subtasks", "--id", "3")

        assert result.exit_code == 0
        assert payload["data"]["cleared"] == {"3": 2}
        assert read_tasks(tasks_file)["master"]["tasks"][2].get("subtasks", []) == []

    def test_clear_subtasks_needs_a_selection(self, invoke, tasks_file, read_tasks):
        before = read_tasks(tasks_file)
        result, payload = invoke("tasks", "clear-subtasks")

        assert result.exit_code == 1
        assert payload["data"]["error_code"] == "VALIDATION_ERROR"
        assert read_tasks(tasks_file) == before


class TestDependencies:
    def test_add_dep(self, invoke, tasks_file, read_tasks):
        result, _ = invoke("tasks", "add-dep", "3", "1")
        assert result.exit_code == 0
        assert _deps(read_tasks(tasks_file))[3] == [2, 1]

    def test_add_dep_cycle(self, invoke):
        result, payload = invoke("tasks", "add-dep", "1", "3")
        assert result.exit_code == 1
        assert payload["data"]["error_code"] == "CIRCULAR_DEPENDENCY"
        assert payload["data"]["details"]["cycle_path"] == ["1", "3", "2", "1"]

    def test_remove_dep(self, invoke, tasks_file, read_tasks):
        result, _ = invoke("tasks", "remove-dep", "2", "1")
        assert result.exit_code == 0
        assert _deps(read_tasks(tasks_file))[2] == []


class TestMove:
    def test_relabel(self, invoke, tasks_file, read_tasks):
        result, payload = invoke("tasks", "move", "--from", "1", "--to", "7")

        assert payload["data"]["action"] == "relabel"
        assert _deps(read_tasks(tasks_file)) == {2: [7], 3: [2], 7: []}

    def test_swap(self, invoke, tasks_file, read_tasks):
        result, payload = invoke("tasks", "move", "--from", "1", "--to", "2")

        assert payload["data"]["action"] == "swap"
        assert _deps(read_tasks(tasks_file)) == {1: [2], 2: [], 3: [1]}

    def test_batch_with_failure(self, invoke):
        result, payload = invoke("tasks", "move", "--from", "1,9", "--to", "7,8")

        assert result.exit_code == 0
        assert payload["data"]["moved_count"] == 1
        assert payload["data"]["failed_count"] == 1
        assert payload["data"]["saved"] is True
        assert payload["meta"]["warnings"][0].startswith("Move 9 -> 8 failed")

    def test_move_cross_conflict(self, invoke, tasks_file, read_tasks):
        result, payload = invoke("tasks", "move-cross", "2", "--from-tag", "master", "--to-tag", "feature")

        assert result.exit_code == 1
        assert payload["data"]["error_code"] == "CROSS_TAG_DEPENDENCY_CONFLICTS"
        assert len(payload["data"]["details"]["conflicts"]) == 2
        assert len(read_tasks(tasks_file)["master"]["tasks"]) == 3

    def test_move_cross_ignore_dependencies(self, invoke, tasks_file, read_tasks):
        result, payload = invoke(
            "tasks", "move-cross", "2", "--from-tag", "master", "--to-tag", "feature", "--ignore-dependencies"
        )

        assert result.exit_code == 0
        assert len(payload["meta"]["warnings"]) == 2
        data = read_tasks(tasks_file)
        assert _deps(data) == {1: [], 3: []}
        assert _deps(data, "feature") == {10: [], 2: []}

    def test_move_cross_subtask_rejected(self, invoke):
        result, payload = invoke("tasks", "move-cross", "3.1", "--from-tag", "master", "--to-tag", "feature")
        assert result.exit_code == 1
        assert payload["data"]["error_code"] == "SUBTASK_MOVE_NOT_SUPPORTED"
