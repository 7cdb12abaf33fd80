"""Tests for the ``taskgraph tags`` commands."""


class TestTagsList:
    def test_lists_tags(self, invoke):
        result, payload = invoke("tags", "list")

        assert result.exit_code == 0
        assert payload["success"] is True
        assert payload["data"]["count"] == 2
        master, feature = payload["data"]["tags"]
        assert master["name"] == "master"
        assert master["is_current"] is True
        assert master["task_count"] == 3
        assert master["subtask_count"] == 2
        assert master["completed_tasks"] == 1
        assert feature["description"] == "Feature work"

    def test_missing_tasks_file(self, invoke, tmp_path):
        result, payload = invoke("tags", "list", tasks_path=tmp_path / "nowhere.json")
        assert result.exit_code == 1
        assert payload["data"]["error_code"] == "NOT_FOUND"


class TestTagsCreate:
    def test_create_and_save(self, invoke, tasks_file, read_tasks):
        result, payload = invoke("tags", "create", "release", "--copy-from", "feature")

        assert result.exit_code == 0
        assert payload["data"]["task_count"] == 1
        assert payload["data"]["saved"] is True
        data = read_tasks(tasks_file)
        assert list(data) == ["master", "feature", "release"]
        assert data["release"]["tasks"][0]["id"] == 10
        assert data["release"]["metadata"]["description"] == "Copy of 'feature'"

    def test_existing_tag(self, invoke):
        result, payload = invoke("tags", "create", "feature")
        assert result.exit_code == 1
        assert payload["data"]["error_code"] == "TAG_EXISTS"

    def test_creates_file_when_missing(self, invoke, tmp_path, read_tasks):
        path = tmp_path / "fresh.json"
        result, payload = invoke("tags", "create", "ideas", tasks_path=path)

        assert result.exit_code == 0
        assert list(read_tasks(path)) == ["master", "ideas"]

    def test_dry_run_does_not_save(self, invoke, tasks_file, read_tasks):
        result, payload = invoke("--dry-run", "tags", "create", "x")
        assert result.exit_code == 0
        assert payload["data"]["saved"] is False
        assert "x" not in read_tasks(tasks_file)


class TestTagsRenameCopyDelete:
    def test_rename_keeps_position(self, invoke, tasks_file, read_tasks):
        result, payload = invoke("tags", "rename", "feature", "spike")
        assert result.exit_code == 0
        assert payload["data"]["previous_name"] == "feature"
        assert list(read_tasks(tasks_file)) == ["master", "spike"]

    def test_rename_protected(self, invoke):
        result, payload = invoke("tags", "rename", "master", "main")
        assert result.exit_code == 1
        assert payload["data"]["error_code"] == "PROTECTED_TAG"

    def test_copy(self, invoke, tasks_file, read_tasks):
        result, payload = invoke("tags", "copy", "master", "backup")
        assert result.exit_code == 0
        assert payload["data"]["operation"] == "copy"
        assert len(read_tasks(tasks_file)["backup"]["tasks"]) == 3

    def test_delete_requires_confirmation(self, invoke, tasks_file, read_tasks):
        result, payload = invoke("tags", "delete", "feature")
        assert result.exit_code == 1
        assert payload["data"]["error_code"] == "VALIDATION_ERROR"
        assert "feature" in read_tasks(tasks_file)

    def test_delete(self, invoke, tasks_file, read_tasks):
        result, payload = invoke("tags", "delete", "feature", "--yes")
        assert result.exit_code == 0
        assert payload["meta"]["warnings"] == ["Deleted 1 task(s) along with tag 'feature'"]
        assert list(read_tasks(tasks_file)) == ["master"]

    def test_delete_unknown(self, invoke):
        result, payload = invoke("tags", "delete", "nope", "--yes")
        assert result.exit_code == 1
        assert payload["data"]["error_code"] == "TAG_NOT_FOUND"
