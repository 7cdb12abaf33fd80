"""Shared fixtures for unit tests."""

import json
import logging
import os

import pytest

from taskgraph.config import set_config
from taskgraph.core.models import Tag, Task, TagStore


def _task(task_id, fields):
    if isinstance(fields, list):
        return Task(id=task_id, title=f"Task {task_id}", dependencies=fields)
    return Task.model_validate({"id": task_id, "title": f"Task {task_id}", **fields})


def build_store(tags):
    """``{"A": {1: [], 2: [1]}}`` -> TagStore; a dict value holds extra task fields."""
    return TagStore(
        tags={name: Tag(tasks=[_task(task_id, fields) for task_id, fields in tasks.items()]) for name, tasks in tags.items()}
    )


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep user config and TASKGRAPH_* variables out of every test."""
    for key in list(os.environ):
        if key.startswith("TASKGRAPH_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)
    set_config(None)
    yield
    set_config(None)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers that CLI and server setup attach to the package logger."""
    yield
    logger = logging.getLogger("taskgraph")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def make_store():
    return build_store


@pytest.fixture
def tasks_file(tmp_path):
    """A v2 tasks file with a ``master`` and a ``feature`` tag."""
    path = tmp_path / "tasks.json"
    data = {
        "master": {
            "tasks": [
                {"id": 1, "title": "Set up repo", "status": "done", "dependencies": []},
                {"id": 2, "title": "Write parser", "dependencies": [1]},
                {
                    "id": 3,
                    "title": "Write CLI",
                    "dependencies": [2],
                    "subtasks": [
                        {"id": 1, "title": "Parse args", "dependencies": []},
                        {"id": 2, "title": "Print output", "dependencies": [1]},
                    ],
                },
            ],
            "metadata": {
                "created": "2026-01-01T00:00:00Z",
                "updated": "2026-01-01T00:00:00Z",
                "description": "Main line",
                "schemaVersion": 2,
            },
        },
        "feature": {
            "tasks": [{"id": 10, "title": "Spike", "dependencies": []}],
            "metadata": {
                "created": "2026-01-02T00:00:00Z",
                "updated": "2026-01-02T00:00:00Z",
                "description": "Feature work",
                "schemaVersion": 2,
            },
        },
    }
    path.write_text(json.dumps(data, indent=2))
    return path


@pytest.fixture
def read_tasks():
    """Read a tasks file back as raw JSON."""

    def _read(path):
        return json.loads(path.read_text())

    return _read
