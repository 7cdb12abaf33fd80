"""Shared fixtures for CLI command tests."""

import json

import pytest
from click.testing import CliRunner

from taskgraph.cli.main import cli


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture
def invoke(cli_runner, tasks_file):
    """Run ``taskgraph --tasks-file <fixture> ...`` and parse the JSON envelope."""

    def _invoke(*args, tasks_path=None):
        path = tasks_path or tasks_file
        result = cli_runner.invoke(cli, ["--tasks-file", str(path), *args])
        payload = json.loads(result.stdout) if result.stdout.strip() else None
        return result, payload

    return _invoke
