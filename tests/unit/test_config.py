"""Tests for configuration loading from defaults, TOML and environment."""

import logging

from taskgraph.config import TaskGraphConfig, get_config, set_config


class TestDefaults:
    def test_defaults(self):
        config = TaskGraphConfig.from_env()
        assert config.tasks_file is None
        assert config.default_tag == "master"
        assert config.backup_on_save is True
        assert config.fix_max_iterations == 25
        assert config.log_level == "INFO"
        assert config.structured_logging is False

    def test_get_config_is_cached(self):
        assert get_config() is get_config()
        set_config(None)
        assert get_config() is not None


class TestEnvironment:
    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("TASKGRAPH_DEFAULT_TAG", "main")
        monkeypatch.setenv("TASKGRAPH_FIX_MAX_ITERATIONS", "5")
        monkeypatch.setenv("TASKGRAPH_BACKUP_ON_SAVE", "false")
        monkeypatch.setenv("TASKGRAPH_LOG_LEVEL", "debug")
        monkeypatch.setenv("TASKGRAPH_TASKS_FILE", "data/tasks.json")

        config = TaskGraphConfig.from_env()
        assert config.default_tag == "main"
        assert config.fix_max_iterations == 5
        assert config.backup_on_save is False
        assert config.log_level == "DEBUG"
        assert str(config.tasks_file) == "data/tasks.json"

    def test_invalid_int_falls_back(self, monkeypatch, caplog):
        monkeypatch.setenv("TASKGRAPH_FIX_MAX_ITERATIONS", "lots")
        with caplog.at_level(logging.WARNING, logger="taskgraph"):
            config = TaskGraphConfig.from_env()
        assert config.fix_max_iterations == 25
        assert "TASKGRAPH_FIX_MAX_ITERATIONS" in caplog.text

    def test_unrecognized_bool_ignored(self, monkeypatch):
        monkeypatch.setenv("TASKGRAPH_BACKUP_ON_SAVE", "maybe")
        assert TaskGraphConfig.from_env().backup_on_save is True

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("TASKGRAPH_LOG_LEVEL", "chatty")
        assert TaskGraphConfig.from_env().log_level == "INFO"


class TestToml:
    def test_explicit_config_file(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text(
            '[store]\ndefault_tag = "main"\nmax_backups = 2\n'
            '[logging]\nlevel = "warning"\nstructured = true\n'
            "[fixer]\nmax_iterations = 3\n"
        )
        config = TaskGraphConfig.from_env(config_file=str(path))
        assert config.default_tag == "main"
        assert config.max_backups == 2
        assert config.log_level == "WARNING"
        assert config.structured_logging is True
        assert config.fix_max_iterations == 3

    def test_project_file_in_cwd(self, tmp_path):
        (tmp_path / "taskgraph.toml").write_text('[store]\ntasks_file = "graph.json"\n')
        assert TaskGraphConfig.from_env().tasks_file.name == "graph.json"

    def test_project_file_beats_xdg(self, tmp_path):
        xdg = tmp_path / "xdg" / "taskgraph"
        xdg.mkdir(parents=True)
        (xdg / "config.toml").write_text('[store]\ndefault_tag = "user"\nbackup_on_save = false\n')
        (tmp_path / "taskgraph.toml").write_text('[store]\ndefault_tag = "project"\n')

        config = TaskGraphConfig.from_env()
        assert config.default_tag == "project"
        assert config.backup_on_save is False

    def test_env_beats_toml(self, tmp_path, monkeypatch):
        (tmp_path / "taskgraph.toml").write_text('[store]\ndefault_tag = "project"\n')
        monkeypatch.setenv("TASKGRAPH_DEFAULT_TAG", "env")
        assert TaskGraphConfig.from_env().default_tag == "env"

    def test_malformed_toml_keeps_defaults(self, tmp_path):
        (tmp_path / "taskgraph.toml").write_text("[store\n")
        assert TaskGraphConfig.from_env().default_tag == "master"

    def test_missing_explicit_file(self, tmp_path):
        config = TaskGraphConfig.from_env(config_file=str(tmp_path / "absent.toml"))
        assert config.default_tag == "master"


class TestSetupLogging:
    def test_installs_single_handler(self):
        config = TaskGraphConfig(log_level="DEBUG")
        config.setup_logging()
        config.setup_logging()

        logger = logging.getLogger("taskgraph")
        assert logger.level == logging.DEBUG
        assert [h.get_name() for h in logger.handlers].count("taskgraph") == 1
