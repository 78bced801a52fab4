"""
CLI checks for validating and running workflow files.
"""
import json
import logging
import os
import subprocess
import sys
from pathlib import Path

import pytest
from click.testing import CliRunner
from rich.console import Console

import cli.main as cli_main
from shared.config import CronWorkflowConfig
from shared.logger import ColoredFormatter, get_logger, resolve_level

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _write_workflow(tmp_path, nodes, edges=None):
    if edges is None:
        edges = [
            {"id": f"e{i}", "source": a["id"], "target": b["id"]}
            for i, (a, b) in enumerate(zip(nodes, nodes[1:]), start=1)
        ]
    path = tmp_path / "workflow.json"
    path.write_text(json.dumps({"version": "v1", "nodes": nodes, "edges": edges}), encoding="utf-8")
    return str(path)


@pytest.fixture(autouse=True)
def cli_environment(monkeypatch):
    # CliRunner swaps stdout per invocation; keep the cached console handler out of it.
    monkeypatch.setattr(cli_main, "get_logger", lambda *args, **kwargs: logging.getLogger("cron_workflow"))
    monkeypatch.setattr(cli_main.workflow_config, "max_delay_seconds", 0)
    monkeypatch.setattr(cli_main, "console", Console(width=200))


class TestValidateCommand:
    """`validate` compiles a workflow file."""

    def test_valid_workflow_prints_order(self, tmp_path):
        path = _write_workflow(
            tmp_path,
            [
                {"id": "start", "type": "start"},
                {"id": "greet", "type": "text_event", "text": "hello"},
                {"id": "pause", "type": "delay", "delay_seconds": 5},
            ],
        )

        result = CliRunner().invoke(cli_main.cli, ["validate", path])

        assert result.exit_code == 0, result.output
        assert "Workflow is valid" in result.output
        assert "greet" in result.output
        assert "pause" in result.output
        assert "Node types: start, delay, if_event, text_event" in result.output

    def test_invalid_workflow_exits_non_zero(self, tmp_path):
        path = _write_workflow(
            tmp_path,
            [
                {"id": "start", "type": "start"},
                {"id": "greet", "type": "text_event", "text": "hello"},
                {"id": "orphan", "type": "delay"},
            ],
            edges=[{"id": "e1", "source": "start", "target": "greet"}],
        )

        result = CliRunner().invoke(cli_main.cli, ["validate", path])

        assert result.exit_code == 1
        assert "not reachable from start" in result.output

    def test_missing_file(self, tmp_path):
        result = CliRunner().invoke(cli_main.cli, ["validate", str(tmp_path / "nope.json")])

        assert result.exit_code != 0
        assert "Cannot read" in result.output


class TestRunCommand:
    """`run` executes a workflow with the builtin handlers."""

    def test_json_output_is_the_execution_trace(self, tmp_path):
        path = _write_workflow(
            tmp_path,
            [
                {"id": "start", "type": "start"},
                {"id": "greet", "type": "text_event", "text": "hello"},
                {"id": "pause", "type": "delay", "delay_seconds": 5},
            ],
        )

        result = CliRunner().invoke(cli_main.cli, ["run", path, "--format", "json"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["had_failures"] is False
        assert payload["run_id"].startswith("run-")
        assert [(n["node_id"], n["status"]) for n in payload["nodes"]] == [
            ("greet", "succeeded"),
            ("pause", "succeeded"),
        ]

    def test_if_event_uses_job_fields(self, tmp_path):
        path = _write_workflow(
            tmp_path,
            [
                {"id": "start", "type": "start"},
                {"id": "gate", "type": "if_event", "if_condition": "channel == slack"},
                {"id": "greet", "type": "text_event", "text": "hello"},
            ],
        )

        result = CliRunner().invoke(cli_main.cli, ["run", path, "-f", "json"])

        assert result.exit_code == 0, result.output
        statuses = [n["status"] for n in json.loads(result.stdout)["nodes"]]
        assert statuses == ["succeeded", "skipped"]

    def test_json_output_stays_parseable_with_engine_logging(self, tmp_path):
        path = _write_workflow(
            tmp_path,
            [
                {"id": "start", "type": "start"},
                {"id": "greet", "type": "text_event", "text": "hello"},
            ],
        )
        env = {**os.environ, "LOG_LEVEL": "INFO", "MAX_DELAY_SECONDS": "0"}

        completed = subprocess.run(
            [sys.executable, "-m", "cli.main", "run", path, "-f", "json"],
            cwd=PROJECT_ROOT,
            env=env,
            capture_output=True,
            text=True,
            timeout=60,
        )

        assert completed.returncode == 0, completed.stderr
        payload = json.loads(completed.stdout)
        assert [n["node_id"] for n in payload["nodes"]] == ["greet"]
        assert "workflow run" in completed.stderr

    def test_table_output_echoes_text_events(self, tmp_path):
        path = _write_workflow(
            tmp_path,
            [
                {"id": "start", "type": "start"},
                {"id": "greet", "type": "text_event", "text": "hello there"},
            ],
        )

        result = CliRunner().invoke(
            cli_main.cli,
            ["run", path, "--job", json.dumps({"name": "nightly", "dispatch": {"channel": "slack"}})],
        )

        assert result.exit_code == 0, result.output
        assert "[slack] nightly: hello there" in result.output
        assert "succeeded" in result.output

    def test_invalid_job_json(self, tmp_path):
        path = _write_workflow(
            tmp_path,
            [{"id": "start", "type": "start"}, {"id": "greet", "type": "text_event", "text": "hi"}],
        )

        result = CliRunner().invoke(cli_main.cli, ["run", path, "--job", "{broken"])

        assert result.exit_code == 1
        assert "Invalid job JSON payload" in result.output


class TestConfigAndLogging:
    """Settings and console logger helpers."""

    def test_config_command_lists_settings(self):
        result = CliRunner().invoke(cli_main.cli, ["config"])

        assert result.exit_code == 0
        assert "default_dispatch_channel" in result.output

    def test_settings_read_environment(self, monkeypatch):
        monkeypatch.setenv("RUN_ID_PREFIX", "nightly")
        monkeypatch.setenv("MAX_DELAY_SECONDS", "2")

        settings = CronWorkflowConfig(_env_file=None)

        assert settings.run_id_prefix == "nightly"
        assert settings.max_delay_seconds == 2
        assert settings.is_delay_capped

    def test_resolve_level(self):
        assert resolve_level("debug") == logging.DEBUG
        assert resolve_level(logging.WARNING) == logging.WARNING
        assert resolve_level("nonsense") == logging.INFO

    def test_colored_formatter_leaves_record_untouched(self):
        record = logging.LogRecord("x", logging.WARNING, __file__, 1, "careful", None, None)

        formatted = ColoredFormatter("%(levelname)s %(message)s").format(record)

        assert "careful" in formatted
        assert "\033[33m" in formatted
        assert record.levelname == "WARNING"

    def test_console_logger_writes_to_stderr(self):
        logger = get_logger("cron_workflow.tests.stderr_check", "INFO")

        assert [handler.stream for handler in logger.handlers] == [sys.stderr]
