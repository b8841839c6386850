"""Tests for CLI commands."""

import json
from pathlib import Path

import yaml
from click.testing import CliRunner

from agency_bench.cli import main


def _write_config(tmp_path: Path, bench_settings) -> Path:
    config = {
        "paths": {
            name: str(getattr(bench_settings.paths, name))
            for name in ("project_path", "agency_path", "results_path", "reports_dir", "tasks_dir")
        },
        "agent": {
            "command": bench_settings.agent.command,
            "timeout_minutes": bench_settings.agent.timeout_minutes,
        },
        "snapshot": {"install_dirs": []},
        "quality": {
            "lint_command": bench_settings.quality.lint_command,
            "typecheck_command": bench_settings.quality.typecheck_command,
            "frontend_coverage_command": bench_settings.quality.frontend_coverage_command,
            "backend_coverage_command": bench_settings.quality.backend_coverage_command,
        },
    }
    path = tmp_path / "benchmark.yaml"
    path.write_text(yaml.safe_dump(config))
    return path


def _invoke(config_path: Path, *args: str):
    return CliRunner().invoke(main, ["--config", str(config_path), *args])


class TestWorkspaceCommands:
    """Test setup, reset and full-reset."""

    def test_setup_then_reset(self, tmp_path, bench_settings, git_repo):
        config_path = _write_config(tmp_path, bench_settings)

        result = _invoke(config_path, "setup")
        assert result.exit_code == 0, result.output
        assert "Baseline tag benchmark-baseline: created" in result.output

        again = _invoke(config_path, "setup")
        assert "already exists" in again.output

        (git_repo / "scratch.txt").write_text("x")
        reset = _invoke(config_path, "reset")
        assert reset.exit_code == 0, reset.output
        assert not (git_repo / "scratch.txt").exists()

    def test_reset_without_baseline_prints_guidance(self, tmp_path, bench_settings, git_repo):
        config_path = _write_config(tmp_path, bench_settings)

        result = _invoke(config_path, "reset")

        assert result.exit_code == 0
        assert "Run 'agency-bench setup' first" in result.output

    def test_full_reset_without_baseline_fails(self, tmp_path, bench_settings, git_repo):
        config_path = _write_config(tmp_path, bench_settings)

        result = _invoke(config_path, "full-reset")

        assert result.exit_code == 1
        assert "not found" in result.output


class TestRunCommands:
    """Test run, batch, status and report."""

    def test_status_with_no_runs(self, tmp_path, bench_settings):
        config_path = _write_config(tmp_path, bench_settings)

        result = _invoke(config_path, "status")

        assert result.exit_code == 0, result.output
        assert "Total runs: 0" in result.output
        assert "Avg duration: N/A" in result.output

    def test_report_with_no_runs(self, tmp_path, bench_settings):
        config_path = _write_config(tmp_path, bench_settings)

        result = _invoke(config_path, "report")

        assert "No runs recorded yet" in result.output

    def test_run_status_report(self, tmp_path, bench_settings, git_repo):
        config_path = _write_config(tmp_path, bench_settings)
        task_file = tmp_path / "single.json"
        task_file.write_text(json.dumps({"id": "cli-task", "description": "demo"}))
        _invoke(config_path, "setup")

        run = _invoke(config_path, "run", str(task_file))
        assert run.exit_code == 0, run.output
        assert "Task cli-task: completed" in run.output

        status = _invoke(config_path, "status")
        assert "Total runs: 1" in status.output
        assert "Success rate: 100.0%" in status.output

        report = _invoke(config_path, "report")
        assert report.exit_code == 0, report.output
        reports = sorted(bench_settings.paths.reports_dir.iterdir())
        assert [p.suffix for p in reports] == [".json", ".md"]
        assert "## Agency Metrics" in reports[1].read_text()

    def test_batch_defaults_to_configured_tasks_dir(self, tmp_path, bench_settings, git_repo):
        tasks = bench_settings.paths.tasks_dir
        tasks.mkdir()
        (tasks / "a.json").write_text(json.dumps({"id": "a"}))
        config_path = _write_config(tmp_path, bench_settings)

        result = _invoke(config_path, "batch")

        assert result.exit_code == 0, result.output
        assert "Batch complete: 1 run(s)" in result.output
        assert "a: completed" in result.output

    def test_unknown_command_prints_usage(self, tmp_path, bench_settings):
        config_path = _write_config(tmp_path, bench_settings)

        result = _invoke(config_path, "explode")

        assert result.exit_code == 2
        assert "Usage" in result.output
