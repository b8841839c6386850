"""Shared test fixtures for the benchmark harness."""

import logging
import shutil
import subprocess
import sys
import textwrap
from pathlib import Path

import pytest

from agency_bench.config import (
    AgentSettings,
    BenchSettings,
    PathSettings,
    QualitySettings,
    SnapshotSettings,
)

FAKE_AGENT = textwrap.dedent(
    """
    import os
    import sys
    import time
    from pathlib import Path

    task_id = sys.argv[sys.argv.index("--task") + 1]
    print(f"agent starting {task_id} mode={os.environ.get('BENCHMARK_MODE')}", flush=True)

    if "slow" in task_id:
        time.sleep(30)

    project = os.environ.get("FAKE_AGENT_PROJECT")
    if project:
        Path(project, f"generated-{task_id}.txt").write_text("agent output")

    if "broken" in task_id:
        print("vite build failed", flush=True)
        print("error: could not resolve import", flush=True)
        sys.exit(1)

    print("Running TypeScript type-check", flush=True)
    print("vite build: built in 1.2s", flush=True)
    print("vitest: 12 tests passed", flush=True)
    print("tokens: 1200 input, 300 output", flush=True)
    """
)


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=repo, check=True, capture_output=True, text=True
    )
    return result.stdout


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """CLI tests reconfigure logging; put the root logger back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def run_git():
    """Run a git command in a repository and return its stdout."""
    return git


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create a git workspace with one commit and a frontend directory."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")

    repo = tmp_path / "project"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "config", "user.email", "bench@example.com")
    git(repo, "config", "user.name", "Bench")
    git(repo, "config", "commit.gpgsign", "false")

    (repo / "README.md").write_text("# demo project\n")
    (repo / ".gitignore").write_text("node_modules/\ndist/\n")
    frontend = repo / "frontend"
    frontend.mkdir()
    (frontend / "package.json").write_text('{"name": "demo"}\n')

    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", "initial")
    return repo


@pytest.fixture
def agency_dir(tmp_path: Path) -> Path:
    """Directory holding a fake agent program."""
    agency = tmp_path / "agency"
    agency.mkdir()
    (agency / "agent.py").write_text(FAKE_AGENT)
    return agency


@pytest.fixture
def bench_settings(tmp_path: Path, agency_dir: Path) -> BenchSettings:
    """Settings pointing every path into tmp_path and running the fake agent."""
    out = tmp_path / "out"
    return BenchSettings(
        paths=PathSettings(
            project_path=tmp_path / "project",
            agency_path=agency_dir,
            results_path=out / "results.json",
            reports_dir=out / "reports",
            tasks_dir=tmp_path / "tasks",
        ),
        agent=AgentSettings(command=[sys.executable, "agent.py"], timeout_minutes=0.05),
        snapshot=SnapshotSettings(install_dirs=[]),
        quality=QualitySettings(
            lint_command=[sys.executable, "-c", "print('[]')"],
            typecheck_command=[sys.executable, "-c", "print('')"],
            frontend_coverage_command=[sys.executable, "-c", "print('All files | 75.0 |')"],
            backend_coverage_command=[
                sys.executable,
                "-c",
                "print('coverage: 50.0% of statements')",
            ],
        ),
    )


@pytest.fixture
def task_dir(tmp_path: Path) -> Path:
    """Three task files; the second one hangs past the deadline."""
    tasks = tmp_path / "tasks"
    tasks.mkdir()
    (tasks / "01-first.json").write_text(
        '{"id": "task-1", "description": "Add a button"}'
    )
    (tasks / "02-second.json").write_text(
        '{"id": "task-2-slow", "description": "Refactor the store"}'
    )
    (tasks / "03-third.yaml").write_text("id: task-3\ndescription: Fix the header\n")
    (tasks / "notes.txt").write_text("not a task")
    return tasks
