"""CLI entrypoint for the benchmark harness."""

from __future__ import annotations

from pathlib import Path

import click
from dotenv import load_dotenv

from .config import BenchSettings, load_settings
from .logging_config import configure_logging
from .runner import TrialOrchestrator
from .schemas.run import RunStatus
from .workspace.snapshot import (
    MissingBaselineError,
    WorkspaceCommandError,
    WorkspaceSnapshotter,
)

ENV_PATH = Path.cwd() / ".env"
DEFAULT_CONFIG_NAMES = ("benchmark.yaml", "benchmark.yml", "benchmark.json")

if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=False)


def _find_config(explicit: Path | None) -> Path | None:
    if explicit is not None:
        return explicit
    for name in DEFAULT_CONFIG_NAMES:
        candidate = Path.cwd() / name
        if candidate.exists():
            return candidate
    return None


def _settings(ctx: click.Context) -> BenchSettings:
    return ctx.obj["settings"]


def _orchestrator(ctx: click.Context) -> TrialOrchestrator:
    return TrialOrchestrator(_settings(ctx))


def _snapshotter(ctx: click.Context) -> WorkspaceSnapshotter:
    config = _settings(ctx)
    return WorkspaceSnapshotter(
        config.paths.project_path, config.snapshot, keep_paths=config.paths.harness_files()
    )


@click.group()
@click.version_option(package_name="agency-bench")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML/JSON config file (default: benchmark.yaml in cwd)",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: Path | None, verbose: bool) -> None:
    """Benchmark an autonomous coding agent against a resettable workspace."""
    config = load_settings(_find_config(config_path))
    configure_logging(config.log_level, verbose=verbose)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = config


@main.command()
@click.argument("task_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def run(ctx: click.Context, task_file: Path) -> None:
    """Run a single task file."""
    orchestrator = _orchestrator(ctx)
    try:
        trial = orchestrator.run_single(task_file)
    except (MissingBaselineError, WorkspaceCommandError) as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"Task {trial.task_id}: {trial.status.value}")
    if trial.duration_ms is not None:
        click.echo(f"Duration: {trial.duration_ms / 1000:.1f}s")
    if trial.status is RunStatus.ERROR:
        click.echo(f"Error: {trial.error}")


@main.command()
@click.argument(
    "task_dir",
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.pass_context
def batch(ctx: click.Context, task_dir: Path | None) -> None:
    """Run every task file in TASK_DIR (default: configured tasks directory)."""
    orchestrator = _orchestrator(ctx)
    try:
        runs = orchestrator.run_batch(task_dir)
    except (FileNotFoundError, WorkspaceCommandError) as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"\nBatch complete: {len(runs)} run(s)")
    for trial in runs:
        click.echo(f"  {trial.task_id}: {trial.status.value}")
    summary = orchestrator.results.summary or {}
    click.echo(f"Success rate: {summary.get('success_rate', 0)}%")


@main.command()
@click.pass_context
def report(ctx: click.Context) -> None:
    """Write Markdown and JSON reports for all recorded runs."""
    orchestrator = _orchestrator(ctx)
    if not orchestrator.runs:
        click.echo("No runs recorded yet")
        return
    for path in orchestrator.generate_report("all"):
        click.echo(f"Report saved to {path}")


@main.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show totals for recorded runs."""
    info = _orchestrator(ctx).status()
    avg = info["avg_duration_ms"]
    click.echo(f"Total runs: {info['total_runs']}")
    click.echo(f"Success rate: {info['success_rate']}%")
    click.echo(f"Avg duration: {'N/A' if avg is None else f'{avg / 1000:.1f}s'}")
    counts = ", ".join(f"{name}={count}" for name, count in info["status_counts"].items())
    click.echo(f"Statuses: {counts}")


@main.command()
@click.pass_context
def setup(ctx: click.Context) -> None:
    """Create the baseline tag and branch at the current HEAD."""
    snapshotter = _snapshotter(ctx)
    try:
        created = snapshotter.setup_baseline()
    except WorkspaceCommandError as exc:
        raise click.ClickException(str(exc)) from exc

    tag_note = "created" if created.tag_created else "already exists"
    branch_note = "created" if created.branch_created else "already exists"
    click.echo(f"Baseline tag {snapshotter.tag}: {tag_note}")
    click.echo(f"Baseline branch {snapshotter.branch}: {branch_note}")


@main.command()
@click.pass_context
def reset(ctx: click.Context) -> None:
    """Restore the workspace to the baseline."""
    snapshotter = _snapshotter(ctx)
    try:
        if not snapshotter.verify_baseline():
            click.echo(f"Baseline '{snapshotter.tag}' not found. Run 'agency-bench setup' first.")
            return
        snapshotter.reset()
    except WorkspaceCommandError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Workspace reset to {snapshotter.tag}")


@main.command(name="full-reset")
@click.pass_context
def full_reset(ctx: click.Context) -> None:
    """Restore the baseline and reinstall dependencies."""
    snapshotter = _snapshotter(ctx)
    try:
        reinstalled = snapshotter.full_reset()
    except (MissingBaselineError, WorkspaceCommandError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Workspace reset to {snapshotter.tag}")
    for directory in reinstalled:
        click.echo(f"Dependencies reinstalled in {directory}")


if __name__ == "__main__":
    main()
