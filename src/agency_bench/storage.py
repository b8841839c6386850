"""Results file persistence and report artifacts."""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

from .report import render_markdown
from .schemas.run import ResultsFile

ReportFormat = Literal["markdown", "json", "all"]


def load_results(path: Path) -> ResultsFile:
    """Load the results file, or an empty one if it does not exist yet."""
    if not path.exists():
        return ResultsFile()
    with open(path) as f:
        return ResultsFile.model_validate_json(f.read())


def save_results(results: ResultsFile, path: Path) -> Path:
    """Rewrite the results file atomically."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    with open(tmp_path, "w") as f:
        f.write(results.model_dump_json(indent=2))
    tmp_path.replace(path)
    return path


def write_report(
    summary: dict[str, Any],
    reports_dir: Path,
    fmt: ReportFormat = "all",
) -> list[Path]:
    """Write timestamped Markdown and/or JSON report files."""
    reports_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(UTC).strftime("%Y%m%d-%H%M%S-%f")
    written = []

    if fmt in ("markdown", "all"):
        md_path = reports_dir / f"benchmark-{stamp}.md"
        md_path.write_text(render_markdown(summary))
        written.append(md_path)

    if fmt in ("json", "all"):
        json_path = reports_dir / f"benchmark-{stamp}.json"
        json_path.write_text(json.dumps(summary, indent=2, default=str))
        written.append(json_path)

    return written
