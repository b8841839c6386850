"""Centralized configuration using pydantic-settings.

All configurable values for the benchmark harness.
Values can be overridden via environment variables with BENCH_ prefix,
or loaded from a YAML/JSON config file with ``load_settings``.

Example:
    BENCH_AGENT__TIMEOUT_MINUTES=45
    BENCH_PATHS__PROJECT_PATH=/srv/project
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PathSettings(BaseSettings):
    """Filesystem locations used by the harness."""

    model_config = SettingsConfigDict(env_prefix="BENCH_PATHS__")

    project_path: Path = Field(
        default=Path("."),
        description="Git workspace the agent operates on",
    )
    agency_path: Path = Field(
        default=Path("."),
        description="Directory containing the agent program",
    )
    results_path: Path = Field(
        default=Path("results.json"),
        description="Results file rewritten after every trial",
    )
    reports_dir: Path = Field(default=Path("reports"), description="Report output directory")
    tasks_dir: Path = Field(default=Path("tasks"), description="Default batch task directory")

    def harness_files(self) -> list[Path]:
        """Harness-owned paths that a workspace clean must leave alone."""
        return [self.results_path, self.reports_dir, self.tasks_dir]


class AgentSettings(BaseSettings):
    """Agent subprocess configuration."""

    model_config = SettingsConfigDict(env_prefix="BENCH_AGENT__")

    command: list[str] = Field(
        default_factory=lambda: ["node", "orchestrator.cjs"],
        description="Agent argv; '--task <id>' is appended",
    )
    timeout_minutes: float = Field(
        default=30,
        gt=0,
        description="Deadline before the agent is killed",
    )
    env_flag: str = Field(
        default="BENCHMARK_MODE",
        description="Environment variable set to 'true' for the agent",
    )
    task_subdir: str = Field(
        default="tasks",
        description="Directory under agency_path receiving task descriptors",
    )


class SnapshotSettings(BaseSettings):
    """Workspace baseline configuration."""

    model_config = SettingsConfigDict(env_prefix="BENCH_SNAPSHOT__")

    baseline_tag: str = Field(default="benchmark-baseline", description="Baseline git tag")
    baseline_branch: str = Field(default="benchmark-base", description="Baseline git branch")
    preserve_patterns: list[str] = Field(
        default_factory=list,
        description="Paths excluded from 'git clean' (passed as -e)",
    )
    install_dirs: list[str] = Field(
        default_factory=lambda: ["frontend"],
        description="Directories reinstalled on full reset",
    )
    install_command: list[str] = Field(
        default_factory=lambda: ["npm", "ci"],
        description="Dependency install command for full reset",
    )
    git_timeout: int = Field(default=60, description="Timeout for git commands")
    install_timeout: int = Field(default=600, description="Timeout for dependency install")


class QualitySettings(BaseSettings):
    """Quality tool commands and thresholds."""

    model_config = SettingsConfigDict(env_prefix="BENCH_QUALITY__")

    frontend_dir: str = Field(default="frontend", description="Frontend subdirectory")
    backend_dir: str = Field(default="backend", description="Backend subdirectory")
    lint_command: list[str] = Field(
        default_factory=lambda: [
            "npx",
            "eslint",
            ".",
            "--ext",
            ".vue,.js,.jsx,.cjs,.mjs,.ts,.tsx",
            "--format",
            "json",
        ],
    )
    typecheck_command: list[str] = Field(
        default_factory=lambda: ["npx", "tsc", "--noEmit"],
    )
    frontend_coverage_command: list[str] = Field(
        default_factory=lambda: [
            "npm",
            "run",
            "test:unit",
            "--",
            "--coverage",
            "--reporter=json-summary",
        ],
    )
    backend_coverage_command: list[str] = Field(
        default_factory=lambda: ["go", "test", "./...", "-cover", "-json"],
    )
    tool_timeout: int = Field(default=60, description="Timeout for lint and typecheck")
    coverage_timeout: int = Field(default=120, description="Timeout for coverage runs")
    coverage_target: float = Field(default=80, description="Coverage percentage to pass")
    output_limit: int = Field(default=1000, description="Max stored tool output chars")


class ModelPrice(BaseModel):
    """USD price per token for one model."""

    input: float = Field(ge=0)
    output: float = Field(ge=0)


def _default_pricing() -> dict[str, ModelPrice]:
    return {
        "openrouter/google/gemini-2.5-flash-lite": ModelPrice(input=0.000000075, output=0.0000003),
        "openrouter/openai/gpt-4o-mini": ModelPrice(input=0.00000015, output=0.0000006),
        "openrouter/anthropic/claude-3.5-sonnet": ModelPrice(input=0.000003, output=0.000015),
        "openrouter/z-ai/glm-5": ModelPrice(input=0.0000001, output=0.0000004),
    }


class LLMJudgeSettings(BaseSettings):
    """LLM code-quality judge configuration."""

    model_config = SettingsConfigDict(env_prefix="BENCH_LLM_JUDGE__")

    enabled: bool = Field(default=False, description="Score each trial's diff with an LLM")
    model: str = Field(
        default="anthropic/claude-sonnet-4-20250514",
        description="LLM model for code-quality scoring",
    )
    max_tokens: int = Field(default=300, description="Max tokens for judge response")
    max_diff_chars: int = Field(
        default=20000,
        description="Max diff characters to send to judge",
    )
    max_retries: int = Field(default=2, description="Max retries for LLM calls")


class BenchSettings(BaseSettings):
    """Root configuration for the benchmark harness.

    All settings can be overridden via environment variables with BENCH_ prefix.
    Nested settings use double underscore: BENCH_AGENT__TIMEOUT_MINUTES=45
    """

    model_config = SettingsConfigDict(
        env_prefix="BENCH_",
        env_nested_delimiter="__",
    )

    paths: PathSettings = Field(default_factory=PathSettings)
    agent: AgentSettings = Field(default_factory=AgentSettings)
    snapshot: SnapshotSettings = Field(default_factory=SnapshotSettings)
    quality: QualitySettings = Field(default_factory=QualitySettings)
    llm_judge: LLMJudgeSettings = Field(default_factory=LLMJudgeSettings)
    pricing: dict[str, ModelPrice] = Field(default_factory=_default_pricing)
    log_level: str = Field(default="INFO", description="Diagnostic log level")


def load_settings(config_path: Path | None = None) -> BenchSettings:
    """Build settings from the environment, overlaid with a config file.

    The file may be YAML or JSON. Relative paths inside the ``paths``
    section are resolved against the config file's directory.
    """
    if config_path is None or not config_path.exists():
        return BenchSettings()

    data: dict[str, Any] = yaml.safe_load(config_path.read_text()) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    base = BenchSettings()
    merged = base.model_dump()
    for section, values in data.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values

    loaded = BenchSettings.model_validate(merged)
    root = config_path.resolve().parent
    for name in ("project_path", "agency_path", "results_path", "reports_dir", "tasks_dir"):
        value = getattr(loaded.paths, name)
        if not value.is_absolute():
            setattr(loaded.paths, name, root / value)
    return loaded


# Singleton instance
settings = BenchSettings()
