"""Task definition schema for benchmark trials."""

import time
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator


class GroundTruth(BaseModel):
    """Expected planning and discovery results used to grade the agent."""

    intent: str | None = Field(default=None, description="Expected task intent")
    keywords: list[str] = Field(default_factory=list, description="Expected PM keywords")
    files: list[str] = Field(default_factory=list, description="Files the agent should find")


class Task(BaseModel):
    """A unit of work handed to the agent."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Task identifier")
    name: str = Field(default="", description="Human-readable name")
    description: str = Field(default="", description="What the agent should do")
    priority: str = Field(default="high")
    ground_truth: GroundTruth | None = Field(default=None)

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("id"):
            data["id"] = f"task-{int(time.time() * 1000)}"
        if not data.get("name"):
            data["name"] = data["id"]
        return data

    @classmethod
    def from_file(cls, path: Path) -> "Task":
        """Load a task from a JSON or YAML file."""
        with path.open() as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Task file must contain a mapping: {path}")
        return cls.model_validate(data)
