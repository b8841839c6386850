"""Workspace baseline management."""

from .snapshot import (
    BaselineSetup,
    MissingBaselineError,
    WorkspaceCommandError,
    WorkspaceSnapshotter,
    WorkspaceState,
)

__all__ = [
    "WorkspaceSnapshotter",
    "WorkspaceState",
    "BaselineSetup",
    "MissingBaselineError",
    "WorkspaceCommandError",
]
