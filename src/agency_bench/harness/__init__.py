"""Agent process harness."""

from .invoker import AgentInvoker, AgentLaunchError, AgentTimeoutError, write_task_descriptor

__all__ = ["AgentInvoker", "AgentLaunchError", "AgentTimeoutError", "write_task_descriptor"]
