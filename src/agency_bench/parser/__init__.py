"""Parsers for agent output."""

from .agent_output import parse_agent_output

__all__ = ["parse_agent_output"]
