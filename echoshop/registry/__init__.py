"""Agent registry module."""

from .registry import DEFAULT_AGENTS, AgentRegistry, IAgentRegistry

__all__ = ["AgentRegistry", "IAgentRegistry", "DEFAULT_AGENTS"]
