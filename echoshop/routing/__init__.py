"""Capability routing module."""

from .router import (
    TASK_CAPABILITIES,
    CapabilityRouter,
    FirstIdleStrategy,
    ICapabilityRouter,
    SelectionStrategy,
)

__all__ = [
    "TASK_CAPABILITIES",
    "CapabilityRouter",
    "FirstIdleStrategy",
    "ICapabilityRouter",
    "SelectionStrategy",
]
