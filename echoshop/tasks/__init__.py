"""Task lifecycle module."""

from .handlers import StageHandler, StageHandlers
from .manager import REQUESTER, ITaskManager, SystemStatus, TaskManager

__all__ = [
    "REQUESTER",
    "ITaskManager",
    "StageHandler",
    "StageHandlers",
    "SystemStatus",
    "TaskManager",
]
