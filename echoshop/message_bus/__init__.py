"""Message bus module."""

from .bus import IMessageBus, MessageBus, MessageHandler

__all__ = ["IMessageBus", "MessageBus", "MessageHandler"]
