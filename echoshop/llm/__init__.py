"""LLM module."""

from .assistant import INTENTS, AssistantReply, ShopAssistant
from .fallback import RuleBasedResponder
from .llm_provider import ILLMProvider, LLMProvider

__all__ = [
    "INTENTS",
    "AssistantReply",
    "ILLMProvider",
    "LLMProvider",
    "RuleBasedResponder",
    "ShopAssistant",
]
