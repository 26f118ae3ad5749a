"""Structured shopping assistant on top of the completion provider."""

import json
import time
from dataclasses import dataclass, field

from ..errors import CompletionError
from ..logging_config import get_logger
from ..models import UserProfile
from .llm_provider import ILLMProvider

logger = get_logger(__name__)

INTENT_CACHE_SIZE = 256


INTENTS: tuple[str, ...] = (
    "search",
    "order",
    "profile_update",
    "recommendation",
    "confirmation",
    "greeting",
    "help",
    "add_to_cart",
)

SYSTEM_PROMPT = """\
You are EchoShop, an AI assistant specializing in voice-first food ordering.

RESPONSE FORMAT: Always respond with a single JSON object:
{
  "response": "Your natural language response",
  "intent": "search|order|profile_update|recommendation|confirmation|greeting|help|add_to_cart",
  "confidence": 0.95,
  "entities": {
    "food": ["pizza", "pasta"],
    "restaurant": ["Tony's Italian"],
    "action": "add_to_cart|search|recommend",
    "quantity": 1,
    "price": 18.99,
    "modifiers": ["extra cheese", "no onions"]
  }
}

ORDER EXTRACTION RULES:
- When the user says "order", "add", "get", "buy", "I want", "give me" the intent is "add_to_cart"
- Extract food items, quantities and modifiers from the input
- Include estimated prices for common items
- Suggest restaurants that match the user's preferences

Keep responses concise (max 150 words) and conversational. Respect the
user's preferences and dietary restrictions.
"""

LEGACY_SYSTEM_PROMPT = """\
You are EchoShop, a friendly voice assistant for ordering food. Answer in
plain conversational prose (no JSON, max 80 words), respecting the user's
preferences and dietary restrictions.
"""

INTENT_PROMPT = (
    "Classify intent as: search, order, profile_update, recommendation, "
    'confirmation, greeting, help. Respond with JSON: {"intent": "search", "confidence": 0.95}'
)


@dataclass
class AssistantReply:
    """Structured completion result."""

    response: str
    intent: str
    confidence: float
    entities: dict = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)


def _clamp(value: object, default: float) -> float:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return min(max(number, 0.0), 1.0)


def _extract_json(text: str) -> dict:
    """Parse the first JSON object in text (models sometimes wrap it in prose)."""
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("no JSON object in completion")
    data = json.loads(text[start : end + 1])
    if not isinstance(data, dict):
        raise ValueError("completion JSON is not an object")
    return data


def _profile_context(profile: UserProfile) -> str:
    return (
        f"User: {', '.join(profile.preferences) or 'no'} preferences, "
        f"{', '.join(profile.dietary) or 'no'} dietary, "
        f"{profile.location or 'unknown'} location"
    )


def _stage_context(context: dict) -> str:
    parts = []
    if context.get("search_results"):
        names = [r["name"] for r in context["search_results"].get("restaurants", [])]
        parts.append(f"Search results: {', '.join(names) or 'none'}")
    if context.get("order_result"):
        order = context["order_result"]
        parts.append(
            f"Cart update: {', '.join(order.get('items', []))} "
            f"(cart total ${order.get('cart_total', 0):.2f})"
        )
    if context.get("recommendations"):
        names = [r["name"] for r in context["recommendations"].get("recommendations", [])]
        parts.append(f"Recommended: {', '.join(names) or 'none'}")
    if context.get("intent"):
        parts.append(f"Detected intent: {context['intent'].get('intent')}")
    return "\n".join(parts)


class ShopAssistant:
    """Wraps the completion provider with EchoShop prompts and parsing."""

    def __init__(
        self,
        llm_provider: ILLMProvider,
        history_limit: int = 4,
        intent_cache_size: int = INTENT_CACHE_SIZE,
    ):
        self._llm = llm_provider
        self._history_limit = history_limit
        self._intent_cache_size = intent_cache_size
        self._intent_cache: dict[str, str] = {}

    def _messages(self, user_input: str, history: list[dict] | None) -> list[dict]:
        # history_limit counts turns; the forwarded slice must open on a user message
        recent = []
        if self._history_limit > 0:
            recent = list(history or [])[-2 * self._history_limit :]
        while recent and recent[0].get("role") != "user":
            recent.pop(0)
        return [*recent, {"role": "user", "content": user_input}]

    async def respond(
        self,
        user_input: str,
        profile: UserProfile,
        context: dict | None = None,
        history: list[dict] | None = None,
    ) -> AssistantReply:
        """Primary structured call. Raises CompletionError when the provider fails."""
        started = time.perf_counter()

        system = "\n\n".join(
            part
            for part in (SYSTEM_PROMPT, _profile_context(profile), _stage_context(context or {}))
            if part
        )

        try:
            content = await self._llm.complete(
                messages=self._messages(user_input, history),
                system=system,
                max_tokens=400,
                temperature=0.3,
            )
        except Exception as e:
            raise CompletionError(str(e)) from e

        metadata = {"processing_time_ms": (time.perf_counter() - started) * 1000}

        try:
            data = _extract_json(content)
        except ValueError:
            logger.warning("Completion was not JSON, using raw text")
            return AssistantReply(
                response=content,
                intent="search",
                confidence=0.8,
                entities={},
                metadata=metadata,
            )

        response = data.get("response")
        if not isinstance(response, str) or not response.strip():
            raise CompletionError("completion JSON has no response text")

        intent = data.get("intent")
        entities = data.get("entities")
        return AssistantReply(
            response=response,
            intent=intent if intent in INTENTS else "help",
            confidence=_clamp(data.get("confidence"), 0.5),
            entities=entities if isinstance(entities, dict) else {},
            metadata=metadata,
        )

    async def respond_legacy(
        self,
        user_input: str,
        profile: UserProfile,
        history: list[dict] | None = None,
    ) -> AssistantReply:
        """Single plain-prose call used when the structured call fails."""
        started = time.perf_counter()
        try:
            content = await self._llm.complete(
                messages=self._messages(user_input, history),
                system=f"{LEGACY_SYSTEM_PROMPT}\n{_profile_context(profile)}",
                max_tokens=200,
            )
        except Exception as e:
            raise CompletionError(str(e)) from e

        if not content.strip():
            raise CompletionError("empty legacy completion")

        return AssistantReply(
            response=content.strip(),
            intent="help",
            confidence=0.5,
            metadata={
                "processing_time_ms": (time.perf_counter() - started) * 1000,
                "legacy": True,
            },
        )

    async def classify_intent(self, user_input: str) -> dict:
        """Return {"intent", "confidence"}; cached per normalized utterance."""
        key = user_input.lower().strip()
        if key in self._intent_cache:
            return {"intent": self._intent_cache[key], "confidence": 0.95}

        try:
            content = await self._llm.complete(
                messages=[{"role": "user", "content": user_input}],
                system=INTENT_PROMPT,
                max_tokens=50,
                temperature=0.1,
            )
            data = _extract_json(content)
        except Exception as e:
            raise CompletionError(f"intent classification failed: {e}") from e

        intent = data.get("intent")
        if intent not in INTENTS:
            raise CompletionError(f"unknown intent label {intent!r}")

        if len(self._intent_cache) >= self._intent_cache_size:
            self._intent_cache.pop(next(iter(self._intent_cache)))
        self._intent_cache[key] = intent
        return {"intent": intent, "confidence": _clamp(data.get("confidence"), 0.5)}
