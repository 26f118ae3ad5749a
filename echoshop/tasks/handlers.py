"""The seven pipeline stage handlers."""

from typing import Awaitable, Callable

from ..errors import CompletionError
from ..knowledge import IKnowledgeStore, restaurant_to_dict
from ..llm import RuleBasedResponder, ShopAssistant
from ..logging_config import get_logger
from ..message_bus import IMessageBus
from ..models import DataUpdatePayload, Priority, Recommendation, TaskType, UserProfile
from ..ordering import CartService, parse_order

logger = get_logger(__name__)


StageHandler = Callable[[dict], Awaitable[dict]]

RECOMMENDATION_LIMIT = 3


def _recommendation_to_dict(rec: Recommendation) -> dict:
    return {**restaurant_to_dict(rec.restaurant), "score": round(rec.score, 4)}


class StageHandlers:
    """Stage work, selected by task type. Each handler maps task input to output."""

    def __init__(
        self,
        knowledge: IKnowledgeStore,
        assistant: ShopAssistant,
        carts: CartService,
        message_bus: IMessageBus,
        responder: RuleBasedResponder | None = None,
    ):
        self._knowledge = knowledge
        self._assistant = assistant
        self._carts = carts
        self._bus = message_bus
        self._responder = responder or RuleBasedResponder()

    def for_type(self, task_type: TaskType) -> StageHandler:
        return {
            TaskType.VOICE_INPUT: self.voice_input,
            TaskType.INTENT_CLASSIFICATION: self.classify_intent,
            TaskType.PROFILE_UPDATE: self.update_profile,
            TaskType.RESTAURANT_SEARCH: self.search_restaurants,
            TaskType.ORDER_PROCESSING: self.process_order,
            TaskType.RECOMMENDATION_GENERATION: self.generate_recommendations,
            TaskType.RESPONSE_GENERATION: self.generate_response,
        }[task_type]

    def _profile(self, user_id: str) -> UserProfile:
        profile = self._knowledge.get_user_profile(user_id)
        return profile if profile is not None else UserProfile(id=user_id, name="Guest")

    async def voice_input(self, task_input: dict) -> dict:
        """Passthrough of the transcribed utterance."""
        return {
            "processed_audio": task_input["audio_input"],
            "confidence": task_input.get("confidence"),
        }

    async def classify_intent(self, task_input: dict) -> dict:
        user_input = task_input["user_input"]
        try:
            result = await self._assistant.classify_intent(user_input)
            source = "completion"
        except CompletionError as e:
            logger.warning("Intent classification fell back to keywords: %s", e)
            result = self._responder.classify_intent(user_input)
            source = "rule_based"
        return {**result, "source": source}

    async def update_profile(self, task_input: dict) -> dict:
        user_id = task_input["user_id"]
        preferences, dietary = self._knowledge.extract_preferences_from_conversation(
            task_input["user_input"]
        )
        profile = self._knowledge.update_user_preferences(user_id, preferences, dietary)

        if profile is not None and (preferences or dietary):
            await self._bus.send(
                sender="profile-manager",
                recipient="recommendation",
                payload=DataUpdatePayload(
                    entity=f"user:{user_id}",
                    data={"preferences": preferences, "dietary": dietary},
                ),
                priority=Priority.MEDIUM,
            )

        return {"updated_preferences": preferences, "updated_dietary": dietary}

    async def search_restaurants(self, task_input: dict) -> dict:
        recommendations = self._knowledge.get_personalized_recommendations(task_input["user_id"])
        return {"restaurants": [_recommendation_to_dict(r) for r in recommendations]}

    async def process_order(self, task_input: dict) -> dict:
        """Add the requested dish to the user's in-memory cart."""
        user_id = task_input["user_id"]
        search = task_input.get("search_results") or {}
        preferred = [r["name"] for r in search.get("restaurants", [])]

        item = parse_order(task_input["user_input"], self._knowledge.catalog, preferred)
        cart = self._carts.add_item(user_id, item)

        return {
            "order_status": "added_to_cart",
            "items": [item.name],
            "item": {
                "name": item.name,
                "restaurant": item.restaurant,
                "price": item.price,
                "quantity": item.quantity,
                "modifiers": list(item.modifiers),
            },
            "cart_total": cart.total,
        }

    async def generate_recommendations(self, task_input: dict) -> dict:
        recommendations = self._knowledge.get_personalized_recommendations(task_input["user_id"])
        return {
            "recommendations": [
                _recommendation_to_dict(r) for r in recommendations[:RECOMMENDATION_LIMIT]
            ]
        }

    async def generate_response(self, task_input: dict) -> dict:
        """Structured call, then legacy call, then local templates."""
        user_id = task_input["user_id"]
        user_input = task_input["user_input"]
        history = task_input.get("history") or []
        profile = self._profile(user_id)

        try:
            reply = await self._assistant.respond(
                user_input, profile, context=task_input.get("context"), history=history
            )
            source = "completion"
        except CompletionError as e:
            logger.warning("Structured completion failed, trying legacy call: %s", e)
            try:
                reply = await self._assistant.respond_legacy(user_input, profile, history=history)
                source = "legacy"
            except CompletionError as e:
                logger.warning("Legacy completion failed, using local templates: %s", e)
                reply = self._responder.respond(user_input, profile, self._carts.peek(user_id))
                source = "rule_based"

        return {
            "response": reply.response,
            "intent": reply.intent,
            "confidence": reply.confidence,
            "entities": reply.entities,
            "metadata": reply.metadata,
            "source": source,
        }
