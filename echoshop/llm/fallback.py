"""Local keyword-template responder used when the completion service is down."""

import re

from ..models import UserProfile
from ..ordering import Cart
from .assistant import AssistantReply

ORDER_KEYWORDS = ("order", "add", "get", "buy", "want", "give me", "i need", "bring me")
CHECKOUT_KEYWORDS = ("checkout", "place order", "complete order")
GREETING_WORDS = ("hello", "hi")

_QUANTITY = re.compile(r"(\d+)")
_WORDS = re.compile(r"[a-z']+")


def _quantity(text: str) -> int:
    match = _QUANTITY.search(text)
    return int(match.group(1)) if match else 1


def _is_order(text: str) -> bool:
    return any(keyword in text for keyword in ORDER_KEYWORDS)


def _is_greeting(text: str) -> bool:
    # whole words only: "hi" must not fire on "chips" or "something"
    words = set(_WORDS.findall(text))
    return any(word in words for word in GREETING_WORDS)


def _added(quantity: int, name: str, restaurant: str, price: float, tail: str, **extra) -> AssistantReply:
    entities = {
        "food": [name],
        "restaurant": [restaurant],
        "action": "add_to_cart",
        "quantity": quantity,
        "price": price,
        "modifiers": extra.get("modifiers", []),
    }
    suffix = f" with {', '.join(entities['modifiers'])}" if entities["modifiers"] else ""
    return AssistantReply(
        response=(
            f"Perfect! I've added {quantity} {name}{suffix} from {restaurant} "
            f"to your cart for ${price:.2f}. {tail}"
        ),
        intent="add_to_cart",
        confidence=0.7,
        entities=entities,
        metadata={"fallback": "rule_based"},
    )


def _reply(text: str, intent: str, **entities) -> AssistantReply:
    return AssistantReply(
        response=text,
        intent=intent,
        confidence=0.6,
        entities=entities,
        metadata={"fallback": "rule_based"},
    )


class RuleBasedResponder:
    """Pattern-matches a handful of templates. Never raises."""

    def respond(self, user_input: str, profile: UserProfile, cart: Cart | None = None) -> AssistantReply:
        text = user_input.lower()
        preferences = profile.preferences or ["great"]

        if _is_greeting(text):
            return _reply(
                "Hello! I'm your AI food ordering assistant. I see you prefer "
                f"{' and '.join(preferences)} food. What would you like to order today?",
                "greeting",
            )

        if "pizza" in text:
            if _is_order(text):
                cheese = "cheese" in text
                return _added(
                    _quantity(text),
                    "Margherita Pizza",
                    "Tony's Italian",
                    22.99 if cheese else 18.99,
                    "What else would you like to order?",
                    modifiers=["extra cheese"] if cheese else [],
                )
            return _reply(
                "Great choice! Based on your preference for Italian food, I recommend "
                "Tony's Italian. They have excellent Margherita and Pepperoni pizzas. "
                'Just say "order a pizza" to add it to your cart!',
                "recommendation",
                food=["pizza"],
                restaurant=["Tony's Italian"],
                action="recommend",
            )

        if "italian" in text or "pasta" in text:
            if _is_order(text):
                pasta = "Fettuccine Alfredo" if "fettuccine" in text else "Spaghetti Carbonara"
                return _added(
                    _quantity(text),
                    pasta,
                    "Tony's Italian",
                    16.99,
                    "Would you like to add anything else?",
                )
            return _reply(
                "Excellent! I found Tony's Italian, which matches your preferences. "
                "They offer authentic Italian cuisine with options for your dietary needs. "
                'Just say "order pasta" to add it to your cart!',
                "recommendation",
                restaurant=["Tony's Italian"],
                action="recommend",
            )

        if "vegetarian" in text or "vegan" in text or "salad" in text:
            if _is_order(text):
                salad = "Quinoa Salad" if "quinoa" in text else "Mediterranean Bowl"
                return _added(
                    _quantity(text),
                    salad,
                    "Fresh & Green",
                    14.99,
                    "This matches your dietary preferences perfectly!",
                )
            return _reply(
                "Perfect! I found several vegetarian options that match your dietary "
                "preferences. Fresh & Green has amazing Mediterranean bowls and quinoa "
                'salads. Just say "order a salad" to add it to your cart!',
                "recommendation",
                restaurant=["Fresh & Green"],
                action="recommend",
            )

        # Runs before checkout, so "place order" and "complete order" land here
        if _is_order(text):
            return _reply(
                "I'd be happy to help you order! What specific food item would you like "
                'to add to your cart? You can say things like "order a pizza", '
                '"add pasta", or "get me a salad".',
                "order",
            )

        if any(keyword in text for keyword in CHECKOUT_KEYWORDS):
            count = len(cart) if cart is not None else 0
            total = cart.total if cart is not None else 0.0
            return _reply(
                f"Great! I'm processing your order with {count} items for a total of "
                f"${total:.2f}. Your order will be ready in 25-30 minutes. "
                "Thank you for using EchoShop!",
                "confirmation",
                action="checkout",
            )

        return _reply(
            "I understand you're looking for food options. Based on your preferences "
            f"for {', '.join(preferences)}, I can recommend several restaurants in "
            f"{profile.location or 'your area'}. Just say \"order [food item]\" to add "
            "it to your cart!",
            "help",
        )

    def classify_intent(self, user_input: str) -> dict:
        """Keyword intent used when the intent call fails."""
        text = user_input.lower()
        intent = "help"
        if _is_order(text):
            intent = "add_to_cart"
        if "search" in text or "show" in text or "find" in text:
            intent = "search"
        if _is_greeting(text):
            intent = "greeting"
        return {"intent": intent, "confidence": 0.5}
