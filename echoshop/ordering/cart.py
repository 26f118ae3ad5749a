"""In-memory carts used by the order stage."""

import re

from ..knowledge import IKnowledgeStore
from ..logging_config import get_logger
from ..models import CartItem, OrderRecord, Restaurant

logger = get_logger(__name__)

_QUANTITY = re.compile(r"(\d+)")

DEFAULT_ITEM = ("Margherita Pizza", "Tony's Italian", 18.99)
EXTRA_CHEESE_SURCHARGE = 4.0


class Cart:
    """One user's cart."""

    def __init__(self):
        self._items: list[CartItem] = []

    @property
    def items(self) -> list[CartItem]:
        return list(self._items)

    @property
    def total(self) -> float:
        return round(sum(item.subtotal for item in self._items), 2)

    def __len__(self) -> int:
        return len(self._items)

    def add(self, item: CartItem) -> None:
        self._items.append(item)

    def clear(self) -> None:
        self._items.clear()


def _head_word(dish_name: str) -> str:
    # "Margherita Pizza" -> "pizza", "Veggie Burrito" -> "burrito"
    return dish_name.lower().split()[-1]


def parse_order(
    text: str,
    catalog: tuple[Restaurant, ...],
    preferred: list[str] | None = None,
) -> CartItem:
    """Pick the dish named in text, preferring restaurants in `preferred`.

    Full dish names win over head words; with no match the house
    Margherita Pizza is used. Quantity is the first integer in the text.
    """
    lowered = text.lower()

    ordered = list(catalog)
    if preferred:
        ordered.sort(key=lambda r: 0 if r.name in preferred else 1)

    match = None
    for matcher in (lambda d: d.name.lower(), lambda d: _head_word(d.name)):
        for restaurant in ordered:
            for dish in restaurant.dishes:
                if matcher(dish) in lowered:
                    match = (dish.name, restaurant.name, dish.price)
                    break
            if match:
                break
        if match:
            break

    name, restaurant_name, price = match or DEFAULT_ITEM

    quantity_match = _QUANTITY.search(lowered)
    quantity = int(quantity_match.group(1)) if quantity_match else 1

    modifiers = []
    if "extra cheese" in lowered:
        modifiers.append("extra cheese")
        price += EXTRA_CHEESE_SURCHARGE

    return CartItem(
        name=name,
        restaurant=restaurant_name,
        price=round(price, 2),
        quantity=max(quantity, 1),
        modifiers=modifiers,
    )


class CartService:
    """Per-user carts and checkout into the knowledge store."""

    def __init__(self, knowledge: IKnowledgeStore):
        self._knowledge = knowledge
        self._carts: dict[str, Cart] = {}

    def cart(self, user_id: str) -> Cart:
        """The user's cart, created on first use."""
        if user_id not in self._carts:
            self._carts[user_id] = Cart()
        return self._carts[user_id]

    def peek(self, user_id: str) -> Cart:
        """The user's cart, or an empty one that is not kept."""
        return self._carts.get(user_id, Cart())

    def add_item(self, user_id: str, item: CartItem) -> Cart:
        cart = self.cart(user_id)
        cart.add(item)
        logger.info("Added %s x%s to cart of %s", item.name, item.quantity, user_id)
        return cart

    def checkout(self, user_id: str) -> list[OrderRecord]:
        """Record every cart line in the user's order history and empty the cart."""
        cart = self.peek(user_id)
        if not len(cart):
            raise ValueError(f"Cart for user {user_id} is empty")

        records = [
            OrderRecord(
                dish=item.name,
                restaurant=item.restaurant,
                price=item.price,
                quantity=item.quantity,
            )
            for item in cart.items
        ]
        for record in records:
            self._knowledge.add_order_to_history(user_id, record)

        cart.clear()
        logger.info("Checked out %s items for %s", len(records), user_id)
        return records
