"""Cart models."""

from dataclasses import dataclass, field


@dataclass
class CartItem:
    """One line in a user's cart."""

    name: str
    restaurant: str
    price: float
    quantity: int = 1
    modifiers: list[str] = field(default_factory=list)

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity
