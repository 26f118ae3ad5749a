"""Knowledge graph and personalization models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class NodeType(str, Enum):
    """Graph node types."""

    USER = "User"
    PREFERENCE = "Preference"
    CUISINE = "Cuisine"
    DISH = "Dish"
    RESTAURANT = "Restaurant"
    DIETARY_RESTRICTION = "DietaryRestriction"
    ADDRESS = "Address"
    ORDER_HISTORY = "OrderHistory"


class RelationshipType(str, Enum):
    """Graph edge types."""

    HAS_PREFERENCE = "HAS_PREFERENCE"
    LIKES_CUISINE = "LIKES_CUISINE"
    ORDERED_FROM = "ORDERED_FROM"
    HAS_DIETARY_RESTRICTION = "HAS_DIETARY_RESTRICTION"
    LIVES_AT = "LIVES_AT"
    ORDERED_DISH = "ORDERED_DISH"
    SIMILAR_TO = "SIMILAR_TO"


@dataclass
class GraphNode:
    id: str
    type: NodeType
    properties: dict[str, Any]
    created_at: datetime
    updated_at: datetime


@dataclass
class GraphRelationship:
    id: str
    source_id: str
    target_id: str
    type: RelationshipType
    properties: dict[str, Any]
    created_at: datetime


@dataclass
class OrderRecord:
    """A single line of a checked-out order."""

    dish: str
    restaurant: str
    price: float
    quantity: int = 1
    timestamp: datetime | None = None


@dataclass
class UserProfile:
    """Per-user personalization record."""

    id: str
    name: str
    preferences: list[str] = field(default_factory=list)
    dietary: list[str] = field(default_factory=list)
    location: str = ""
    last_order: str | None = None
    order_history: list[OrderRecord] = field(default_factory=list)


@dataclass(frozen=True)
class Dish:
    name: str
    price: float
    vegetarian: bool


@dataclass(frozen=True)
class Restaurant:
    id: str
    name: str
    cuisine: str
    dishes: tuple[Dish, ...]
    rating: float
    delivery_time: str

    @property
    def has_vegetarian_dish(self) -> bool:
        return any(dish.vegetarian for dish in self.dishes)


@dataclass(frozen=True)
class Recommendation:
    """A catalog restaurant with its personalization score."""

    restaurant: Restaurant
    score: float
