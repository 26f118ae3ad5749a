"""In-memory knowledge graph of users, preferences and orders.

Node and relationship identities are content-addressed, so upserting the
same fact twice leaves the store unchanged. There is no locking: concurrent
pipeline runs for the same user get last-writer-wins preference merges.
"""

import re
from datetime import datetime, timezone
from typing import Any, Protocol

from ..logging_config import get_logger
from ..models import (
    GraphNode,
    GraphRelationship,
    NodeType,
    OrderRecord,
    Recommendation,
    RelationshipType,
    Restaurant,
    UserProfile,
)
from .catalog import RESTAURANT_CATALOG, default_profiles
from .extraction import extract_preferences, needs_vegetarian

logger = get_logger(__name__)

CUISINE_MATCH_BONUS = 0.5
VEGETARIAN_FIT_BONUS = 0.3
ORDERED_BEFORE_BONUS = 0.2

_WHITESPACE = re.compile(r"\s+")


def node_id(node_type: NodeType, value: str) -> str:
    """Deterministic node id for a (type, value) pair."""
    normalized = _WHITESPACE.sub("_", value.strip()).lower()
    return f"{node_type.value.lower()}_{normalized}"


def relationship_id(source_id: str, rel_type: RelationshipType, target_id: str) -> str:
    """Deterministic edge id for a (source, type, target) triple."""
    return f"{source_id}_{rel_type.value}_{target_id}"


def _user_node_id(user_id: str) -> str:
    return f"user_{user_id}"


def _merge_unique(existing: list[str], new: list[str]) -> list[str]:
    merged = list(existing)
    for item in new:
        if item not in merged:
            merged.append(item)
    return merged


def cuisine_matches(restaurant: Restaurant, preferences: list[str]) -> bool:
    cuisine = restaurant.cuisine.lower()
    return any(pref.lower() in cuisine for pref in preferences)


def personalization_score(restaurant: Restaurant, profile: UserProfile) -> float:
    """Rating plus cuisine, dietary-fit and order-history bonuses."""
    score = restaurant.rating

    if cuisine_matches(restaurant, profile.preferences):
        score += CUISINE_MATCH_BONUS

    if needs_vegetarian(profile.dietary) and restaurant.has_vegetarian_dish:
        score += VEGETARIAN_FIT_BONUS

    if any(order.restaurant == restaurant.name for order in profile.order_history):
        score += ORDERED_BEFORE_BONUS

    return score


class IKnowledgeStore(Protocol):
    """Typed node/relationship store plus user profiles."""

    @property
    def catalog(self) -> tuple[Restaurant, ...]:
        ...

    def get_or_create_node(
        self, node_type: NodeType, value: str, properties: dict | None = None
    ) -> GraphNode:
        ...

    def create_relationship(
        self,
        source_id: str,
        rel_type: RelationshipType,
        target_id: str,
        properties: dict | None = None,
    ) -> GraphRelationship:
        ...

    def get_user_profile(self, user_id: str) -> UserProfile | None:
        ...

    def update_user_preferences(
        self, user_id: str, preferences: list[str], dietary: list[str]
    ) -> UserProfile | None:
        ...

    def add_order_to_history(self, user_id: str, order: OrderRecord) -> UserProfile | None:
        ...

    def get_personalized_recommendations(self, user_id: str) -> list[Recommendation]:
        ...

    def extract_preferences_from_conversation(
        self, text: str
    ) -> tuple[list[str], list[str]]:
        ...


class KnowledgeStore:
    """Knowledge graph with a personalization scorer over a fixed catalog."""

    def __init__(
        self,
        catalog: tuple[Restaurant, ...] = RESTAURANT_CATALOG,
        seed: bool = True,
    ):
        self._catalog = catalog
        self._nodes: dict[str, GraphNode] = {}
        self._relationships: dict[str, GraphRelationship] = {}
        self._profiles: dict[str, UserProfile] = {}

        if seed:
            for profile in default_profiles():
                self.create_user_profile(profile)

    @property
    def catalog(self) -> tuple[Restaurant, ...]:
        return self._catalog

    # Nodes and relationships
    def get_or_create_node(
        self, node_type: NodeType, value: str, properties: dict | None = None
    ) -> GraphNode:
        """Return the node for (type, value), creating it on first use."""
        nid = node_id(node_type, value)
        existing = self._nodes.get(nid)
        if existing is not None:
            return existing

        now = datetime.now(timezone.utc)
        node = GraphNode(
            id=nid,
            type=node_type,
            properties={"value": value, **(properties or {})},
            created_at=now,
            updated_at=now,
        )
        self._nodes[nid] = node
        return node

    def create_relationship(
        self,
        source_id: str,
        rel_type: RelationshipType,
        target_id: str,
        properties: dict | None = None,
    ) -> GraphRelationship:
        """Return the edge for (source, type, target), creating it on first use."""
        rid = relationship_id(source_id, rel_type, target_id)
        existing = self._relationships.get(rid)
        if existing is not None:
            return existing

        relationship = GraphRelationship(
            id=rid,
            source_id=source_id,
            target_id=target_id,
            type=rel_type,
            properties=dict(properties or {}),
            created_at=datetime.now(timezone.utc),
        )
        self._relationships[rid] = relationship
        return relationship

    def get_node(self, nid: str) -> GraphNode | None:
        return self._nodes.get(nid)

    def relationships_from(self, source_id: str) -> list[GraphRelationship]:
        return [r for r in self._relationships.values() if r.source_id == source_id]

    # Profiles
    def create_user_profile(self, profile: UserProfile) -> UserProfile:
        """Register a profile and link its preference, dietary and address nodes."""
        self._profiles[profile.id] = profile

        now = datetime.now(timezone.utc)
        user_nid = _user_node_id(profile.id)
        user_node = self._nodes.get(user_nid)
        if user_node is None:
            self._nodes[user_nid] = GraphNode(
                id=user_nid,
                type=NodeType.USER,
                properties={"name": profile.name, "location": profile.location},
                created_at=now,
                updated_at=now,
            )
        else:
            user_node.properties.update(name=profile.name, location=profile.location)
            user_node.updated_at = now

        self._link_tags(user_nid, profile.preferences, profile.dietary)

        if profile.location:
            address = self.get_or_create_node(NodeType.ADDRESS, profile.location)
            self.create_relationship(user_nid, RelationshipType.LIVES_AT, address.id)

        return profile

    def get_user_profile(self, user_id: str) -> UserProfile | None:
        return self._profiles.get(user_id)

    def profiles(self) -> list[UserProfile]:
        return list(self._profiles.values())

    def update_user_preferences(
        self, user_id: str, preferences: list[str], dietary: list[str]
    ) -> UserProfile | None:
        """Merge new tags into the profile (first-seen order). Unknown user is a no-op."""
        profile = self._profiles.get(user_id)
        if profile is None:
            logger.warning("Preference update for unknown user %s ignored", user_id)
            return None

        profile.preferences = _merge_unique(profile.preferences, preferences)
        profile.dietary = _merge_unique(profile.dietary, dietary)

        user_nid = _user_node_id(user_id)
        user_node = self._nodes.get(user_nid)
        if user_node is not None:
            user_node.updated_at = datetime.now(timezone.utc)

        self._link_tags(user_nid, preferences, dietary)
        return profile

    def add_order_to_history(self, user_id: str, order: OrderRecord) -> UserProfile | None:
        """Append an order, update last_order and link it into the graph."""
        profile = self._profiles.get(user_id)
        if profile is None:
            logger.warning("Order for unknown user %s ignored", user_id)
            return None

        if order.timestamp is None:
            order.timestamp = datetime.now(timezone.utc)

        profile.order_history.append(order)
        profile.last_order = f"{order.dish} from {order.restaurant}"

        user_nid = _user_node_id(user_id)
        order_node = self.get_or_create_node(
            NodeType.ORDER_HISTORY,
            f"{user_id}_{len(profile.order_history)}",
            properties={
                "dish": order.dish,
                "restaurant": order.restaurant,
                "price": order.price,
                "quantity": order.quantity,
                "timestamp": order.timestamp.isoformat(),
            },
        )
        self.create_relationship(user_nid, RelationshipType.ORDERED_DISH, order_node.id)

        restaurant_node = self.get_or_create_node(NodeType.RESTAURANT, order.restaurant)
        self.create_relationship(user_nid, RelationshipType.ORDERED_FROM, restaurant_node.id)
        return profile

    def _link_tags(self, user_nid: str, preferences: list[str], dietary: list[str]) -> None:
        for pref in preferences:
            node = self.get_or_create_node(NodeType.PREFERENCE, pref)
            self.create_relationship(user_nid, RelationshipType.HAS_PREFERENCE, node.id)

        for diet in dietary:
            node = self.get_or_create_node(NodeType.DIETARY_RESTRICTION, diet)
            self.create_relationship(
                user_nid, RelationshipType.HAS_DIETARY_RESTRICTION, node.id
            )

    # Personalization
    def get_personalized_recommendations(self, user_id: str) -> list[Recommendation]:
        """Catalog entries matching the user's cuisines and dietary needs, best first."""
        profile = self._profiles.get(user_id)
        if profile is None:
            return []

        vegetarian_required = needs_vegetarian(profile.dietary)
        candidates = [
            restaurant
            for restaurant in self._catalog
            if cuisine_matches(restaurant, profile.preferences)
            and (not vegetarian_required or restaurant.has_vegetarian_dish)
        ]

        scored = [
            Recommendation(restaurant=r, score=personalization_score(r, profile))
            for r in candidates
        ]
        # sorted() is stable: ties keep catalog order
        return sorted(scored, key=lambda rec: rec.score, reverse=True)

    def extract_preferences_from_conversation(
        self, text: str
    ) -> tuple[list[str], list[str]]:
        return extract_preferences(text)

    # Introspection
    def graph_stats(self) -> dict[str, int]:
        return {
            "nodes": len(self._nodes),
            "relationships": len(self._relationships),
            "users": len(self._profiles),
        }

    def export_graph(self) -> dict[str, list[Any]]:
        return {
            "nodes": list(self._nodes.values()),
            "relationships": list(self._relationships.values()),
        }
