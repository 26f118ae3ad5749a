"""Knowledge store module."""

from .catalog import RESTAURANT_CATALOG, default_profiles, restaurant_to_dict
from .extraction import extract_preferences, needs_vegetarian
from .store import IKnowledgeStore, KnowledgeStore, node_id, relationship_id

__all__ = [
    "IKnowledgeStore",
    "KnowledgeStore",
    "RESTAURANT_CATALOG",
    "default_profiles",
    "extract_preferences",
    "needs_vegetarian",
    "node_id",
    "relationship_id",
    "restaurant_to_dict",
]
