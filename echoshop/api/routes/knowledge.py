"""User profile, cart and knowledge graph routes."""

from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...app import Application
from ...knowledge import restaurant_to_dict
from ...models import UserProfile


class ProfileResponse(BaseModel):
    id: str
    name: str
    preferences: list[str]
    dietary: list[str]
    location: str
    last_order: str | None
    order_count: int


class CartItemResponse(BaseModel):
    name: str
    restaurant: str
    price: float
    quantity: int
    modifiers: list[str]


class CartResponse(BaseModel):
    items: list[CartItemResponse]
    total: float


class GraphStatsResponse(BaseModel):
    nodes: int
    relationships: int
    users: int


def _require_profile(app: Application, user_id: str) -> UserProfile:
    profile = app.knowledge.get_user_profile(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"Unknown user {user_id}")
    return profile


def create_knowledge_router(app: Application) -> APIRouter:
    """Create knowledge router."""
    router = APIRouter(prefix="/api", tags=["knowledge"])

    @router.get("/users/{user_id}/profile", response_model=ProfileResponse)
    async def get_profile(user_id: str) -> dict:
        profile = _require_profile(app, user_id)
        return {
            "id": profile.id,
            "name": profile.name,
            "preferences": profile.preferences,
            "dietary": profile.dietary,
            "location": profile.location,
            "last_order": profile.last_order,
            "order_count": len(profile.order_history),
        }

    @router.get("/users/{user_id}/recommendations")
    async def get_recommendations(user_id: str) -> list[dict[str, Any]]:
        _require_profile(app, user_id)
        return [
            {**restaurant_to_dict(rec.restaurant), "score": rec.score}
            for rec in app.knowledge.get_personalized_recommendations(user_id)
        ]

    @router.get("/users/{user_id}/cart", response_model=CartResponse)
    async def get_cart(user_id: str) -> dict:
        cart = app.carts.peek(user_id)
        return {
            "items": [
                {
                    "name": item.name,
                    "restaurant": item.restaurant,
                    "price": item.price,
                    "quantity": item.quantity,
                    "modifiers": item.modifiers,
                }
                for item in cart.items
            ],
            "total": cart.total,
        }

    @router.post("/users/{user_id}/checkout", response_model=ProfileResponse)
    async def checkout(user_id: str) -> dict:
        _require_profile(app, user_id)
        try:
            app.carts.checkout(user_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return await get_profile(user_id)

    @router.get("/graph/stats", response_model=GraphStatsResponse)
    async def graph_stats() -> dict:
        return app.knowledge.graph_stats()

    @router.get("/graph")
    async def export_graph() -> dict[str, list[dict[str, Any]]]:
        graph = app.knowledge.export_graph()
        return {
            "nodes": [
                {
                    "id": node.id,
                    "type": node.type.value,
                    "properties": node.properties,
                    "created_at": node.created_at.isoformat(),
                    "updated_at": node.updated_at.isoformat(),
                }
                for node in graph["nodes"]
            ],
            "relationships": [
                {
                    "id": rel.id,
                    "source_id": rel.source_id,
                    "target_id": rel.target_id,
                    "type": rel.type.value,
                    "properties": rel.properties,
                    "created_at": rel.created_at.isoformat(),
                }
                for rel in graph["relationships"]
            ],
        }

    return router
