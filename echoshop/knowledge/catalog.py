"""Fixed restaurant catalog and default user profiles."""

from ..models import Dish, Restaurant, UserProfile

RESTAURANT_CATALOG: tuple[Restaurant, ...] = (
    Restaurant(
        id="1",
        name="Tony's Italian",
        cuisine="Italian",
        dishes=(
            Dish("Margherita Pizza", 18.99, vegetarian=True),
            Dish("Pasta Carbonara", 16.99, vegetarian=False),
            Dish("Bruschetta", 8.99, vegetarian=True),
        ),
        rating=4.8,
        delivery_time="25-35 min",
    ),
    Restaurant(
        id="2",
        name="Golden Dragon",
        cuisine="Asian",
        dishes=(
            Dish("Kung Pao Chicken", 15.99, vegetarian=False),
            Dish("Vegetable Stir Fry", 13.99, vegetarian=True),
            Dish("Dim Sum Platter", 12.99, vegetarian=False),
        ),
        rating=4.6,
        delivery_time="20-30 min",
    ),
    Restaurant(
        id="3",
        name="Fresh & Green",
        cuisine="Healthy",
        dishes=(
            Dish("Mediterranean Bowl", 14.99, vegetarian=True),
            Dish("Quinoa Salad", 12.99, vegetarian=True),
            Dish("Grilled Salmon", 18.99, vegetarian=False),
        ),
        rating=4.7,
        delivery_time="15-25 min",
    ),
    Restaurant(
        id="4",
        name="Taqueria El Farolito",
        cuisine="Mexican",
        dishes=(
            Dish("Tacos al Pastor", 11.99, vegetarian=False),
            Dish("Veggie Burrito", 10.99, vegetarian=True),
            Dish("Guacamole & Chips", 6.99, vegetarian=True),
        ),
        rating=4.5,
        delivery_time="18-28 min",
    ),
)


def default_profiles() -> list[UserProfile]:
    """Fresh copies of the demo users."""
    return [
        UserProfile(
            id="1",
            name="Sarah Johnson",
            preferences=["Italian", "Vegetarian", "Healthy"],
            dietary=["No nuts", "Low sodium"],
            location="Downtown SF",
            last_order="Mediterranean Bowl from Fresh & Green",
        ),
        UserProfile(
            id="2",
            name="Mike Chen",
            preferences=["Asian", "Spicy", "Quick"],
            dietary=["No shellfish"],
            location="Mission District",
            last_order="Kung Pao Chicken from Golden Dragon",
        ),
        UserProfile(
            id="3",
            name="Emma Rodriguez",
            preferences=["Mexican", "Authentic", "Family-sized"],
            dietary=["Gluten-free"],
            location="North Beach",
            last_order="Tacos al Pastor from Taqueria El Farolito",
        ),
    ]


def restaurant_to_dict(restaurant: Restaurant) -> dict:
    """JSON-friendly view of a catalog entry."""
    return {
        "id": restaurant.id,
        "name": restaurant.name,
        "cuisine": restaurant.cuisine,
        "rating": restaurant.rating,
        "delivery_time": restaurant.delivery_time,
        "dishes": [
            {"name": d.name, "price": d.price, "vegetarian": d.vegetarian}
            for d in restaurant.dishes
        ],
    }
