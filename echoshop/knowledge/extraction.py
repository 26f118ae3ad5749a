"""Keyword extraction of cuisine preferences and dietary tags from free text.

Plain case-insensitive substring matching: no weighting, no negation
handling ("not vegetarian" still yields "Vegetarian").
"""

CUISINE_TERMS: tuple[str, ...] = (
    "italian",
    "asian",
    "mexican",
    "indian",
    "mediterranean",
    "american",
    "thai",
    "japanese",
    "chinese",
    "korean",
)

# (substring, canonical tag)
DIETARY_TERMS: tuple[tuple[str, str], ...] = (
    ("vegetarian", "Vegetarian"),
    ("vegan", "Vegan"),
    ("gluten-free", "Gluten-free"),
    ("no nuts", "No nuts"),
    ("no dairy", "No dairy"),
    ("low sodium", "Low sodium"),
    ("no shellfish", "No shellfish"),
)


def extract_preferences(text: str) -> tuple[list[str], list[str]]:
    """Return (preferences, dietary) found in text, deduplicated, vocabulary order."""
    lowered = text.lower()

    preferences = [term for term in CUISINE_TERMS if term in lowered]

    dietary: list[str] = []
    for term, tag in DIETARY_TERMS:
        if term in lowered and tag not in dietary:
            dietary.append(tag)

    return preferences, dietary


def needs_vegetarian(dietary: list[str]) -> bool:
    """True if any dietary tag mentions vegetarian or vegan."""
    return any(
        "vegetarian" in tag.lower() or "vegan" in tag.lower() for tag in dietary
    )
