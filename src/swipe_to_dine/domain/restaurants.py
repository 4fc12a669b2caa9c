"""Domain models for restaurant candidates and dining filters."""

from dataclasses import dataclass, field
from enum import StrEnum


class PriceLevel(StrEnum):
    """Price tier shown on a restaurant card."""

    BUDGET = "$"
    MODERATE = "$$"
    PRICEY = "$$$"
    LUXURY = "$$$$"


class CuisineType(StrEnum):
    """Cuisine tags used by filters and diner preferences."""

    AMERICAN = "american"
    ITALIAN = "italian"
    MEXICAN = "mexican"
    CHINESE = "chinese"
    JAPANESE = "japanese"
    THAI = "thai"
    INDIAN = "indian"
    MEDITERRANEAN = "mediterranean"
    FRENCH = "french"
    KOREAN = "korean"
    VIETNAMESE = "vietnamese"
    GREEK = "greek"
    BBQ = "bbq"
    SEAFOOD = "seafood"
    PIZZA = "pizza"
    BURGERS = "burgers"
    SUSHI = "sushi"
    VEGAN = "vegan"
    BREAKFAST = "breakfast"
    DESSERT = "dessert"
    BAR = "bar"


@dataclass(frozen=True)
class Restaurant:
    """A restaurant candidate. Never mutated once loaded."""

    id: str
    name: str
    rating: float
    price_level: PriceLevel
    cuisines: tuple[CuisineType, ...]
    address: str
    distance_miles: float
    description: str = ""
    family_friendly: bool = True
    photos: tuple[str, ...] = ()
    lat: float | None = None
    lng: float | None = None
    phone: str | None = None
    website: str | None = None
    hours: str | None = None

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready representation."""
        return {
            "id": self.id,
            "name": self.name,
            "rating": self.rating,
            "price_level": self.price_level.value,
            "cuisines": [cuisine.value for cuisine in self.cuisines],
            "address": self.address,
            "distance_miles": self.distance_miles,
            "description": self.description,
            "family_friendly": self.family_friendly,
            "photos": list(self.photos),
            "lat": self.lat,
            "lng": self.lng,
            "phone": self.phone,
            "website": self.website,
            "hours": self.hours,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "Restaurant":
        """Build a restaurant from a catalogue entry."""
        return cls(
            id=str(payload["id"]),
            name=str(payload["name"]),
            rating=float(payload.get("rating", 0.0)),
            price_level=PriceLevel(payload.get("price_level", PriceLevel.MODERATE)),
            cuisines=tuple(CuisineType(c) for c in payload.get("cuisines", [])),
            address=str(payload.get("address", "")),
            distance_miles=float(payload.get("distance_miles", 0.0)),
            description=str(payload.get("description", "")),
            family_friendly=bool(payload.get("family_friendly", True)),
            photos=tuple(payload.get("photos", [])),
            lat=payload.get("lat"),
            lng=payload.get("lng"),
            phone=payload.get("phone"),
            website=payload.get("website"),
            hours=payload.get("hours"),
        )


@dataclass(frozen=True)
class DiningFilters:
    """Filter criteria captured when a party is created."""

    min_rating: float = 3.0
    max_distance: float = 10.0
    price_range: tuple[PriceLevel, ...] = (
        PriceLevel.BUDGET,
        PriceLevel.MODERATE,
        PriceLevel.PRICEY,
    )
    family_friendly: bool | None = None
    cuisine_types: tuple[CuisineType, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-ready representation."""
        return {
            "min_rating": self.min_rating,
            "max_distance": self.max_distance,
            "price_range": [level.value for level in self.price_range],
            "family_friendly": self.family_friendly,
            "cuisine_types": [cuisine.value for cuisine in self.cuisine_types],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, object] | None) -> "DiningFilters":
        """Build filters from a stored payload, falling back to defaults."""
        if not payload:
            return DEFAULT_FILTERS
        defaults = DEFAULT_FILTERS
        price_range = payload.get("price_range")
        cuisine_types = payload.get("cuisine_types")
        family_friendly = payload.get("family_friendly")
        return cls(
            min_rating=float(payload.get("min_rating", defaults.min_rating)),
            max_distance=float(payload.get("max_distance", defaults.max_distance)),
            price_range=(
                tuple(PriceLevel(level) for level in price_range)
                if isinstance(price_range, list)
                else defaults.price_range
            ),
            family_friendly=(
                family_friendly if isinstance(family_friendly, bool) else None
            ),
            cuisine_types=(
                tuple(CuisineType(cuisine) for cuisine in cuisine_types)
                if isinstance(cuisine_types, list)
                else ()
            ),
        )


DEFAULT_FILTERS = DiningFilters()
