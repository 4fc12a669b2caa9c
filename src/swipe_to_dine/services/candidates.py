"""Restaurant candidate search and ranking."""

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from swipe_to_dine.adapters.places_client import PlacesClient
from swipe_to_dine.domain.profiles import DinerProfile
from swipe_to_dine.domain.restaurants import (
    CuisineType,
    DiningFilters,
    PriceLevel,
    Restaurant,
)
from swipe_to_dine.services.cache import Cache

_logger = logging.getLogger(__name__)

_METERS_PER_MILE = 1609.34
_EARTH_RADIUS_MILES = 3959
_MAX_RESULTS = 20

_PLACES_PRICE_LEVELS = [
    "PRICE_LEVEL_FREE",
    "PRICE_LEVEL_INEXPENSIVE",
    "PRICE_LEVEL_MODERATE",
    "PRICE_LEVEL_EXPENSIVE",
    "PRICE_LEVEL_VERY_EXPENSIVE",
]

_PRICE_TO_PLACES = {
    PriceLevel.BUDGET: 1,
    PriceLevel.MODERATE: 2,
    PriceLevel.PRICEY: 3,
    PriceLevel.LUXURY: 4,
}

_PLACES_TO_PRICE = {
    0: PriceLevel.BUDGET,
    1: PriceLevel.BUDGET,
    2: PriceLevel.MODERATE,
    3: PriceLevel.PRICEY,
    4: PriceLevel.LUXURY,
}

_CUISINE_SEARCH_TERMS = {
    CuisineType.BBQ: "barbecue bbq",
    CuisineType.BURGERS: "burger hamburger",
    CuisineType.VEGAN: "vegan vegetarian",
    CuisineType.BREAKFAST: "breakfast brunch",
    CuisineType.DESSERT: "dessert bakery ice cream",
    CuisineType.BAR: "bar pub happy hour",
}

_TYPE_TO_CUISINE = {
    "american_restaurant": CuisineType.AMERICAN,
    "italian_restaurant": CuisineType.ITALIAN,
    "mexican_restaurant": CuisineType.MEXICAN,
    "chinese_restaurant": CuisineType.CHINESE,
    "japanese_restaurant": CuisineType.JAPANESE,
    "thai_restaurant": CuisineType.THAI,
    "indian_restaurant": CuisineType.INDIAN,
    "mediterranean_restaurant": CuisineType.MEDITERRANEAN,
    "french_restaurant": CuisineType.FRENCH,
    "korean_restaurant": CuisineType.KOREAN,
    "vietnamese_restaurant": CuisineType.VIETNAMESE,
    "greek_restaurant": CuisineType.GREEK,
    "barbecue_restaurant": CuisineType.BBQ,
    "seafood_restaurant": CuisineType.SEAFOOD,
    "pizza_restaurant": CuisineType.PIZZA,
    "hamburger_restaurant": CuisineType.BURGERS,
    "sushi_restaurant": CuisineType.SUSHI,
    "vegan_restaurant": CuisineType.VEGAN,
    "vegetarian_restaurant": CuisineType.VEGAN,
    "breakfast_restaurant": CuisineType.BREAKFAST,
    "brunch_restaurant": CuisineType.BREAKFAST,
    "cafe": CuisineType.BREAKFAST,
    "bakery": CuisineType.DESSERT,
    "ice_cream_shop": CuisineType.DESSERT,
    "bar": CuisineType.BAR,
    "wine_bar": CuisineType.BAR,
    "pub": CuisineType.BAR,
    "night_club": CuisineType.BAR,
}


class CandidateSource(Protocol):
    """Live source of restaurants around a location."""

    async def search(
        self, filters: DiningFilters, location: tuple[float, float]
    ) -> list[Restaurant]:
        """Return unranked restaurants near ``location``."""


def matches_filters(restaurant: Restaurant, filters: DiningFilters) -> bool:
    """Return True when a restaurant satisfies every filter."""
    if restaurant.rating < filters.min_rating:
        return False
    if restaurant.distance_miles > filters.max_distance:
        return False
    if filters.price_range and restaurant.price_level not in filters.price_range:
        return False
    if (
        filters.family_friendly is not None
        and restaurant.family_friendly != filters.family_friendly
    ):
        return False
    if filters.cuisine_types and not set(restaurant.cuisines) & set(
        filters.cuisine_types
    ):
        return False
    return True


def filter_score(restaurant: Restaurant, filters: DiningFilters) -> float:
    """Score how well a restaurant fits the filters (higher is better)."""
    score = restaurant.rating - 3
    if filters.max_distance > 0:
        score += (1 - restaurant.distance_miles / filters.max_distance) * 2
    if filters.cuisine_types:
        matching = [c for c in restaurant.cuisines if c in filters.cuisine_types]
        score += len(matching) * 0.5
    return score


def preference_score(restaurant: Restaurant, profiles: Sequence[DinerProfile]) -> float:
    """Average the group's known preferences for the restaurant's cuisines."""
    values = [
        profile.cuisine_preferences[cuisine]
        for profile in profiles
        for cuisine in restaurant.cuisines
        if cuisine in profile.cuisine_preferences
    ]
    if not values:
        return 0.0
    return sum(values) / len(values)


def rank_restaurants(
    restaurants: Iterable[Restaurant],
    filters: DiningFilters,
    profiles: Sequence[DinerProfile] = (),
) -> list[Restaurant]:
    """Filter, deduplicate and order candidates by combined score."""
    unique: dict[str, Restaurant] = {}
    for restaurant in restaurants:
        if restaurant.id not in unique and matches_filters(restaurant, filters):
            unique[restaurant.id] = restaurant
    return sorted(
        unique.values(),
        key=lambda r: filter_score(r, filters) + preference_score(r, profiles),
        reverse=True,
    )


@dataclass
class GooglePlacesSource(CandidateSource):
    """Candidate source backed by Google Places text search."""

    client: PlacesClient

    async def search(
        self, filters: DiningFilters, location: tuple[float, float]
    ) -> list[Restaurant]:
        """Search places and map them to restaurants."""
        payload = await self.client.search_text(_search_body(filters, location))
        return [
            self._to_restaurant(place, location)
            for place in payload.get("places", [])
            if isinstance(place, dict) and place.get("id")
        ]

    def _to_restaurant(
        self, place: dict[str, object], origin: tuple[float, float]
    ) -> Restaurant:
        name = (place.get("displayName") or {}).get("text") or "Unknown Restaurant"
        cuisines = _extract_cuisines(place.get("types") or [])
        location = place.get("location") or {}
        lat = location.get("latitude")
        lng = location.get("longitude")
        distance = (
            round(_distance_miles(origin, (lat, lng)), 1)
            if lat is not None and lng is not None
            else 0.0
        )
        level = place.get("priceLevel")
        price_index = (
            _PLACES_PRICE_LEVELS.index(level) if level in _PLACES_PRICE_LEVELS else 2
        )
        photos = place.get("photos") or []
        hours = (place.get("currentOpeningHours") or {}).get("weekdayDescriptions")
        family_friendly = place.get("goodForChildren")
        return Restaurant(
            id=str(place["id"]),
            name=name,
            rating=float(place.get("rating") or 4.0),
            price_level=_PLACES_TO_PRICE[price_index],
            cuisines=cuisines,
            address=str(place.get("formattedAddress") or ""),
            distance_miles=distance,
            description=f"{name} - {', '.join(c.value for c in cuisines)}",
            family_friendly=(
                family_friendly if isinstance(family_friendly, bool) else True
            ),
            photos=tuple(self.client.photo_url(p["name"]) for p in photos[:5]),
            lat=lat,
            lng=lng,
            phone=place.get("nationalPhoneNumber"),
            website=place.get("websiteUri"),
            hours="\n".join(hours) if hours else None,
        )


@dataclass
class CandidateService:
    """Loads the ordered candidate sequence each party walks through.

    Sequences are cached per invite id so every device of a party indexes
    into the same order.
    """

    cache: Cache
    catalogue: Sequence[Restaurant] = field(default_factory=tuple)
    live_source: CandidateSource | None = None
    location: tuple[float, float] | None = None
    ttl_seconds: int = 86400

    async def search(
        self,
        filters: DiningFilters,
        profiles: Sequence[DinerProfile] = (),
        location: tuple[float, float] | None = None,
    ) -> list[Restaurant]:
        """Return ranked candidates, falling back to the bundled catalogue."""
        origin = location or self.location
        restaurants: Sequence[Restaurant] = self.catalogue
        if self.live_source is not None and origin is not None:
            try:
                restaurants = await self.live_source.search(filters, origin)
            except Exception as exc:
                _logger.warning(
                    "Live restaurant search failed, using catalogue: %s", exc
                )
                restaurants = self.catalogue
        return rank_restaurants(restaurants, filters, profiles)

    async def load(
        self,
        invite_id: str,
        filters: DiningFilters,
        profiles: Sequence[DinerProfile] = (),
        location: tuple[float, float] | None = None,
    ) -> list[Restaurant]:
        """Return the party's cached sequence, searching on first use."""
        cached = self.get(invite_id)
        if cached:
            return cached
        restaurants = await self.search(filters, profiles, location)
        self.set(invite_id, restaurants)
        return restaurants

    def get(self, invite_id: str) -> list[Restaurant]:
        """Return the loaded sequence for a party, empty when none is loaded."""
        cached = self.cache.get(_cache_key(invite_id))
        if isinstance(cached, list):
            return cached
        return []

    def set(self, invite_id: str, restaurants: Sequence[Restaurant]) -> None:
        """Replace the loaded sequence for a party."""
        self.cache.set(
            _cache_key(invite_id), list(restaurants), ttl_seconds=self.ttl_seconds
        )

    def discard(self, invite_id: str) -> None:
        """Forget a party's sequence so it is derived again."""
        self.cache.delete(_cache_key(invite_id))


def _cache_key(invite_id: str) -> str:
    return f"candidates:{invite_id}"


def _search_body(
    filters: DiningFilters, location: tuple[float, float]
) -> dict[str, object]:
    """Build a Places text search request for the filters."""
    terms = [_CUISINE_SEARCH_TERMS.get(c, c.value) for c in filters.cuisine_types]
    text_query = f"{' OR '.join(terms)} restaurant" if terms else "restaurants"
    tiers = [_PRICE_TO_PLACES[level] for level in filters.price_range] or [1, 2, 3]
    return {
        "textQuery": text_query,
        "locationBias": {
            "circle": {
                "center": {"latitude": location[0], "longitude": location[1]},
                "radius": round(filters.max_distance * _METERS_PER_MILE),
            }
        },
        "includedType": "restaurant",
        "maxResultCount": _MAX_RESULTS,
        "languageCode": "en",
        "priceLevels": _PLACES_PRICE_LEVELS[min(tiers) : max(tiers) + 1],
    }


def _extract_cuisines(types: list[str]) -> tuple[CuisineType, ...]:
    cuisines: list[CuisineType] = []
    for place_type in types:
        cuisine = _TYPE_TO_CUISINE.get(place_type)
        if cuisine and cuisine not in cuisines:
            cuisines.append(cuisine)
    return tuple(cuisines) or (CuisineType.AMERICAN,)


def _distance_miles(
    origin: tuple[float, float], target: tuple[float, float]
) -> float:
    """Great-circle distance in miles."""
    lat1, lng1 = (math.radians(v) for v in origin)
    lat2, lng2 = (math.radians(v) for v in target)
    a = (
        math.sin((lat2 - lat1) / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin((lng2 - lng1) / 2) ** 2
    )
    return _EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
