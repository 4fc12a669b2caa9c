"""Shared test fixtures."""

from dataclasses import dataclass, field

import pytest

from swipe_to_dine.adapters.memory_party_repository import InMemoryPartyRepository
from swipe_to_dine.adapters.places_client import PlacesClient
from swipe_to_dine.config import Settings
from swipe_to_dine.containers import AppContainer
from swipe_to_dine.domain.party import AttendanceMode, DinerSelection, PartyState
from swipe_to_dine.domain.restaurants import (
    CuisineType,
    DiningFilters,
    PriceLevel,
    Restaurant,
)
from swipe_to_dine.services.cache import InMemoryCache
from swipe_to_dine.services.candidates import CandidateService, CandidateSource
from swipe_to_dine.services.parties import PartyService
from swipe_to_dine.services.sequencing import TurnPolicy


def make_restaurant(  # noqa: PLR0913
    restaurant_id: str,
    rating: float = 4.5,
    distance_miles: float = 1.0,
    price_level: PriceLevel = PriceLevel.MODERATE,
    cuisines: tuple[CuisineType, ...] = (CuisineType.ITALIAN,),
    family_friendly: bool = True,
) -> Restaurant:
    return Restaurant(
        id=restaurant_id,
        name=f"Restaurant {restaurant_id}",
        rating=rating,
        price_level=price_level,
        cuisines=cuisines,
        address=f"{restaurant_id} Main St",
        distance_miles=distance_miles,
        family_friendly=family_friendly,
    )


def make_restaurants(count: int, prefix: str = "r") -> list[Restaurant]:
    return [make_restaurant(f"{prefix}{index}") for index in range(count)]


def make_party(*diners: tuple[str, AttendanceMode], invite_id: str = "party-1"):
    return PartyState(
        invite_id=invite_id,
        diners=tuple(
            DinerSelection(diner_id=diner_id, mode=mode) for diner_id, mode in diners
        ),
    )


REMOTE = AttendanceMode.REMOTE
IN_PERSON = AttendanceMode.IN_PERSON


@dataclass
class StaticCandidateSource(CandidateSource):
    """Live source that returns a fixed list."""

    restaurants: list[Restaurant] = field(default_factory=list)
    calls: list[tuple[DiningFilters, tuple[float, float]]] = field(
        default_factory=list
    )

    async def search(
        self, filters: DiningFilters, location: tuple[float, float]
    ) -> list[Restaurant]:
        self.calls.append((filters, location))
        return list(self.restaurants)


class FailingCandidateSource(CandidateSource):
    """Live source that always fails."""

    async def search(
        self, filters: DiningFilters, location: tuple[float, float]
    ) -> list[Restaurant]:
        raise RuntimeError("upstream unavailable")


@dataclass
class FakePlacesClient(PlacesClient):
    """Places client returning a canned payload."""

    payload: dict[str, object] = field(default_factory=dict)
    bodies: list[dict[str, object]] = field(default_factory=list)

    async def search_text(self, body: dict[str, object]) -> dict[str, object]:
        self.bodies.append(body)
        return self.payload

    def photo_url(self, photo_name: str, max_width: int = 800) -> str:
        return f"https://photos.test/{photo_name}?w={max_width}"


@pytest.fixture
def settings() -> Settings:
    return Settings(admin_token="admin-token", environment="test")


@pytest.fixture
def party_repository() -> InMemoryPartyRepository:
    return InMemoryPartyRepository()


@pytest.fixture
def candidate_service() -> CandidateService:
    return CandidateService(cache=InMemoryCache(), catalogue=make_restaurants(3))


@pytest.fixture
def party_service(
    party_repository: InMemoryPartyRepository,
    candidate_service: CandidateService,
) -> PartyService:
    return PartyService(
        repository=party_repository,
        candidate_service=candidate_service,
        policy=TurnPolicy(batch_size=2),
    )


@pytest.fixture
def container(
    settings: Settings,
    party_service: PartyService,
    candidate_service: CandidateService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        party_service=party_service,
        candidate_service=candidate_service,
        close_resources=close_resources,
    )
