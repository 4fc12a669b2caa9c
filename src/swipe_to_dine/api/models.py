"""Pydantic models for party API payloads."""

from pydantic import BaseModel, Field, field_validator

from swipe_to_dine.domain.party import AttendanceMode, VoteStatus
from swipe_to_dine.domain.profiles import DinerProfile
from swipe_to_dine.domain.restaurants import (
    DEFAULT_FILTERS,
    CuisineType,
    DiningFilters,
    PriceLevel,
)


class FiltersPayload(BaseModel):
    """Dining filters chosen before a party starts."""

    min_rating: float = Field(default=DEFAULT_FILTERS.min_rating, ge=1.0, le=5.0)
    max_distance: float = Field(default=DEFAULT_FILTERS.max_distance, gt=0, le=25)
    price_range: list[PriceLevel] = Field(
        default_factory=lambda: list(DEFAULT_FILTERS.price_range)
    )
    family_friendly: bool | None = None
    cuisine_types: list[CuisineType] = Field(default_factory=list)

    def to_domain(self) -> DiningFilters:
        return DiningFilters(
            min_rating=self.min_rating,
            max_distance=self.max_distance,
            price_range=tuple(self.price_range),
            family_friendly=self.family_friendly,
            cuisine_types=tuple(self.cuisine_types),
        )


class CreatePartyRequest(BaseModel):
    host_diner_id: str | None = None
    filters: FiltersPayload | None = None
    replaces: str | None = None


class AddDinerRequest(BaseModel):
    diner_id: str
    mode: AttendanceMode = AttendanceMode.REMOTE
    browse_only: bool = False


class DinerModeRequest(BaseModel):
    mode: AttendanceMode


class DateTimeRequest(BaseModel):
    date_time: str | None = None


class ProfilePayload(BaseModel):
    """Diner preferences used to rank candidates."""

    id: str
    name: str = ""
    cuisine_preferences: dict[CuisineType, int] = Field(default_factory=dict)

    def to_domain(self) -> DinerProfile:
        return DinerProfile(
            id=self.id,
            name=self.name,
            cuisine_preferences=dict(self.cuisine_preferences),
        )


class LoadCandidatesRequest(BaseModel):
    profiles: list[ProfilePayload] = Field(default_factory=list)
    latitude: float | None = None
    longitude: float | None = None


def _reject_unknown(value: VoteStatus) -> VoteStatus:
    if value is VoteStatus.UNKNOWN:
        raise ValueError("status must be 'no' or 'maybe'")
    return value


class VoteRequest(BaseModel):
    diner_id: str
    restaurant_id: str
    status: VoteStatus

    @field_validator("status")
    @classmethod
    def check_status(cls, value: VoteStatus) -> VoteStatus:
        return _reject_unknown(value)


class SwipeRequest(BaseModel):
    status: VoteStatus
    voter_id: str | None = None

    @field_validator("status")
    @classmethod
    def check_status(cls, value: VoteStatus) -> VoteStatus:
        return _reject_unknown(value)


class ResolveRequest(BaseModel):
    restaurant_id: str


class EliminateRequest(BaseModel):
    restaurant_id: str
    eliminator_id: str | None = None
