"""Domain models for diner profiles."""

from dataclasses import dataclass, field

from swipe_to_dine.domain.restaurants import CuisineType


@dataclass(frozen=True)
class DinerProfile:
    """Preference data the ranking reads for one diner.

    Preference values range from -2 (hate) to +2 (love); cuisines the diner
    never rated are simply absent.
    """

    id: str
    name: str
    cuisine_preferences: dict[CuisineType, int] = field(default_factory=dict)
