"""Consensus detection and tie-break resolution."""

import logging
import random
from collections.abc import Iterable, Sequence
from datetime import datetime

from swipe_to_dine.domain.errors import EliminationError, EmptyRandomPickError
from swipe_to_dine.domain.events import (
    CandidateEliminated,
    EliminationStarted,
    MatchResolved,
)
from swipe_to_dine.domain.party import PartyState, VoteStatus
from swipe_to_dine.domain.restaurants import Restaurant
from swipe_to_dine.services.transitions import apply_event

_logger = logging.getLogger(__name__)


def is_unanimous(party: PartyState, restaurant_id: str) -> bool:
    """Return True when every voting diner accepted the restaurant.

    Browse-only diners never count towards a match, and an empty roster
    never matches.
    """
    voters = [diner for diner in party.diners if not diner.browse_only]
    if not voters:
        return False
    cells = party.votes.get(restaurant_id, {})
    return all(cells.get(diner.diner_id) is VoteStatus.ACCEPT for diner in voters)


def maybe_shortlist(
    party: PartyState, candidates: Sequence[Restaurant]
) -> list[Restaurant]:
    """Candidates with at least one accept, in sequence order."""
    return _dedupe(
        restaurant
        for restaurant in candidates
        if VoteStatus.ACCEPT in party.votes.get(restaurant.id, {}).values()
    )


def unanimous_shortlist(
    party: PartyState, candidates: Sequence[Restaurant]
) -> list[Restaurant]:
    """Candidates every voting diner accepted, in sequence order."""
    return _dedupe(
        restaurant for restaurant in candidates if is_unanimous(party, restaurant.id)
    )


def shortlist_for(
    party: PartyState, candidates: Sequence[Restaurant]
) -> list[Restaurant]:
    """Shortlist the party reviews: unanimous picks when several share a device."""
    if party.is_multi_diner_in_person:
        return unanimous_shortlist(party, candidates)
    return maybe_shortlist(party, candidates)


def resolve(
    party: PartyState, restaurant_id: str, now: datetime | None = None
) -> PartyState:
    """Set the party's terminal match."""
    resolved = apply_event(party, MatchResolved(restaurant_id), now)
    _logger.info("Party %s matched %s", party.invite_id, restaurant_id)
    return resolved


def random_pick(
    candidates: Sequence[Restaurant], rng: random.Random | None = None
) -> Restaurant:
    """Pick one candidate uniformly at random."""
    if not candidates:
        raise EmptyRandomPickError("Cannot pick from an empty candidate list")
    chooser = rng or random
    return chooser.choice(list(candidates))


def eliminator_ids(party: PartyState) -> list[str]:
    """Participants who take turns vetoing, in roster order."""
    if party.is_multi_diner_in_person:
        return [diner.diner_id for diner in party.in_person_diners]
    return party.diner_ids


def start_elimination(
    party: PartyState,
    candidates: Sequence[Restaurant],
    now: datetime | None = None,
) -> PartyState:
    """Freeze the shortlist and eliminator order for a round-robin veto."""
    shortlist = [restaurant.id for restaurant in shortlist_for(party, candidates)]
    started = apply_event(
        party,
        EliminationStarted(
            candidate_ids=tuple(shortlist),
            eliminator_ids=tuple(eliminator_ids(party)),
        ),
        now,
    )
    return _resolve_survivor(started, now)


def eliminate(
    party: PartyState,
    restaurant_id: str,
    eliminator_id: str | None = None,
    now: datetime | None = None,
) -> PartyState:
    """Remove one candidate on behalf of the active eliminator."""
    elimination = party.elimination
    if (
        elimination is not None
        and eliminator_id is not None
        and eliminator_id != elimination.active_eliminator_id
    ):
        raise EliminationError(
            f"It is {elimination.active_eliminator_id}'s turn, not {eliminator_id}'s"
        )
    reduced = apply_event(party, CandidateEliminated(restaurant_id), now)
    return _resolve_survivor(reduced, now)


def _resolve_survivor(party: PartyState, now: datetime | None) -> PartyState:
    elimination = party.elimination
    if elimination is None:
        return party
    remaining = elimination.remaining_ids
    if len(remaining) != 1:
        return party
    return resolve(party, remaining[0], now)


def _dedupe(restaurants: Iterable[Restaurant]) -> list[Restaurant]:
    seen: set[str] = set()
    unique: list[Restaurant] = []
    for restaurant in restaurants:
        if restaurant.id in seen:
            continue
        seen.add(restaurant.id)
        unique.append(restaurant)
    return unique
