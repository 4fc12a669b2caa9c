"""Party service: loads a party, applies a transition and persists the result."""

import logging
import random
import secrets
import string
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from swipe_to_dine.domain.errors import (
    HandoffViolationError,
    InvalidVoterError,
    PartyNotFoundError,
)
from swipe_to_dine.domain.events import (
    DateTimeScheduled,
    DinerJoined,
    DinerLeft,
    DinerModeChanged,
    VoteCast,
    VotesCleared,
)
from swipe_to_dine.domain.party import AttendanceMode, PartyState, VoteStatus
from swipe_to_dine.domain.profiles import DinerProfile
from swipe_to_dine.domain.restaurants import DEFAULT_FILTERS, DiningFilters, Restaurant
from swipe_to_dine.services import consensus, sequencing
from swipe_to_dine.services.candidates import CandidateService
from swipe_to_dine.services.sequencing import SwipeOutcome, TurnPolicy, TurnView
from swipe_to_dine.services.transitions import apply_event

_INVITE_ALPHABET = string.ascii_lowercase + string.digits
INVITE_ID_LENGTH = 8

_logger = logging.getLogger(__name__)


class PartyRepository(Protocol):
    """Persistence interface for parties keyed by invite id."""

    def create_party(self, party: PartyState) -> PartyState:
        """Store a new party and return it."""

    def get_party(self, invite_id: str) -> PartyState | None:
        """Return a party by invite id, if present."""

    def save_party(self, party: PartyState) -> None:
        """Persist the full party record."""

    def list_parties(self, limit: int) -> list[PartyState]:
        """Return the most recently updated parties."""


def generate_invite_id() -> str:
    """Return a short URL-safe invite token."""
    return "".join(secrets.choice(_INVITE_ALPHABET) for _ in range(INVITE_ID_LENGTH))


@dataclass
class PartyService:
    """Application service for the party voting flow."""

    repository: PartyRepository
    candidate_service: CandidateService
    policy: TurnPolicy = field(default_factory=TurnPolicy)
    strict_voting: bool = True
    rng: random.Random | None = None

    def create_party(
        self,
        host_diner_id: str | None = None,
        filters: DiningFilters | None = None,
        replaces: str | None = None,
    ) -> str:
        """Create a party and return its invite id."""
        if replaces:
            self.candidate_service.discard(replaces)
        party = self.repository.create_party(
            PartyState(
                invite_id=generate_invite_id(),
                host_diner_id=host_diner_id,
                filters=filters or DEFAULT_FILTERS,
            )
        )
        self.candidate_service.discard(party.invite_id)
        _logger.info("Created party %s", party.invite_id)
        return party.invite_id

    def load_party(self, invite_id: str) -> PartyState:
        """Return a stored party or raise ``PartyNotFoundError``."""
        party = self.repository.get_party(invite_id)
        if party is None:
            raise PartyNotFoundError(invite_id)
        return party

    def clear_party(self, invite_id: str) -> None:
        """Abandon a party's loaded candidates when the user starts over."""
        self.candidate_service.discard(invite_id)

    def add_diner(
        self,
        invite_id: str,
        diner_id: str,
        mode: AttendanceMode = AttendanceMode.REMOTE,
        browse_only: bool = False,
    ) -> PartyState:
        """Add a diner to the roster; joining twice is a no-op."""
        return self._transition(
            invite_id,
            lambda party: apply_event(party, DinerJoined(diner_id, mode, browse_only)),
        )

    def remove_diner(self, invite_id: str, diner_id: str) -> PartyState:
        """Remove a diner from the roster, keeping their votes."""
        return self._transition(
            invite_id, lambda party: apply_event(party, DinerLeft(diner_id))
        )

    def set_diner_mode(
        self, invite_id: str, diner_id: str, mode: AttendanceMode
    ) -> PartyState:
        """Change how a diner attends before voting starts."""
        return self._transition(
            invite_id,
            lambda party: apply_event(party, DinerModeChanged(diner_id, mode)),
        )

    def set_date_time(self, invite_id: str, date_time: str | None) -> PartyState:
        """Schedule the dinner."""
        return self._transition(
            invite_id, lambda party: apply_event(party, DateTimeScheduled(date_time))
        )

    def is_diner_selected(self, invite_id: str, diner_id: str) -> bool:
        """Return True when the diner is on the roster."""
        return self.load_party(invite_id).has_diner(diner_id)

    def cast_vote(
        self,
        invite_id: str,
        diner_id: str,
        restaurant_id: str,
        status: VoteStatus,
    ) -> PartyState:
        """Write a diner's vote on a restaurant, overwriting any earlier one."""
        party = self.load_party(invite_id)
        try:
            updated = apply_event(party, VoteCast(diner_id, restaurant_id, status))
        except HandoffViolationError:
            _logger.warning(
                "Dropped vote from %s for party %s during handoff", diner_id, invite_id
            )
            return party
        except InvalidVoterError:
            if self.strict_voting:
                raise
            _logger.warning(
                "Ignoring vote from %s: not in party %s", diner_id, invite_id
            )
            return party
        self.repository.save_party(updated)
        return updated

    def get_vote(self, invite_id: str, diner_id: str, restaurant_id: str) -> VoteStatus:
        """Return a diner's vote, ``UNKNOWN`` when none was cast."""
        return self.load_party(invite_id).vote_of(diner_id, restaurant_id)

    def all_votes_for(
        self, invite_id: str, restaurant_id: str
    ) -> dict[str, VoteStatus]:
        """Return the votes cast on a restaurant."""
        return self.load_party(invite_id).votes_for(restaurant_id)

    def clear_votes_for(self, invite_id: str, restaurant_id: str) -> PartyState:
        """Drop every vote on one restaurant."""
        return self._transition(
            invite_id, lambda party: apply_event(party, VotesCleared(restaurant_id))
        )

    async def load_candidates(
        self,
        invite_id: str,
        profiles: Sequence[DinerProfile] = (),
        location: tuple[float, float] | None = None,
    ) -> list[Restaurant]:
        """Load (or reuse) the ranked candidate sequence for a party."""
        party = self.load_party(invite_id)
        return await self.candidate_service.load(
            invite_id, party.filters, profiles, location
        )

    def candidates(self, invite_id: str) -> list[Restaurant]:
        """Return the loaded candidate sequence for a party."""
        return self.candidate_service.get(invite_id)

    def current_restaurant(self, invite_id: str) -> Restaurant | None:
        """Return the candidate under the party's cursor."""
        party = self.load_party(invite_id)
        return sequencing.current_restaurant(party, self.candidates(invite_id))

    def matched_restaurant(self, invite_id: str) -> Restaurant | None:
        """Return the matched candidate, if resolved and loaded."""
        party = self.load_party(invite_id)
        if party.match is None:
            return None
        for restaurant in self.candidates(invite_id):
            if restaurant.id == party.match.restaurant_id:
                return restaurant
        return None

    def turn(self, invite_id: str) -> TurnView:
        """Return the current phase, voter and round progress."""
        party = self.load_party(invite_id)
        return sequencing.turn_view(party, self.candidates(invite_id), self.policy)

    def swipe(
        self, invite_id: str, status: VoteStatus, voter_id: str | None = None
    ) -> SwipeOutcome | None:
        """Record a swipe for the active voter.

        Returns None when the swipe is dropped: while a handoff is pending,
        or for an unknown voter outside strict mode.
        """
        party = self.load_party(invite_id)
        try:
            outcome = sequencing.swipe(
                party, self.candidates(invite_id), status, self.policy, voter_id
            )
        except HandoffViolationError:
            _logger.warning("Dropped swipe for party %s during handoff", invite_id)
            return None
        except InvalidVoterError:
            if self.strict_voting:
                raise
            _logger.warning(
                "Ignoring swipe from %s: not in party %s", voter_id, invite_id
            )
            return None
        self.repository.save_party(outcome.party)
        return outcome

    def acknowledge_handoff(self, invite_id: str) -> PartyState:
        """Record that the phone reached the next in-person diner."""
        return self._transition(invite_id, sequencing.acknowledge_handoff)

    def continue_round(self, invite_id: str) -> PartyState:
        """Start another round after every in-person diner finished."""
        candidates = self.candidates(invite_id)
        return self._transition(
            invite_id, lambda party: sequencing.continue_round(party, candidates)
        )

    def check_unanimous(self, invite_id: str, restaurant_id: str) -> bool:
        """Return True when the whole roster accepted the restaurant."""
        return consensus.is_unanimous(self.load_party(invite_id), restaurant_id)

    def maybe_shortlist(self, invite_id: str) -> list[Restaurant]:
        """Restaurants with at least one accept."""
        party = self.load_party(invite_id)
        return consensus.maybe_shortlist(party, self.candidates(invite_id))

    def unanimous_shortlist(self, invite_id: str) -> list[Restaurant]:
        """Restaurants the whole roster accepted."""
        party = self.load_party(invite_id)
        return consensus.unanimous_shortlist(party, self.candidates(invite_id))

    def shortlist(self, invite_id: str) -> list[Restaurant]:
        """The shortlist this party reviews."""
        party = self.load_party(invite_id)
        return consensus.shortlist_for(party, self.candidates(invite_id))

    def resolve(self, invite_id: str, restaurant_id: str) -> PartyState:
        """Set the party's match; a second resolution fails."""
        return self._transition(
            invite_id, lambda party: consensus.resolve(party, restaurant_id)
        )

    def random_pick(self, candidates: Sequence[Restaurant]) -> Restaurant:
        """Pick one of ``candidates`` uniformly at random."""
        return consensus.random_pick(candidates, self.rng)

    def let_fate_decide(self, invite_id: str) -> Restaurant:
        """Randomly pick from the shortlist and resolve the party with it."""
        picked = self.random_pick(self.shortlist(invite_id))
        self.resolve(invite_id, picked.id)
        return picked

    def start_elimination(self, invite_id: str) -> PartyState:
        """Freeze the shortlist and begin a round-robin veto."""
        candidates = self.candidates(invite_id)
        return self._transition(
            invite_id,
            lambda party: consensus.start_elimination(party, candidates),
        )

    def eliminate(
        self, invite_id: str, restaurant_id: str, eliminator_id: str | None = None
    ) -> PartyState:
        """Veto one candidate; the last survivor becomes the match."""
        return self._transition(
            invite_id,
            lambda party: consensus.eliminate(party, restaurant_id, eliminator_id),
        )

    def _transition(
        self, invite_id: str, step: Callable[[PartyState], PartyState]
    ) -> PartyState:
        party = self.load_party(invite_id)
        updated = step(party)
        if updated is not party:
            self.repository.save_party(updated)
        return updated
