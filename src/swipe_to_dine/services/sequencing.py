"""Turn sequencing for swipe voting.

Two axes move independently: the candidate cursor (which restaurant is being
decided) and the active voter (whose swipe counts). Remote diners vote on the
cursor one after another; in-person diners share the device and each swipes a
fixed-size batch before passing it on, every diner seeing the same batch.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from swipe_to_dine.domain.errors import (
    HandoffViolationError,
    PartyClosedError,
    TurnOrderError,
)
from swipe_to_dine.domain.events import (
    CursorAdvanced,
    HandoffAcknowledged,
    RoundContinued,
    TurnPassed,
    VoteCast,
)
from swipe_to_dine.domain.party import PartyState, VoteStatus
from swipe_to_dine.domain.restaurants import Restaurant
from swipe_to_dine.services.consensus import is_unanimous, resolve
from swipe_to_dine.services.transitions import apply_event

RESTAURANTS_PER_BATCH = 10
MIN_SWIPES_FOR_SHORTLIST = 10


class TurnPhase(StrEnum):
    """Where the party stands in the voting flow."""

    AWAITING_VOTE = "awaiting_vote"
    HANDOFF_PENDING = "handoff_pending"
    ROUND_COMPLETE = "round_complete"
    EXHAUSTED = "exhausted"
    MATCHED = "matched"


@dataclass(frozen=True)
class TurnPolicy:
    """Tunables for turn sequencing."""

    batch_size: int = RESTAURANTS_PER_BATCH
    single_device_simulates_all_remote: bool = True


@dataclass(frozen=True)
class SwipeOutcome:
    """Result of a single swipe."""

    party: PartyState
    voter_id: str
    restaurant_id: str
    status: VoteStatus
    matched: bool
    phase: TurnPhase


@dataclass(frozen=True)
class TurnView:
    """Snapshot of the voting flow for display."""

    phase: TurnPhase
    restaurant: Restaurant | None
    active_voter_id: str | None
    round_number: int
    remaining_in_deck: int
    swipes_this_turn: int
    batch_size: int
    can_view_shortlist: bool


def current_restaurant(
    party: PartyState, candidates: Sequence[Restaurant]
) -> Restaurant | None:
    """Return the candidate under the cursor, if any."""
    if 0 <= party.current_restaurant_index < len(candidates):
        return candidates[party.current_restaurant_index]
    return None


def phase_of(party: PartyState, candidates: Sequence[Restaurant]) -> TurnPhase:
    """Derive the current phase from the stored party state."""
    if party.match is not None:
        return TurnPhase.MATCHED
    if party.handoff_pending:
        return TurnPhase.HANDOFF_PENDING
    # A round that ends on the last candidate cannot be continued.
    if current_restaurant(party, candidates) is None:
        return TurnPhase.EXHAUSTED
    if party.round_complete:
        return TurnPhase.ROUND_COMPLETE
    return TurnPhase.AWAITING_VOTE


def active_voter(
    party: PartyState,
    candidates: Sequence[Restaurant],
    policy: TurnPolicy,
    voter_id: str | None = None,
) -> str | None:
    """Return the diner whose swipe is recorded next.

    ``voter_id`` is only consulted for all-remote parties when one device is
    not standing in for every remote diner.
    """
    if not party.diners:
        return None
    in_person = party.current_in_person_diner
    if in_person is not None:
        return in_person.diner_id
    if party.is_single_diner:
        return party.diners[0].diner_id
    if not policy.single_device_simulates_all_remote:
        return voter_id
    restaurant = current_restaurant(party, candidates)
    cells = party.votes.get(restaurant.id, {}) if restaurant else {}
    for diner in party.diners:
        if diner.diner_id not in cells:
            return diner.diner_id
    return party.diners[0].diner_id


def swipe(  # noqa: PLR0913
    party: PartyState,
    candidates: Sequence[Restaurant],
    status: VoteStatus,
    policy: TurnPolicy,
    voter_id: str | None = None,
    now: datetime | None = None,
) -> SwipeOutcome:
    """Record a swipe on the current candidate and move the flow forward."""
    phase = phase_of(party, candidates)
    if phase is TurnPhase.MATCHED:
        raise PartyClosedError(f"Party {party.invite_id} already has a match")
    if phase is TurnPhase.HANDOFF_PENDING:
        raise HandoffViolationError("Waiting for the next diner to take the phone")
    if phase is TurnPhase.ROUND_COMPLETE:
        raise TurnOrderError("Round is complete; continue or finish voting")
    if phase is TurnPhase.EXHAUSTED:
        raise TurnOrderError("No candidates left to vote on")

    restaurant = current_restaurant(party, candidates)
    if restaurant is None:
        raise TurnOrderError("No candidates left to vote on")
    voter = active_voter(party, candidates, policy, voter_id)
    if voter is None:
        raise TurnOrderError("A voter must be named for this swipe")

    updated = apply_event(party, VoteCast(voter, restaurant.id, status), now)
    seeks_match = not party.is_multi_diner_in_person and not party.is_browse_only
    if seeks_match and is_unanimous(updated, restaurant.id):
        updated = resolve(updated, restaurant.id, now)
        return SwipeOutcome(
            party=updated,
            voter_id=voter,
            restaurant_id=restaurant.id,
            status=status,
            matched=True,
            phase=TurnPhase.MATCHED,
        )

    updated = apply_event(updated, CursorAdvanced(restaurant.id), now)
    if updated.uses_batches and _swipes_this_turn(updated) >= policy.batch_size:
        updated = apply_event(updated, TurnPassed(), now)
    return SwipeOutcome(
        party=updated,
        voter_id=voter,
        restaurant_id=restaurant.id,
        status=status,
        matched=False,
        phase=phase_of(updated, candidates),
    )


def acknowledge_handoff(party: PartyState, now: datetime | None = None) -> PartyState:
    """Open the gate once the phone has been passed on."""
    return apply_event(party, HandoffAcknowledged(), now)


def continue_round(
    party: PartyState,
    candidates: Sequence[Restaurant],
    now: datetime | None = None,
) -> PartyState:
    """Start a new round at the current cursor with the first in-person diner."""
    if current_restaurant(party, candidates) is None:
        raise TurnOrderError("No candidates left for another round")
    return apply_event(party, RoundContinued(), now)


def turn_view(
    party: PartyState, candidates: Sequence[Restaurant], policy: TurnPolicy
) -> TurnView:
    """Summarize the flow for the current device."""
    phase = phase_of(party, candidates)
    return TurnView(
        phase=phase,
        restaurant=current_restaurant(party, candidates),
        active_voter_id=(
            active_voter(party, candidates, policy)
            if phase is TurnPhase.AWAITING_VOTE
            or phase is TurnPhase.HANDOFF_PENDING
            else None
        ),
        round_number=party.in_person_start_index // policy.batch_size + 1,
        remaining_in_deck=max(len(candidates) - party.current_restaurant_index, 0),
        swipes_this_turn=_swipes_this_turn(party),
        batch_size=policy.batch_size,
        can_view_shortlist=(
            party.current_restaurant_index >= MIN_SWIPES_FOR_SHORTLIST
            if party.is_single_diner
            else True
        ),
    )


def _swipes_this_turn(party: PartyState) -> int:
    return party.current_restaurant_index - party.in_person_start_index
