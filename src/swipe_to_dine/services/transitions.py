"""Pure state transitions for dining parties.

Every mutation of a party goes through :func:`apply_event`, which returns a new
:class:`PartyState` and never touches storage. Persistence is layered on top by
the party service.
"""

from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime

from swipe_to_dine.domain.errors import (
    DinerModeLockedError,
    DoubleResolutionError,
    EliminationError,
    HandoffViolationError,
    InvalidVoterError,
    PartyClosedError,
    TurnOrderError,
)
from swipe_to_dine.domain.events import (
    CandidateEliminated,
    CursorAdvanced,
    DateTimeScheduled,
    DinerJoined,
    DinerLeft,
    DinerModeChanged,
    EliminationStarted,
    HandoffAcknowledged,
    MatchResolved,
    PartyEvent,
    RoundContinued,
    TurnPassed,
    VoteCast,
    VotesCleared,
)
from swipe_to_dine.domain.party import (
    AttendanceMode,
    DinerSelection,
    EliminationState,
    PartyMatch,
    PartyState,
    VoteStatus,
)


def apply_event(
    party: PartyState, event: PartyEvent, now: datetime | None = None
) -> PartyState:
    """Return the party that results from applying ``event``."""
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"Unsupported party event: {type(event).__name__}")
    if party.match is not None and not isinstance(
        event, DateTimeScheduled | MatchResolved
    ):
        raise PartyClosedError(f"Party {party.invite_id} already has a match")
    timestamp = now or datetime.now(tz=UTC)
    updated = handler(party, event, timestamp)
    return replace(updated, updated_at=timestamp)


def _diner_joined(party: PartyState, event: DinerJoined, _now: datetime) -> PartyState:
    if party.has_diner(event.diner_id):
        return party
    diner = DinerSelection(
        diner_id=event.diner_id, mode=event.mode, browse_only=event.browse_only
    )
    return replace(party, diners=(*party.diners, diner))


def _diner_left(party: PartyState, event: DinerLeft, _now: datetime) -> PartyState:
    removed = party.get_diner(event.diner_id)
    if removed is None:
        return party
    diners = tuple(d for d in party.diners if d.diner_id != event.diner_id)
    updated = replace(party, diners=diners)
    if removed.mode is not AttendanceMode.IN_PERSON:
        return updated
    return _rotate_after_removal(party, updated, event.diner_id)


def _rotate_after_removal(
    before: PartyState, after: PartyState, diner_id: str
) -> PartyState:
    """Keep the in-person rotation pointing at a remaining diner.

    Diners ahead of the active one shift it down by one. Removing the active
    diner hands the turn to whoever now sits at the same position (the batch
    restarts at the round start); removing the active last diner completes
    the round.
    """
    rotation = [d.diner_id for d in before.in_person_diners]
    removed_index = rotation.index(diner_id)
    remaining = len(rotation) - 1
    current = before.current_in_person_diner_index
    if remaining == 0:
        return replace(
            after,
            current_in_person_diner_index=0,
            handoff_pending=False,
            round_complete=False,
        )
    if removed_index < current:
        return replace(after, current_in_person_diner_index=current - 1)
    if removed_index > current:
        return after
    if before.round_complete or removed_index >= remaining:
        return replace(
            after,
            current_in_person_diner_index=remaining - 1,
            handoff_pending=False,
            round_complete=True,
        )
    return replace(
        after,
        current_restaurant_index=before.in_person_start_index,
        handoff_pending=True,
    )


def _diner_mode_changed(
    party: PartyState, event: DinerModeChanged, _now: datetime
) -> PartyState:
    diner = party.get_diner(event.diner_id)
    if diner is None or diner.mode is event.mode:
        return party
    if party.has_votes:
        raise DinerModeLockedError(
            f"Cannot change mode for {event.diner_id} after voting started"
        )
    diners = tuple(
        replace(d, mode=event.mode) if d.diner_id == event.diner_id else d
        for d in party.diners
    )
    return replace(party, diners=diners, current_in_person_diner_index=0)


def _date_time_scheduled(
    party: PartyState, event: DateTimeScheduled, _now: datetime
) -> PartyState:
    return replace(party, date_time=event.date_time)


def _vote_cast(party: PartyState, event: VoteCast, _now: datetime) -> PartyState:
    diner = party.get_diner(event.diner_id)
    if diner is None:
        raise InvalidVoterError(event.diner_id)
    # Remote diners vote on their own devices and are never gated.
    if party.handoff_pending and diner.mode is AttendanceMode.IN_PERSON:
        raise HandoffViolationError("Waiting for the next diner to take the phone")
    if event.status is VoteStatus.UNKNOWN:
        raise ValueError("Votes cannot be retracted to unknown")
    cells = dict(party.votes.get(event.restaurant_id, {}))
    cells[event.diner_id] = event.status
    votes = {**party.votes, event.restaurant_id: cells}
    return replace(party, votes=votes)


def _votes_cleared(
    party: PartyState, event: VotesCleared, _now: datetime
) -> PartyState:
    if event.restaurant_id not in party.votes:
        return party
    votes = dict(party.votes)
    del votes[event.restaurant_id]
    return replace(party, votes=votes)


def _cursor_advanced(
    party: PartyState, event: CursorAdvanced, _now: datetime
) -> PartyState:
    seen = party.seen_restaurant_ids
    if event.restaurant_id is not None:
        seen = (*seen, event.restaurant_id)
    return replace(
        party,
        current_restaurant_index=party.current_restaurant_index + 1,
        seen_restaurant_ids=seen,
    )


def _turn_passed(party: PartyState, _event: TurnPassed, _now: datetime) -> PartyState:
    rotation_size = len(party.in_person_diners)
    if rotation_size == 0:
        raise TurnOrderError("No in-person diners to pass the turn to")
    if party.round_complete:
        raise TurnOrderError("Round is already complete")
    next_index = party.current_in_person_diner_index + 1
    if next_index >= rotation_size:
        return replace(party, round_complete=True, handoff_pending=False)
    return replace(
        party,
        current_in_person_diner_index=next_index,
        current_restaurant_index=party.in_person_start_index,
        handoff_pending=True,
    )


def _handoff_acknowledged(
    party: PartyState, _event: HandoffAcknowledged, _now: datetime
) -> PartyState:
    if not party.handoff_pending:
        return party
    return replace(party, handoff_pending=False)


def _round_continued(
    party: PartyState, _event: RoundContinued, _now: datetime
) -> PartyState:
    if not party.round_complete:
        raise TurnOrderError("Current round is still in progress")
    return replace(
        party,
        in_person_start_index=party.current_restaurant_index,
        current_in_person_diner_index=0,
        round_complete=False,
        handoff_pending=len(party.in_person_diners) > 1,
    )


def _match_resolved(
    party: PartyState, event: MatchResolved, now: datetime
) -> PartyState:
    if party.match is not None:
        raise DoubleResolutionError(
            f"Party {party.invite_id} already matched "
            f"{party.match.restaurant_id}, cannot resolve {event.restaurant_id}"
        )
    return replace(
        party,
        match=PartyMatch(restaurant_id=event.restaurant_id, matched_at=now),
        handoff_pending=False,
    )


def _elimination_started(
    party: PartyState, event: EliminationStarted, _now: datetime
) -> PartyState:
    if party.elimination is not None:
        raise EliminationError("Elimination is already under way")
    candidate_ids = tuple(dict.fromkeys(event.candidate_ids))
    if not candidate_ids:
        raise EliminationError("Nothing to eliminate from an empty shortlist")
    if not event.eliminator_ids:
        raise EliminationError("Elimination needs at least one participant")
    return replace(
        party,
        elimination=EliminationState(
            candidate_ids=candidate_ids,
            eliminator_ids=tuple(event.eliminator_ids),
        ),
    )


def _candidate_eliminated(
    party: PartyState, event: CandidateEliminated, _now: datetime
) -> PartyState:
    elimination = party.elimination
    if elimination is None:
        raise EliminationError("Elimination has not started")
    remaining = elimination.remaining_ids
    if event.restaurant_id not in remaining:
        raise EliminationError(f"{event.restaurant_id} is not in contention")
    if len(remaining) <= 1:
        raise EliminationError("The last candidate cannot be eliminated")
    return replace(
        party,
        elimination=replace(
            elimination,
            eliminated_ids=(*elimination.eliminated_ids, event.restaurant_id),
        ),
    )


_HANDLERS: dict[type, Callable[[PartyState, object, datetime], PartyState]] = {
    DinerJoined: _diner_joined,
    DinerLeft: _diner_left,
    DinerModeChanged: _diner_mode_changed,
    DateTimeScheduled: _date_time_scheduled,
    VoteCast: _vote_cast,
    VotesCleared: _votes_cleared,
    CursorAdvanced: _cursor_advanced,
    TurnPassed: _turn_passed,
    HandoffAcknowledged: _handoff_acknowledged,
    RoundContinued: _round_continued,
    MatchResolved: _match_resolved,
    EliminationStarted: _elimination_started,
    CandidateEliminated: _candidate_eliminated,
}
