"""Tests for pure party transitions."""

from datetime import UTC, datetime

import pytest

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
    RoundContinued,
    TurnPassed,
    VoteCast,
    VotesCleared,
)
from swipe_to_dine.domain.party import PartyState, VoteStatus
from swipe_to_dine.services.transitions import apply_event
from tests.conftest import IN_PERSON, REMOTE, make_party


def test_join_is_idempotent_and_keeps_roster_order() -> None:
    party = PartyState(invite_id="p")
    party = apply_event(party, DinerJoined("a"))
    party = apply_event(party, DinerJoined("b", IN_PERSON))
    party = apply_event(party, DinerJoined("a", IN_PERSON))

    assert party.diner_ids == ["a", "b"]
    assert party.get_diner("a").mode is REMOTE
    assert [d.diner_id for d in party.in_person_diners] == ["b"]
    assert [d.diner_id for d in party.remote_diners] == ["a"]


def test_apply_event_stamps_updated_at() -> None:
    now = datetime(2025, 1, 1, tzinfo=UTC)
    party = apply_event(PartyState(invite_id="p"), DinerJoined("a"), now)
    assert party.updated_at == now


def test_vote_overwrites_previous_vote() -> None:
    party = make_party(("a", REMOTE))
    party = apply_event(party, VoteCast("a", "x", VoteStatus.REJECT))
    party = apply_event(party, VoteCast("a", "x", VoteStatus.ACCEPT))

    assert party.vote_of("a", "x") is VoteStatus.ACCEPT
    assert party.votes_for("x") == {"a": VoteStatus.ACCEPT}
    assert party.vote_of("a", "y") is VoteStatus.UNKNOWN


def test_vote_from_unknown_diner_is_rejected() -> None:
    party = make_party(("a", REMOTE))
    with pytest.raises(InvalidVoterError):
        apply_event(party, VoteCast("ghost", "x", VoteStatus.ACCEPT))


def test_in_person_votes_wait_for_handoff() -> None:
    party = make_party(("a", REMOTE), ("b", IN_PERSON), ("c", IN_PERSON))
    party = apply_event(party, TurnPassed())
    assert party.handoff_pending

    with pytest.raises(HandoffViolationError):
        apply_event(party, VoteCast("c", "x", VoteStatus.ACCEPT))
    remote = apply_event(party, VoteCast("a", "x", VoteStatus.ACCEPT))
    assert remote.vote_of("a", "x") is VoteStatus.ACCEPT

    party = apply_event(party, HandoffAcknowledged())
    party = apply_event(party, VoteCast("c", "x", VoteStatus.ACCEPT))
    assert party.vote_of("c", "x") is VoteStatus.ACCEPT


def test_unknown_vote_cannot_be_stored() -> None:
    party = make_party(("a", REMOTE))
    with pytest.raises(ValueError, match="retracted"):
        apply_event(party, VoteCast("a", "x", VoteStatus.UNKNOWN))


def test_removed_diner_keeps_votes() -> None:
    party = make_party(("a", REMOTE), ("b", REMOTE))
    party = apply_event(party, VoteCast("b", "x", VoteStatus.ACCEPT))
    party = apply_event(party, DinerLeft("b"))

    assert party.diner_ids == ["a"]
    assert party.vote_of("b", "x") is VoteStatus.ACCEPT


def test_mode_change_locked_after_first_vote() -> None:
    party = make_party(("a", REMOTE), ("b", REMOTE))
    party = apply_event(party, DinerModeChanged("b", IN_PERSON))
    assert party.get_diner("b").mode is IN_PERSON

    party = apply_event(party, VoteCast("a", "x", VoteStatus.REJECT))
    with pytest.raises(DinerModeLockedError):
        apply_event(party, DinerModeChanged("a", IN_PERSON))


def test_votes_cleared_drops_one_candidate() -> None:
    party = make_party(("a", REMOTE))
    party = apply_event(party, VoteCast("a", "x", VoteStatus.ACCEPT))
    party = apply_event(party, VoteCast("a", "y", VoteStatus.REJECT))
    party = apply_event(party, VotesCleared("x"))

    assert party.votes_for("x") == {}
    assert party.vote_of("a", "y") is VoteStatus.REJECT


def test_cursor_advance_marks_seen() -> None:
    party = make_party(("a", REMOTE))
    party = apply_event(party, CursorAdvanced("x"))
    party = apply_event(party, CursorAdvanced("y"))

    assert party.current_restaurant_index == 2
    assert party.seen_restaurant_ids == ("x", "y")


def test_turn_passes_to_next_diner_and_rewinds_batch() -> None:
    party = make_party(("a", IN_PERSON), ("b", IN_PERSON))
    party = apply_event(party, CursorAdvanced("x"))
    party = apply_event(party, CursorAdvanced("y"))
    party = apply_event(party, TurnPassed())

    assert party.current_in_person_diner.diner_id == "b"
    assert party.current_restaurant_index == 0
    assert party.handoff_pending

    party = apply_event(party, HandoffAcknowledged())
    assert not party.handoff_pending

    party = apply_event(party, CursorAdvanced("x"))
    party = apply_event(party, CursorAdvanced("y"))
    party = apply_event(party, TurnPassed())
    assert party.round_complete
    assert party.current_restaurant_index == 2

    with pytest.raises(TurnOrderError):
        apply_event(party, TurnPassed())


def test_round_continue_requires_complete_round() -> None:
    party = make_party(("a", IN_PERSON), ("b", IN_PERSON))
    with pytest.raises(TurnOrderError):
        apply_event(party, RoundContinued())

    party = apply_event(party, TurnPassed())
    party = apply_event(party, HandoffAcknowledged())
    party = apply_event(party, CursorAdvanced("x"))
    party = apply_event(party, TurnPassed())
    party = apply_event(party, RoundContinued())

    assert party.in_person_start_index == 1
    assert party.current_in_person_diner_index == 0
    assert party.handoff_pending
    assert not party.round_complete


def test_turn_pass_needs_in_person_diners() -> None:
    party = make_party(("a", REMOTE), ("b", REMOTE))
    with pytest.raises(TurnOrderError):
        apply_event(party, TurnPassed())


def test_removing_diner_before_active_shifts_rotation() -> None:
    party = make_party(("a", IN_PERSON), ("b", IN_PERSON), ("c", IN_PERSON))
    party = apply_event(party, TurnPassed())
    assert party.current_in_person_diner.diner_id == "b"

    party = apply_event(party, DinerLeft("a"))
    assert party.current_in_person_diner.diner_id == "b"


def test_removing_active_diner_hands_turn_to_next() -> None:
    party = make_party(("a", IN_PERSON), ("b", IN_PERSON), ("c", IN_PERSON))
    party = apply_event(party, CursorAdvanced("x"))
    party = apply_event(party, DinerLeft("a"))

    assert party.current_in_person_diner.diner_id == "b"
    assert party.current_restaurant_index == 0
    assert party.handoff_pending


def test_removing_active_last_diner_completes_round() -> None:
    party = make_party(("a", IN_PERSON), ("b", IN_PERSON))
    party = apply_event(party, TurnPassed())
    party = apply_event(party, HandoffAcknowledged())
    party = apply_event(party, DinerLeft("b"))

    assert party.current_in_person_diner.diner_id == "a"
    assert party.round_complete
    assert not party.handoff_pending


def test_removing_last_in_person_diner_resets_rotation() -> None:
    party = make_party(("a", REMOTE), ("b", IN_PERSON))
    party = apply_event(party, DinerLeft("b"))

    assert party.current_in_person_diner_index == 0
    assert party.current_in_person_diner is None
    assert not party.handoff_pending


def test_match_is_set_once_and_closes_party() -> None:
    party = make_party(("a", REMOTE))
    party = apply_event(party, MatchResolved("x"))
    assert party.match.restaurant_id == "x"

    with pytest.raises(DoubleResolutionError):
        apply_event(party, MatchResolved("y"))
    with pytest.raises(PartyClosedError):
        apply_event(party, VoteCast("a", "y", VoteStatus.ACCEPT))

    scheduled = apply_event(party, DateTimeScheduled("2025-06-01T19:00:00"))
    assert scheduled.date_time == "2025-06-01T19:00:00"
    assert scheduled.match.restaurant_id == "x"


def test_elimination_rejects_invalid_steps() -> None:
    party = make_party(("a", REMOTE), ("b", REMOTE))
    with pytest.raises(EliminationError):
        apply_event(party, CandidateEliminated("x"))
    with pytest.raises(EliminationError):
        apply_event(party, EliminationStarted((), ("a",)))

    party = apply_event(party, EliminationStarted(("x", "y"), ("a", "b")))
    with pytest.raises(EliminationError):
        apply_event(party, CandidateEliminated("z"))

    party = apply_event(party, CandidateEliminated("x"))
    assert party.elimination.remaining_ids == ["y"]
    with pytest.raises(EliminationError):
        apply_event(party, CandidateEliminated("x"))
    with pytest.raises(EliminationError):
        apply_event(party, CandidateEliminated("y"))


def test_unsupported_event_type() -> None:
    with pytest.raises(TypeError):
        apply_event(PartyState(invite_id="p"), object())  # type: ignore[arg-type]
