"""Events that drive party state transitions."""

from dataclasses import dataclass

from swipe_to_dine.domain.party import AttendanceMode, VoteStatus


@dataclass(frozen=True)
class DinerJoined:
    diner_id: str
    mode: AttendanceMode = AttendanceMode.REMOTE
    browse_only: bool = False


@dataclass(frozen=True)
class DinerLeft:
    diner_id: str


@dataclass(frozen=True)
class DinerModeChanged:
    diner_id: str
    mode: AttendanceMode


@dataclass(frozen=True)
class DateTimeScheduled:
    date_time: str | None


@dataclass(frozen=True)
class VoteCast:
    diner_id: str
    restaurant_id: str
    status: VoteStatus


@dataclass(frozen=True)
class VotesCleared:
    restaurant_id: str


@dataclass(frozen=True)
class CursorAdvanced:
    """The current restaurant was passed; ``restaurant_id`` is marked seen."""

    restaurant_id: str | None


@dataclass(frozen=True)
class TurnPassed:
    """The current in-person diner finished a batch."""


@dataclass(frozen=True)
class HandoffAcknowledged:
    """The phone reached the next in-person diner."""


@dataclass(frozen=True)
class RoundContinued:
    """A finished round is followed by a fresh one."""


@dataclass(frozen=True)
class MatchResolved:
    restaurant_id: str


@dataclass(frozen=True)
class EliminationStarted:
    candidate_ids: tuple[str, ...]
    eliminator_ids: tuple[str, ...]


@dataclass(frozen=True)
class CandidateEliminated:
    restaurant_id: str


PartyEvent = (
    DinerJoined
    | DinerLeft
    | DinerModeChanged
    | DateTimeScheduled
    | VoteCast
    | VotesCleared
    | CursorAdvanced
    | TurnPassed
    | HandoffAcknowledged
    | RoundContinued
    | MatchResolved
    | EliminationStarted
    | CandidateEliminated
)
