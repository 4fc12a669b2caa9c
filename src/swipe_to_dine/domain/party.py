"""Domain models for dining parties."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from swipe_to_dine.domain.restaurants import DEFAULT_FILTERS, DiningFilters


class AttendanceMode(StrEnum):
    """How a diner takes part in the vote."""

    REMOTE = "remote"
    IN_PERSON = "inPerson"


class VoteStatus(StrEnum):
    """A diner's verdict on one restaurant.

    ``UNKNOWN`` is what lookups report when no vote exists; it is never
    stored in the ledger.
    """

    UNKNOWN = "unknown"
    REJECT = "no"
    ACCEPT = "maybe"


@dataclass(frozen=True)
class DinerSelection:
    """A diner on the party roster."""

    diner_id: str
    mode: AttendanceMode = AttendanceMode.REMOTE
    browse_only: bool = False


@dataclass(frozen=True)
class PartyMatch:
    """The terminal result of a party."""

    restaurant_id: str
    matched_at: datetime


@dataclass(frozen=True)
class EliminationState:
    """Snapshot taken when a round-robin veto starts."""

    candidate_ids: tuple[str, ...]
    eliminator_ids: tuple[str, ...]
    eliminated_ids: tuple[str, ...] = ()

    @property
    def remaining_ids(self) -> list[str]:
        """Candidates still in play, in shortlist order."""
        return [rid for rid in self.candidate_ids if rid not in self.eliminated_ids]

    @property
    def turn(self) -> int:
        """Number of eliminations made so far."""
        return len(self.eliminated_ids)

    @property
    def active_eliminator_id(self) -> str | None:
        """Participant whose turn it is to eliminate."""
        if not self.eliminator_ids:
            return None
        return self.eliminator_ids[self.turn % len(self.eliminator_ids)]


Ledger = dict[str, dict[str, VoteStatus]]


@dataclass(frozen=True)
class PartyState:
    """Aggregate root for one dining session, keyed by its invite id."""

    invite_id: str
    host_diner_id: str | None = None
    date_time: str | None = None
    filters: DiningFilters = DEFAULT_FILTERS
    diners: tuple[DinerSelection, ...] = ()
    votes: Ledger = field(default_factory=dict)
    seen_restaurant_ids: tuple[str, ...] = ()
    current_restaurant_index: int = 0
    current_in_person_diner_index: int = 0
    in_person_start_index: int = 0
    handoff_pending: bool = False
    round_complete: bool = False
    match: PartyMatch | None = None
    elimination: EliminationState | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def diner_ids(self) -> list[str]:
        return [diner.diner_id for diner in self.diners]

    @property
    def in_person_diners(self) -> list[DinerSelection]:
        return [d for d in self.diners if d.mode is AttendanceMode.IN_PERSON]

    @property
    def remote_diners(self) -> list[DinerSelection]:
        return [d for d in self.diners if d.mode is AttendanceMode.REMOTE]

    @property
    def is_single_diner(self) -> bool:
        return len(self.diners) == 1

    @property
    def is_browse_only(self) -> bool:
        """Solo diner who is only browsing and never seeks a match."""
        return self.is_single_diner and self.diners[0].browse_only

    @property
    def is_multi_diner_in_person(self) -> bool:
        """More than one diner is sharing the device."""
        return not self.is_single_diner and len(self.in_person_diners) > 1

    @property
    def uses_batches(self) -> bool:
        """In-person diners take turns in fixed-size batches."""
        return not self.is_single_diner and bool(self.in_person_diners)

    @property
    def current_in_person_diner(self) -> DinerSelection | None:
        rotation = self.in_person_diners
        if 0 <= self.current_in_person_diner_index < len(rotation):
            return rotation[self.current_in_person_diner_index]
        return None

    @property
    def has_votes(self) -> bool:
        return any(self.votes.values())

    @property
    def is_matched(self) -> bool:
        return self.match is not None

    def has_diner(self, diner_id: str) -> bool:
        """Return True when the diner is on the roster."""
        return any(diner.diner_id == diner_id for diner in self.diners)

    def get_diner(self, diner_id: str) -> DinerSelection | None:
        """Return the roster entry for a diner, if present."""
        for diner in self.diners:
            if diner.diner_id == diner_id:
                return diner
        return None

    def vote_of(self, diner_id: str, restaurant_id: str) -> VoteStatus:
        """Return a diner's vote on a restaurant, ``UNKNOWN`` when absent."""
        return self.votes.get(restaurant_id, {}).get(diner_id, VoteStatus.UNKNOWN)

    def votes_for(self, restaurant_id: str) -> dict[str, VoteStatus]:
        """Return votes cast on a restaurant by diners who actually voted."""
        return dict(self.votes.get(restaurant_id, {}))

    def to_dict(self) -> dict[str, object]:
        """Serialize to a flat JSON-representable record."""
        return {
            "invite_id": self.invite_id,
            "host_diner_id": self.host_diner_id,
            "date_time": self.date_time,
            "filters": self.filters.to_dict(),
            "selected_diners": [
                {
                    "diner_id": diner.diner_id,
                    "mode": diner.mode.value,
                    "browse_only": diner.browse_only,
                }
                for diner in self.diners
            ],
            "votes": {
                restaurant_id: {
                    diner_id: status.value for diner_id, status in cells.items()
                }
                for restaurant_id, cells in self.votes.items()
            },
            "seen_restaurant_ids": list(self.seen_restaurant_ids),
            "current_restaurant_index": self.current_restaurant_index,
            "current_in_person_diner_index": self.current_in_person_diner_index,
            "in_person_start_index": self.in_person_start_index,
            "handoff_pending": self.handoff_pending,
            "round_complete": self.round_complete,
            "matched_restaurant_id": self.match.restaurant_id if self.match else None,
            "matched_at": self.match.matched_at.isoformat() if self.match else None,
            "elimination": (
                {
                    "candidate_ids": list(self.elimination.candidate_ids),
                    "eliminator_ids": list(self.elimination.eliminator_ids),
                    "eliminated_ids": list(self.elimination.eliminated_ids),
                }
                if self.elimination
                else None
            ),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, row: dict[str, object]) -> "PartyState":
        """Rebuild a party from its serialized record."""
        matched_id = row.get("matched_restaurant_id")
        matched_at = row.get("matched_at")
        match = (
            PartyMatch(
                restaurant_id=str(matched_id),
                matched_at=_parse_datetime(matched_at),
            )
            if matched_id
            else None
        )
        elimination_row = row.get("elimination")
        elimination = (
            EliminationState(
                candidate_ids=tuple(elimination_row.get("candidate_ids", [])),
                eliminator_ids=tuple(elimination_row.get("eliminator_ids", [])),
                eliminated_ids=tuple(elimination_row.get("eliminated_ids", [])),
            )
            if isinstance(elimination_row, dict)
            else None
        )
        raw_votes = row.get("votes") or {}
        votes: Ledger = {}
        for restaurant_id, cells in raw_votes.items():
            stored = {
                diner_id: VoteStatus(value)
                for diner_id, value in cells.items()
                if value != VoteStatus.UNKNOWN
            }
            if stored:
                votes[restaurant_id] = stored
        return cls(
            invite_id=str(row["invite_id"]),
            host_diner_id=row.get("host_diner_id"),
            date_time=row.get("date_time"),
            filters=DiningFilters.from_dict(row.get("filters")),
            diners=tuple(
                DinerSelection(
                    diner_id=str(entry["diner_id"]),
                    mode=AttendanceMode(entry.get("mode", AttendanceMode.REMOTE)),
                    browse_only=bool(entry.get("browse_only", False)),
                )
                for entry in row.get("selected_diners") or []
            ),
            votes=votes,
            seen_restaurant_ids=tuple(row.get("seen_restaurant_ids") or []),
            current_restaurant_index=int(row.get("current_restaurant_index", 0)),
            current_in_person_diner_index=int(
                row.get("current_in_person_diner_index", 0)
            ),
            in_person_start_index=int(row.get("in_person_start_index", 0)),
            handoff_pending=bool(row.get("handoff_pending", False)),
            round_complete=bool(row.get("round_complete", False)),
            match=match,
            elimination=elimination,
            created_at=_parse_datetime(row.get("created_at")),
            updated_at=_parse_datetime(row.get("updated_at")),
        )


def _parse_datetime(value: object) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return datetime.now(tz=UTC)
