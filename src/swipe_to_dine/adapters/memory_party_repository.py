"""Process-local party repository with TTL and LRU eviction."""

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from swipe_to_dine.domain.party import PartyState
from swipe_to_dine.services.parties import PartyRepository


@dataclass
class InMemoryPartyRepository(PartyRepository):
    """Keeps serialized parties in memory, for local use and tests.

    Records are stored in their serialized form so this adapter round-trips
    through the same codec as the Supabase one.
    """

    maxsize: int = 1024
    ttl_seconds: int = 7 * 24 * 3600
    _rows: "OrderedDict[str, tuple[dict[str, object], datetime]]" = field(
        default_factory=OrderedDict
    )

    def create_party(self, party: PartyState) -> PartyState:
        """Store a new party."""
        self._store(party)
        return party

    def get_party(self, invite_id: str) -> PartyState | None:
        """Return a stored party if it has not expired."""
        self._evict_expired()
        item = self._rows.get(invite_id)
        if item is None:
            return None
        self._rows.move_to_end(invite_id)
        row, _ = item
        return PartyState.from_dict(row)

    def save_party(self, party: PartyState) -> None:
        """Overwrite a stored party."""
        self._store(party)

    def list_parties(self, limit: int) -> list[PartyState]:
        """Return parties, most recently touched first."""
        self._evict_expired()
        rows = [row for row, _ in reversed(self._rows.values())]
        return [PartyState.from_dict(row) for row in rows[:limit]]

    def _store(self, party: PartyState) -> None:
        self._evict_expired()
        self._rows[party.invite_id] = (party.to_dict(), datetime.now(tz=UTC))
        self._rows.move_to_end(party.invite_id)
        if len(self._rows) > self.maxsize:
            self._rows.popitem(last=False)

    def _evict_expired(self) -> None:
        cutoff = datetime.now(tz=UTC) - timedelta(seconds=self.ttl_seconds)
        expired = [key for key, (_, ts) in self._rows.items() if ts < cutoff]
        for key in expired:
            self._rows.pop(key, None)
