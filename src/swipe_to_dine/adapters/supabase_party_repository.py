"""Supabase-backed party repository."""

from dataclasses import dataclass

from supabase import Client

from swipe_to_dine.domain.party import PartyState
from swipe_to_dine.services.parties import PartyRepository

_TABLE = "parties"
_COLUMNS = (
    "invite_id, host_diner_id, date_time, filters, selected_diners, votes, "
    "seen_restaurant_ids, current_restaurant_index, current_in_person_diner_index, "
    "in_person_start_index, handoff_pending, round_complete, matched_restaurant_id, "
    "matched_at, elimination, created_at, updated_at"
)


@dataclass
class SupabasePartyRepository(PartyRepository):
    """Supabase implementation storing one row per party."""

    client: Client

    def create_party(self, party: PartyState) -> PartyState:
        """Insert a party row and return it."""
        response = self.client.table(_TABLE).insert(party.to_dict()).execute()
        if not response.data:
            raise RuntimeError("Failed to create party")
        return PartyState.from_dict(response.data[0])

    def get_party(self, invite_id: str) -> PartyState | None:
        """Return a party by invite id, if present."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("invite_id", invite_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return PartyState.from_dict(response.data[0])

    def save_party(self, party: PartyState) -> None:
        """Overwrite the stored party record."""
        row = party.to_dict()
        row.pop("invite_id")
        row.pop("created_at")
        self.client.table(_TABLE).update(row).eq("invite_id", party.invite_id).execute()

    def list_parties(self, limit: int) -> list[PartyState]:
        """Return recently updated parties."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .order("updated_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [PartyState.from_dict(row) for row in response.data or []]
