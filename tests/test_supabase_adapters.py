"""Tests for the Supabase party repository."""

from dataclasses import dataclass, field

import pytest

from swipe_to_dine.adapters.supabase_party_repository import SupabasePartyRepository
from swipe_to_dine.domain.party import PartyState, VoteStatus
from tests.conftest import IN_PERSON, REMOTE, make_party


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "update": []}
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    last_order: tuple[str, bool] | None = None

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, column: str, desc: bool = False) -> "FakeTable":
        self.last_order = (column, desc)
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _sample_party() -> PartyState:
    party = make_party(("a", REMOTE), ("b", IN_PERSON), invite_id="abc123")
    return PartyState(
        invite_id=party.invite_id,
        diners=party.diners,
        votes={"x": {"a": VoteStatus.ACCEPT, "b": VoteStatus.REJECT}},
        current_restaurant_index=3,
        handoff_pending=True,
    )


def test_supabase_party_repository_roundtrip() -> None:
    client = FakeSupabaseClient()
    parties = client.table("parties")
    party = _sample_party()
    parties.queue("insert", [party.to_dict()])
    parties.queue("select", [party.to_dict()])

    repository = SupabasePartyRepository(client)
    created = repository.create_party(party)
    fetched = repository.get_party("abc123")

    assert created.invite_id == "abc123"
    assert fetched == party
    assert ("invite_id", "abc123") in parties.last_filters


def test_supabase_party_repository_insert_failure() -> None:
    client = FakeSupabaseClient()
    repository = SupabasePartyRepository(client)

    with pytest.raises(RuntimeError):
        repository.create_party(_sample_party())


def test_supabase_party_repository_missing_party() -> None:
    repository = SupabasePartyRepository(FakeSupabaseClient())
    assert repository.get_party("missing") is None


def test_supabase_party_repository_save_updates_row() -> None:
    client = FakeSupabaseClient()
    repository = SupabasePartyRepository(client)

    repository.save_party(_sample_party())

    parties = client.table("parties")
    assert isinstance(parties.last_payload, dict)
    assert "invite_id" not in parties.last_payload
    assert "created_at" not in parties.last_payload
    assert parties.last_payload["votes"] == {"x": {"a": "maybe", "b": "no"}}
    assert parties.last_payload["handoff_pending"] is True
    assert parties.last_filters == [("invite_id", "abc123")]


def test_supabase_party_repository_lists_recent() -> None:
    client = FakeSupabaseClient()
    parties = client.table("parties")
    parties.queue("select", [_sample_party().to_dict()])

    listed = SupabasePartyRepository(client).list_parties(5)

    assert [party.invite_id for party in listed] == ["abc123"]
    assert parties.last_order == ("updated_at", True)
