"""Tests for container wiring."""

import asyncio
import json

from swipe_to_dine.adapters.memory_party_repository import InMemoryPartyRepository
from swipe_to_dine.adapters.supabase_party_repository import SupabasePartyRepository
from swipe_to_dine.config import Settings
from swipe_to_dine.containers import build_container, load_catalogue
from swipe_to_dine.services.candidates import GooglePlacesSource


def test_build_container_creates_services(settings: Settings) -> None:
    container = build_container(settings)

    assert isinstance(container.party_service.repository, InMemoryPartyRepository)
    assert container.party_service.strict_voting
    assert container.party_service.policy.batch_size == 10
    assert container.candidate_service.live_source is None
    asyncio.run(container.close_resources())


def test_build_container_with_supabase_and_places() -> None:
    settings = Settings(
        admin_token="admin-token",
        environment="production",
        supabase_url="https://example.supabase.co",
        supabase_service_key="eyJhbGciOiJIUzI1NiJ9.eyJyb2xlIjoic2VydmljZSJ9.c2ln",
        google_places_api_key="places-key",
        default_latitude=40.0,
        default_longitude=-75.0,
        restaurants_per_batch=5,
    )

    container = build_container(settings)

    assert isinstance(container.party_service.repository, SupabasePartyRepository)
    assert not container.party_service.strict_voting
    assert container.party_service.policy.batch_size == 5
    assert isinstance(container.candidate_service.live_source, GooglePlacesSource)
    assert container.candidate_service.location == (40.0, -75.0)
    asyncio.run(container.close_resources())


def test_load_catalogue(tmp_path) -> None:
    path = tmp_path / "restaurants.json"
    path.write_text(
        json.dumps(
            [
                {
                    "id": "c1",
                    "name": "Corner Cafe",
                    "rating": 4.2,
                    "price_level": "$",
                    "cuisines": ["breakfast"],
                    "address": "2 Side St",
                    "distance_miles": 0.4,
                }
            ]
        ),
        encoding="utf-8",
    )

    catalogue = load_catalogue(str(path))

    assert [r.id for r in catalogue] == ["c1"]
    assert load_catalogue(None) == []
