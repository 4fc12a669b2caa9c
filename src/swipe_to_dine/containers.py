"""Dependency container wiring for the application."""

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from swipe_to_dine.adapters.memory_party_repository import InMemoryPartyRepository
from swipe_to_dine.adapters.places_client import HttpxPlacesClient
from swipe_to_dine.adapters.supabase_party_repository import SupabasePartyRepository
from swipe_to_dine.config import Settings, parse_location
from swipe_to_dine.domain.restaurants import Restaurant
from swipe_to_dine.services.cache import InMemoryCache
from swipe_to_dine.services.candidates import CandidateService, GooglePlacesSource
from swipe_to_dine.services.parties import PartyRepository, PartyService
from swipe_to_dine.services.sequencing import TurnPolicy


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    party_service: PartyService
    candidate_service: CandidateService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    repository: PartyRepository
    if resolved_settings.uses_supabase:
        repository = SupabasePartyRepository(
            create_client(
                resolved_settings.supabase_url, resolved_settings.supabase_service_key
            )
        )
    else:
        repository = InMemoryPartyRepository(
            maxsize=resolved_settings.party_cache_size,
            ttl_seconds=resolved_settings.party_ttl_seconds,
        )

    places_client = (
        HttpxPlacesClient.create(
            api_key=resolved_settings.google_places_api_key,
            base_url=resolved_settings.google_places_base_url,
        )
        if resolved_settings.google_places_api_key
        else None
    )
    candidate_service = CandidateService(
        cache=InMemoryCache(),
        catalogue=load_catalogue(resolved_settings.catalogue_path),
        live_source=GooglePlacesSource(places_client) if places_client else None,
        location=parse_location(
            resolved_settings.default_latitude, resolved_settings.default_longitude
        ),
        ttl_seconds=resolved_settings.candidate_ttl_seconds,
    )
    party_service = PartyService(
        repository=repository,
        candidate_service=candidate_service,
        policy=TurnPolicy(
            batch_size=resolved_settings.restaurants_per_batch,
            single_device_simulates_all_remote=(
                resolved_settings.single_device_simulates_all_remote
            ),
        ),
        strict_voting=resolved_settings.strict_voting,
    )

    async def close_resources() -> None:
        if places_client is not None:
            await places_client.close()

    return AppContainer(
        settings=resolved_settings,
        party_service=party_service,
        candidate_service=candidate_service,
        close_resources=close_resources,
    )


def load_catalogue(path: str | None) -> list[Restaurant]:
    """Read the fallback restaurant catalogue from a JSON file."""
    if not path:
        return []
    entries = json.loads(Path(path).read_text(encoding="utf-8"))
    return [Restaurant.from_dict(entry) for entry in entries]
