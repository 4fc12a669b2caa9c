"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from swipe_to_dine.api.admin import router as admin_router
from swipe_to_dine.api.models import (
    AddDinerRequest,
    CreatePartyRequest,
    DateTimeRequest,
    DinerModeRequest,
    EliminateRequest,
    LoadCandidatesRequest,
    ResolveRequest,
    SwipeRequest,
    VoteRequest,
)
from swipe_to_dine.app_logging import configure_logging
from swipe_to_dine.config import parse_location
from swipe_to_dine.containers import AppContainer
from swipe_to_dine.domain.errors import (
    DinerModeLockedError,
    DoubleResolutionError,
    EliminationError,
    EmptyRandomPickError,
    HandoffViolationError,
    InvalidVoterError,
    PartyClosedError,
    PartyError,
    PartyNotFoundError,
    TurnOrderError,
)
from swipe_to_dine.domain.party import PartyState
from swipe_to_dine.domain.restaurants import Restaurant
from swipe_to_dine.services.sequencing import SwipeOutcome, TurnView

_ERROR_STATUS: list[tuple[type[PartyError], int]] = [
    (PartyNotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidVoterError, status.HTTP_400_BAD_REQUEST),
    (EmptyRandomPickError, status.HTTP_400_BAD_REQUEST),
    (DoubleResolutionError, status.HTTP_409_CONFLICT),
    (PartyClosedError, status.HTTP_409_CONFLICT),
    (HandoffViolationError, status.HTTP_409_CONFLICT),
    (DinerModeLockedError, status.HTTP_409_CONFLICT),
    (EliminationError, status.HTTP_409_CONFLICT),
    (TurnOrderError, status.HTTP_409_CONFLICT),
]


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(PartyError)
    async def party_error_handler(_request: Request, exc: PartyError) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code >= status.HTTP_409_CONFLICT:
            logger.warning("Rejected party operation: %s", exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/parties", status_code=status.HTTP_201_CREATED)
    async def create_party(
        payload: CreatePartyRequest, request: Request
    ) -> dict[str, object]:
        """Create a party and return its invite id."""
        service = _container(request).party_service
        invite_id = service.create_party(
            host_diner_id=payload.host_diner_id,
            filters=payload.filters.to_domain() if payload.filters else None,
            replaces=payload.replaces,
        )
        party = service.load_party(invite_id)
        return {"invite_id": invite_id, "party": party.to_dict()}

    @app.get("/parties/{invite_id}")
    async def get_party(invite_id: str, request: Request) -> dict[str, object]:
        """Load a party for an invite link."""
        return _container(request).party_service.load_party(invite_id).to_dict()

    @app.delete("/parties/{invite_id}/candidates")
    async def clear_candidates(invite_id: str, request: Request) -> dict[str, str]:
        """Forget the loaded candidates when the group starts over."""
        _container(request).party_service.clear_party(invite_id)
        return {"status": "ok"}

    @app.post("/parties/{invite_id}/diners")
    async def add_diner(
        invite_id: str, payload: AddDinerRequest, request: Request
    ) -> dict[str, object]:
        """Join a diner to the party."""
        party = _container(request).party_service.add_diner(
            invite_id, payload.diner_id, payload.mode, payload.browse_only
        )
        return party.to_dict()

    @app.delete("/parties/{invite_id}/diners/{diner_id}")
    async def remove_diner(
        invite_id: str, diner_id: str, request: Request
    ) -> dict[str, object]:
        """Remove a diner from the roster."""
        party = _container(request).party_service.remove_diner(invite_id, diner_id)
        return party.to_dict()

    @app.patch("/parties/{invite_id}/diners/{diner_id}")
    async def set_diner_mode(
        invite_id: str, diner_id: str, payload: DinerModeRequest, request: Request
    ) -> dict[str, object]:
        """Switch a diner between remote and in-person."""
        party = _container(request).party_service.set_diner_mode(
            invite_id, diner_id, payload.mode
        )
        return party.to_dict()

    @app.put("/parties/{invite_id}/date-time")
    async def set_date_time(
        invite_id: str, payload: DateTimeRequest, request: Request
    ) -> dict[str, object]:
        """Schedule the dinner."""
        party = _container(request).party_service.set_date_time(
            invite_id, payload.date_time
        )
        return party.to_dict()

    @app.post("/parties/{invite_id}/candidates")
    async def load_candidates(
        invite_id: str, payload: LoadCandidatesRequest, request: Request
    ) -> dict[str, object]:
        """Load the ranked restaurant sequence for the party."""
        restaurants = await _container(request).party_service.load_candidates(
            invite_id,
            profiles=[profile.to_domain() for profile in payload.profiles],
            location=parse_location(payload.latitude, payload.longitude),
        )
        return {"restaurants": [r.to_dict() for r in restaurants]}

    @app.get("/parties/{invite_id}/turn")
    async def get_turn(invite_id: str, request: Request) -> dict[str, object]:
        """Return whose swipe counts and on which restaurant."""
        return _turn_payload(_container(request).party_service.turn(invite_id))

    @app.post("/parties/{invite_id}/votes")
    async def cast_vote(
        invite_id: str, payload: VoteRequest, request: Request
    ) -> dict[str, object]:
        """Record a diner's vote directly, e.g. from a remote device."""
        service = _container(request).party_service
        party = service.cast_vote(
            invite_id, payload.diner_id, payload.restaurant_id, payload.status
        )
        return {
            "party": party.to_dict(),
            "unanimous": service.check_unanimous(invite_id, payload.restaurant_id),
        }

    @app.post("/parties/{invite_id}/swipes")
    async def swipe(
        invite_id: str, payload: SwipeRequest, request: Request
    ) -> dict[str, object]:
        """Record a swipe for whoever is voting on the shared device."""
        service = _container(request).party_service
        outcome = service.swipe(invite_id, payload.status, payload.voter_id)
        if outcome is None:
            return {"accepted": False, "turn": _turn_payload(service.turn(invite_id))}
        return {
            "accepted": True,
            **_outcome_payload(outcome),
            "turn": _turn_payload(service.turn(invite_id)),
        }

    @app.post("/parties/{invite_id}/handoff")
    async def acknowledge_handoff(
        invite_id: str, request: Request
    ) -> dict[str, object]:
        """Confirm the phone reached the next diner."""
        service = _container(request).party_service
        service.acknowledge_handoff(invite_id)
        return _turn_payload(service.turn(invite_id))

    @app.post("/parties/{invite_id}/rounds")
    async def continue_round(invite_id: str, request: Request) -> dict[str, object]:
        """Start another round of swiping."""
        service = _container(request).party_service
        service.continue_round(invite_id)
        return _turn_payload(service.turn(invite_id))

    @app.get("/parties/{invite_id}/shortlist")
    async def shortlist(invite_id: str, request: Request) -> dict[str, object]:
        """Return the maybe, unanimous and reviewed shortlists."""
        service = _container(request).party_service
        return {
            "shortlist": _restaurants(service.shortlist(invite_id)),
            "maybe": _restaurants(service.maybe_shortlist(invite_id)),
            "unanimous": _restaurants(service.unanimous_shortlist(invite_id)),
        }

    @app.post("/parties/{invite_id}/resolve")
    async def resolve(
        invite_id: str, payload: ResolveRequest, request: Request
    ) -> dict[str, object]:
        """Pick a restaurant from the shortlist as the match."""
        party = _container(request).party_service.resolve(
            invite_id, payload.restaurant_id
        )
        return party.to_dict()

    @app.post("/parties/{invite_id}/fate")
    async def let_fate_decide(invite_id: str, request: Request) -> dict[str, object]:
        """Randomly pick the match from the shortlist."""
        restaurant = _container(request).party_service.let_fate_decide(invite_id)
        return {"restaurant": restaurant.to_dict()}

    @app.post("/parties/{invite_id}/elimination")
    async def start_elimination(
        invite_id: str, request: Request
    ) -> dict[str, object]:
        """Start a round-robin veto over the shortlist."""
        party = _container(request).party_service.start_elimination(invite_id)
        return _elimination_payload(party)

    @app.post("/parties/{invite_id}/elimination/eliminate")
    async def eliminate(
        invite_id: str, payload: EliminateRequest, request: Request
    ) -> dict[str, object]:
        """Veto one restaurant for the active participant."""
        party = _container(request).party_service.eliminate(
            invite_id, payload.restaurant_id, payload.eliminator_id
        )
        return _elimination_payload(party)

    return app


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _status_for(exc: PartyError) -> int:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def _restaurants(restaurants: list[Restaurant]) -> list[dict[str, object]]:
    return [restaurant.to_dict() for restaurant in restaurants]


def _turn_payload(view: TurnView) -> dict[str, object]:
    return {
        "phase": view.phase.value,
        "restaurant": view.restaurant.to_dict() if view.restaurant else None,
        "active_voter_id": view.active_voter_id,
        "round_number": view.round_number,
        "remaining_in_deck": view.remaining_in_deck,
        "swipes_this_turn": view.swipes_this_turn,
        "batch_size": view.batch_size,
        "can_view_shortlist": view.can_view_shortlist,
    }


def _outcome_payload(outcome: SwipeOutcome) -> dict[str, object]:
    return {
        "voter_id": outcome.voter_id,
        "restaurant_id": outcome.restaurant_id,
        "status": outcome.status.value,
        "matched": outcome.matched,
        "phase": outcome.phase.value,
    }


def _elimination_payload(party: PartyState) -> dict[str, object]:
    elimination = party.elimination
    return {
        "remaining_ids": elimination.remaining_ids if elimination else [],
        "eliminated_ids": list(elimination.eliminated_ids) if elimination else [],
        "active_eliminator_id": (
            elimination.active_eliminator_id if elimination else None
        ),
        "matched_restaurant_id": party.match.restaurant_id if party.match else None,
    }
