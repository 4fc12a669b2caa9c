"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from swipe_to_dine.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/parties", dependencies=[Depends(require_admin)])
async def list_parties(request: Request, limit: int = 20) -> dict[str, object]:
    """Return the most recently updated parties."""
    container: AppContainer = request.app.state.container
    parties = container.party_service.repository.list_parties(limit)
    return {
        "parties": [
            {
                "invite_id": party.invite_id,
                "diners": len(party.diners),
                "rated_restaurants": len(party.votes),
                "matched_restaurant_id": (
                    party.match.restaurant_id if party.match else None
                ),
                "updated_at": party.updated_at.isoformat(),
            }
            for party in parties
        ]
    }


@router.get("/parties/{invite_id}", dependencies=[Depends(require_admin)])
async def party_detail(invite_id: str, request: Request) -> dict[str, object]:
    """Return the full stored record for one party."""
    container: AppContainer = request.app.state.container
    return container.party_service.load_party(invite_id).to_dict()
