"""Google Places (New) API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

_FIELD_MASK = ",".join(
    [
        "places.id",
        "places.displayName",
        "places.formattedAddress",
        "places.location",
        "places.rating",
        "places.priceLevel",
        "places.types",
        "places.photos",
        "places.websiteUri",
        "places.nationalPhoneNumber",
        "places.currentOpeningHours",
        "places.goodForChildren",
    ]
)


class PlacesClient(Protocol):
    """Interface for Google Places text search."""

    async def search_text(self, body: dict[str, object]) -> dict[str, object]:
        """Run a text search and return raw API data."""

    def photo_url(self, photo_name: str, max_width: int = 800) -> str:
        """Return a media URL for a place photo."""


@dataclass
class HttpxPlacesClient(PlacesClient):
    """HTTPX-backed Google Places client."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, api_key: str, base_url: str) -> "HttpxPlacesClient":
        """Create a Places client with a managed httpx session."""
        return cls(api_key=api_key, base_url=base_url, http_client=httpx.AsyncClient())

    async def search_text(self, body: dict[str, object]) -> dict[str, object]:
        """Search places by text query."""
        response = await self.http_client.post(
            f"{self.base_url}/places:searchText",
            headers={"X-Goog-Api-Key": self.api_key, "X-Goog-FieldMask": _FIELD_MASK},
            json=body,
            timeout=15,
        )
        response.raise_for_status()
        return response.json()

    def photo_url(self, photo_name: str, max_width: int = 800) -> str:
        """Build a photo media URL."""
        return (
            f"{self.base_url}/{photo_name}/media"
            f"?maxWidthPx={max_width}&key={self.api_key}"
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
