"""HTTP client for the external price refresh service."""

from dataclasses import dataclass
from uuid import UUID

import httpx

from diet_planner.adapters.supabase_ingredient_repository import ingredient_from_row
from diet_planner.domain.catalog import Ingredient
from diet_planner.services.prices import PriceRefresher


@dataclass
class HttpxPriceRefreshClient(PriceRefresher):
    """HTTPX-backed price refresh client."""

    base_url: str
    http_client: httpx.AsyncClient
    token: str | None = None

    @classmethod
    def create(
        cls, base_url: str, token: str | None = None
    ) -> "HttpxPriceRefreshClient":
        """Create a client with a managed httpx session."""
        return cls(base_url=base_url, http_client=httpx.AsyncClient(), token=token)

    async def trigger_price_refresh(self, ingredient_id: UUID) -> Ingredient:
        """Ask the service to refresh one ingredient's price."""
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        response = await self.http_client.post(
            f"{self.base_url.rstrip('/')}/ingredients/{ingredient_id}/price-refresh",
            headers=headers,
            timeout=15,
        )
        response.raise_for_status()
        return ingredient_from_row(response.json())

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
