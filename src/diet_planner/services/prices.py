"""Price freshness policy and non-blocking price refreshes."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID

from diet_planner.domain.catalog import Ingredient, PriceInfo
from diet_planner.domain.errors import NotFoundError
from diet_planner.domain.shopping import PriceStatus
from diet_planner.services.catalog import CatalogService

_logger = logging.getLogger(__name__)


class PriceRefresher(Protocol):
    """External service that fetches a current market price."""

    async def trigger_price_refresh(self, ingredient_id: UUID) -> Ingredient:
        """Refresh and store an ingredient's price, returning the updated record."""


@dataclass(frozen=True)
class PricePolicy:
    """Classifies cached prices by age."""

    freshness: timedelta = timedelta(hours=24)
    expiry: timedelta | None = None

    def classify(self, price: PriceInfo | None, now: datetime) -> PriceStatus:
        """Return fresh, stale or absent for a cached price.

        Timestamps without an offset are read as UTC.
        """
        if price is None or not price.amount:
            return PriceStatus.ABSENT
        if price.updated_at is None:
            return PriceStatus.STALE
        updated_at = price.updated_at
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=UTC)
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        age = now - updated_at
        if self.expiry is not None and age > self.expiry:
            return PriceStatus.ABSENT
        if age > self.freshness:
            return PriceStatus.STALE
        return PriceStatus.FRESH


@dataclass
class PriceService:
    """Serves cached prices and schedules refreshes without blocking readers."""

    catalog: CatalogService
    policy: PricePolicy
    refresher: PriceRefresher | None = None

    def get_price_info(self, ingredient_id: UUID) -> PriceInfo | None:
        """Return the best cached price for an ingredient, if any."""
        try:
            ingredient = self.catalog.get_ingredient(ingredient_id)
        except NotFoundError:
            return None
        return ingredient.price

    def classify(
        self, ingredient: Ingredient | None, now: datetime | None = None
    ) -> PriceStatus:
        """Classify an ingredient's cached price."""
        price = ingredient.price if ingredient else None
        return self.policy.classify(price, now or datetime.now(tz=UTC))

    def stale_ingredient_ids(
        self, ingredients: Iterable[Ingredient], now: datetime | None = None
    ) -> list[UUID]:
        """Return ids whose price is stale or absent."""
        moment = now or datetime.now(tz=UTC)
        return [
            ingredient.id
            for ingredient in ingredients
            if self.policy.classify(ingredient.price, moment) != PriceStatus.FRESH
        ]

    async def refresh_prices(self, ingredient_ids: Iterable[UUID]) -> list[Ingredient]:
        """Refresh prices concurrently; failures are logged and skipped."""
        if self.refresher is None:
            return []
        unique_ids = list(dict.fromkeys(ingredient_ids))
        if not unique_ids:
            return []
        results = await asyncio.gather(
            *(self.refresher.trigger_price_refresh(item) for item in unique_ids),
            return_exceptions=True,
        )
        refreshed: list[Ingredient] = []
        for ingredient_id, result in zip(unique_ids, results, strict=True):
            if isinstance(result, BaseException):
                _logger.warning(
                    "Price refresh failed for ingredient %s: %s", ingredient_id, result
                )
                continue
            self.catalog.invalidate(ingredient_id)
            refreshed.append(result)
        _logger.info(
            "Refreshed %s of %s ingredient price(s)", len(refreshed), len(unique_ids)
        )
        return refreshed
