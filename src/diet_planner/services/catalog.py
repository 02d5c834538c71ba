"""Ingredient catalog lookups with batch resolution and caching."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from diet_planner.domain.catalog import Ingredient
from diet_planner.domain.errors import NotFoundError
from diet_planner.services.cache import Cache

_logger = logging.getLogger(__name__)


class IngredientRepository(Protocol):
    """Persistence interface for catalog ingredients."""

    def get_ingredient(self, ingredient_id: UUID) -> Ingredient | None:
        """Return an ingredient by id, if present."""

    def get_ingredients(self, ingredient_ids: list[UUID]) -> list[Ingredient]:
        """Return the ingredients that exist among the given ids."""


@dataclass
class CatalogService:
    """Read access to the ingredient catalog."""

    repository: IngredientRepository
    cache: Cache
    ttl_seconds: int = 300

    def get_ingredient(self, ingredient_id: UUID) -> Ingredient:
        """Return an ingredient or raise ``NotFoundError``."""
        cached = self.cache.get(_cache_key(ingredient_id))
        if isinstance(cached, Ingredient):
            return cached
        ingredient = self.repository.get_ingredient(ingredient_id)
        if ingredient is None:
            raise NotFoundError("ingredient", ingredient_id)
        self.cache.set(
            _cache_key(ingredient_id), ingredient, ttl_seconds=self.ttl_seconds
        )
        return ingredient

    def get_ingredients(self, ingredient_ids: Iterable[UUID]) -> dict[UUID, Ingredient]:
        """Return a snapshot of the requested ingredients keyed by id.

        Unknown ids are left out of the snapshot. Cache misses are fetched with
        a single batch call.
        """
        snapshot: dict[UUID, Ingredient] = {}
        misses: list[UUID] = []
        for ingredient_id in dict.fromkeys(ingredient_ids):
            cached = self.cache.get(_cache_key(ingredient_id))
            if isinstance(cached, Ingredient):
                snapshot[ingredient_id] = cached
            else:
                misses.append(ingredient_id)

        if misses:
            fetched = self.repository.get_ingredients(misses)
            for ingredient in fetched:
                snapshot[ingredient.id] = ingredient
                self.cache.set(
                    _cache_key(ingredient.id), ingredient, ttl_seconds=self.ttl_seconds
                )
            unresolved = len(misses) - len(fetched)
            if unresolved > 0:
                _logger.info(
                    "Catalog lookup left %s ingredient(s) unresolved", unresolved
                )
        return snapshot

    def invalidate(self, ingredient_id: UUID) -> None:
        """Drop a cached ingredient so the next lookup reads the store."""
        self.cache.delete(_cache_key(ingredient_id))


def _cache_key(ingredient_id: UUID) -> str:
    return f"catalog:ingredient:{ingredient_id}"
