"""Recipe composition: derive nutrition from ingredient items."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from diet_planner.domain.catalog import MACRO_FIELDS, NUTRIENT_FIELDS, Ingredient
from diet_planner.domain.errors import NotFoundError
from diet_planner.domain.recipes import Recipe, RecipeNutrition
from diet_planner.services.catalog import CatalogService

_BASIS_UNITS = 100.0


class RecipeRepository(Protocol):
    """Persistence interface for recipes with their items."""

    def get_recipe(self, recipe_id: UUID) -> Recipe | None:
        """Return a recipe by id, if present."""

    def get_recipes(self, recipe_ids: list[UUID]) -> list[Recipe]:
        """Return the recipes that exist among the given ids."""


def compute_nutrition(
    recipe: Recipe,
    catalog: Mapping[UUID, Ingredient],
    *,
    strict: bool = False,
) -> RecipeNutrition:
    """Sum per-100-unit nutrition over a recipe's items.

    Unknown nutrient values count as zero. An unknown kcal, protein, fat or
    carbs value flags the result incomplete; fiber, sugar and sodium are
    summed when known and never flag it. An ingredient missing from
    ``catalog`` raises ``NotFoundError`` when ``strict`` is set, otherwise it
    is skipped and reported on the result.
    """
    totals = dict.fromkeys(NUTRIENT_FIELDS, 0.0)
    incomplete = False
    missing: list[UUID] = []
    for item in recipe.items:
        ingredient = catalog.get(item.ingredient_id)
        if ingredient is None:
            if strict:
                raise NotFoundError("ingredient", item.ingredient_id)
            incomplete = True
            if item.ingredient_id not in missing:
                missing.append(item.ingredient_id)
            continue
        ratio = item.amount / _BASIS_UNITS
        for name in NUTRIENT_FIELDS:
            value = getattr(ingredient.nutrition, name)
            if value is None:
                incomplete = incomplete or name in MACRO_FIELDS
                continue
            totals[name] += value * ratio
    return RecipeNutrition(
        **totals,
        incomplete=incomplete,
        missing_ingredient_ids=tuple(missing),
    )


@dataclass
class RecipeService:
    """Resolves recipes and their derived nutrition."""

    repository: RecipeRepository
    catalog: CatalogService

    def get_recipe(self, recipe_id: UUID) -> Recipe:
        """Return a recipe or raise ``NotFoundError``."""
        recipe = self.repository.get_recipe(recipe_id)
        if recipe is None:
            raise NotFoundError("recipe", recipe_id)
        return recipe

    def get_recipes(self, recipe_ids: Iterable[UUID]) -> dict[UUID, Recipe]:
        """Return the resolvable recipes keyed by id."""
        unique_ids = list(dict.fromkeys(recipe_ids))
        if not unique_ids:
            return {}
        return {recipe.id: recipe for recipe in self.repository.get_recipes(unique_ids)}

    def nutrition_for(self, recipe_id: UUID) -> RecipeNutrition:
        """Display-time nutrition; unresolvable ingredients degrade the result."""
        recipe = self.get_recipe(recipe_id)
        snapshot = self.catalog.get_ingredients(_ingredient_ids([recipe]))
        return compute_nutrition(recipe, snapshot)

    def validate_recipe(self, recipe: Recipe) -> RecipeNutrition:
        """Save-time check: every ingredient must resolve."""
        snapshot = self.catalog.get_ingredients(_ingredient_ids([recipe]))
        return compute_nutrition(recipe, snapshot, strict=True)

    def resolve_recipes(
        self, recipe_ids: Iterable[UUID]
    ) -> dict[UUID, tuple[Recipe, RecipeNutrition]]:
        """Resolve recipes and their nutrition with one batch lookup each."""
        recipes = self.get_recipes(recipe_ids)
        snapshot = self.catalog.get_ingredients(_ingredient_ids(recipes.values()))
        return {
            recipe_id: (recipe, compute_nutrition(recipe, snapshot))
            for recipe_id, recipe in recipes.items()
        }

    def nutrition_for_recipes(
        self, recipe_ids: Iterable[UUID]
    ) -> dict[UUID, RecipeNutrition]:
        """Batch nutrition for many recipes keyed by id."""
        return {
            recipe_id: nutrition
            for recipe_id, (_, nutrition) in self.resolve_recipes(recipe_ids).items()
        }

    def require_recipes(self, recipe_ids: Iterable[UUID]) -> None:
        """Raise ``NotFoundError`` for the first id that does not resolve."""
        unique_ids = list(dict.fromkeys(recipe_ids))
        found = self.get_recipes(unique_ids)
        for recipe_id in unique_ids:
            if recipe_id not in found:
                raise NotFoundError("recipe", recipe_id)


def _ingredient_ids(recipes: Iterable[Recipe]) -> list[UUID]:
    return [item.ingredient_id for recipe in recipes for item in recipe.items]
