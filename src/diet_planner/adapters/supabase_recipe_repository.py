"""Supabase repository for recipes and their items."""

from collections import defaultdict
from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from diet_planner.domain.recipes import Recipe, RecipeItem
from diet_planner.services.recipes import RecipeRepository


@dataclass
class SupabaseRecipeRepository(RecipeRepository):
    """Supabase implementation for recipe lookups."""

    client: Client

    def get_recipe(self, recipe_id: UUID) -> Recipe | None:
        """Return a recipe with items by id."""
        recipes = self.get_recipes([recipe_id])
        return recipes[0] if recipes else None

    def get_recipes(self, recipe_ids: list[UUID]) -> list[Recipe]:
        """Return recipes with items using one query per table."""
        if not recipe_ids:
            return []
        ids = [str(recipe_id) for recipe_id in recipe_ids]
        recipe_rows = (
            self.client.table("recipes").select("id, title").in_("id", ids).execute()
        )
        if not recipe_rows.data:
            return []
        item_rows = (
            self.client.table("recipe_items")
            .select("recipe_id, ingredient_id, amount, unit_override, position")
            .in_("recipe_id", [str(row["id"]) for row in recipe_rows.data])
            .order("position", desc=False)
            .execute()
        )
        items_by_recipe: dict[str, list[RecipeItem]] = defaultdict(list)
        for row in item_rows.data or []:
            items_by_recipe[str(row["recipe_id"])].append(
                RecipeItem(
                    ingredient_id=UUID(str(row["ingredient_id"])),
                    amount=float(row.get("amount", 0.0)),
                    unit_override=row.get("unit_override") or None,
                )
            )
        return [
            Recipe(
                id=UUID(str(row["id"])),
                title=str(row.get("title", "")),
                items=items_by_recipe.get(str(row["id"]), []),
            )
            for row in recipe_rows.data
        ]
