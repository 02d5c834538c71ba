"""Supabase repository for catalog ingredients."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from diet_planner.domain.catalog import Ingredient, NutritionFacts, PriceInfo
from diet_planner.services.catalog import IngredientRepository

_COLUMNS = (
    "id, name, unit, kcal, protein, fat, carbs, fiber, sugar, sodium, "
    "price_per_unit, price_currency, price_updated_at"
)


@dataclass
class SupabaseIngredientRepository(IngredientRepository):
    """Supabase implementation for ingredient lookups."""

    client: Client

    def get_ingredient(self, ingredient_id: UUID) -> Ingredient | None:
        """Return an ingredient by id."""
        response = (
            self.client.table("ingredients")
            .select(_COLUMNS)
            .eq("id", str(ingredient_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return ingredient_from_row(response.data[0])

    def get_ingredients(self, ingredient_ids: list[UUID]) -> list[Ingredient]:
        """Return ingredients for the given ids in one query."""
        if not ingredient_ids:
            return []
        response = (
            self.client.table("ingredients")
            .select(_COLUMNS)
            .in_("id", [str(ingredient_id) for ingredient_id in ingredient_ids])
            .execute()
        )
        return [ingredient_from_row(row) for row in response.data or []]


def ingredient_from_row(row: dict[str, object]) -> Ingredient:
    """Build an ingredient from a table row or API payload."""
    amount = _optional_float(row.get("price_per_unit"))
    price = None
    if amount is not None:
        price = PriceInfo(
            amount=amount,
            currency=str(row.get("price_currency") or "VND"),
            updated_at=_parse_datetime(row.get("price_updated_at")),
        )
    return Ingredient(
        id=UUID(str(row["id"])),
        name=str(row.get("name", "")),
        unit=str(row.get("unit") or "g"),
        nutrition=NutritionFacts(
            kcal=_optional_float(row.get("kcal")),
            protein=_optional_float(row.get("protein")),
            fat=_optional_float(row.get("fat")),
            carbs=_optional_float(row.get("carbs")),
            fiber=_optional_float(row.get("fiber")),
            sugar=_optional_float(row.get("sugar")),
            sodium=_optional_float(row.get("sodium")),
        ),
        price=price,
    )


def _optional_float(value: object) -> float | None:
    if isinstance(value, int | float) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str) and value:
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _parse_datetime(value: object) -> datetime | None:
    """Parse a timestamp; values without an offset are taken as UTC."""
    parsed = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
    if parsed is not None and parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
