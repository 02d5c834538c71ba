"""Supabase repository for food logs."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from supabase import Client

from diet_planner.domain.mealplans import FoodLog, MacroOverride
from diet_planner.services.nutrition import FoodLogRepository

_MACRO_KEYS = ("kcal", "protein", "fat", "carbs")
_COLUMNS = "id, user_id, date, meal_type, recipe_id, kcal, protein, fat, carbs, note"


@dataclass
class SupabaseFoodLogRepository(FoodLogRepository):
    """Supabase implementation for food log reads."""

    client: Client

    def list_food_logs(self, user_id: UUID, start: date, end: date) -> list[FoodLog]:
        """Return food logs in an inclusive date range."""
        response = (
            self.client.table("food_logs")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .gte("date", start.isoformat())
            .lte("date", end.isoformat())
            .order("date", desc=False)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _parse_row(row: dict[str, object]) -> FoodLog:
    macros = None
    if any(row.get(key) is not None for key in _MACRO_KEYS):
        macros = MacroOverride(
            **{
                key: float(row[key]) if row.get(key) is not None else None
                for key in _MACRO_KEYS
            }
        )
    return FoodLog(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        day=date.fromisoformat(str(row["date"])[:10]),
        meal_type=str(row.get("meal_type", "")),
        recipe_id=UUID(str(row["recipe_id"])) if row.get("recipe_id") else None,
        macros=macros,
        note=row.get("note"),
    )
