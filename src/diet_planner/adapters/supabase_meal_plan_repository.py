"""Supabase repository for meal plans with version-checked writes."""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from supabase import Client

from diet_planner.domain.errors import ConflictError
from diet_planner.domain.mealplans import SLOTS, MealPlan, normalize_slots
from diet_planner.services.mealplans import MealPlanRepository

_COLUMNS = "id, user_id, date, slots, note, version"


@dataclass
class SupabaseMealPlanRepository(MealPlanRepository):
    """Supabase implementation for meal plans."""

    client: Client

    def get_meal_plan(self, user_id: UUID, day: date) -> MealPlan | None:
        """Return the plan for a user and date."""
        response = (
            self.client.table("meal_plans")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .eq("date", day.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_plan(response.data[0])

    def list_meal_plans(self, user_id: UUID, start: date, end: date) -> list[MealPlan]:
        """Return plans in an inclusive date range."""
        response = (
            self.client.table("meal_plans")
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .gte("date", start.isoformat())
            .lte("date", end.isoformat())
            .order("date", desc=False)
            .execute()
        )
        return [_parse_plan(row) for row in response.data or []]

    def create_meal_plan(self, user_id: UUID, day: date) -> MealPlan:
        """Insert an empty plan, leaving an existing row untouched."""
        self.client.table("meal_plans").upsert(
            {
                "user_id": str(user_id),
                "date": day.isoformat(),
                "slots": _serialize_slots(normalize_slots(None)),
                "version": 0,
            },
            on_conflict="user_id,date",
            ignore_duplicates=True,
        ).execute()
        plan = self.get_meal_plan(user_id, day)
        if plan is None:
            raise RuntimeError("Failed to create meal plan")
        return plan

    def update_slots(
        self,
        user_id: UUID,
        day: date,
        slots: dict[str, list[UUID]],
        expected_version: int,
    ) -> MealPlan:
        """Write slots only if the stored version is unchanged."""
        response = (
            self.client.table("meal_plans")
            .update(
                {
                    "slots": _serialize_slots(slots),
                    "version": expected_version + 1,
                }
            )
            .eq("user_id", str(user_id))
            .eq("date", day.isoformat())
            .eq("version", expected_version)
            .execute()
        )
        if not response.data:
            current = self.get_meal_plan(user_id, day)
            raise ConflictError(expected_version, current.version if current else None)
        return _parse_plan(response.data[0])

    def replace_range(
        self,
        user_id: UUID,
        start: date,
        end: date,
        plans: list[tuple[date, dict[str, list[UUID]], str | None]],
    ) -> int:
        """Upsert the replacements, then delete the range's remaining days.

        Copied days are written before anything is deleted, so a failed write
        leaves the previous plans in place.
        """
        previous = {
            plan.day: plan.version
            for plan in self.list_meal_plans(user_id, start, end)
        }
        payload = [
            {
                "user_id": str(user_id),
                "date": day.isoformat(),
                "slots": _serialize_slots(slots),
                "note": note,
                "version": previous.get(day, -1) + 1,
            }
            for day, slots, note in plans
        ]
        if payload:
            self.client.table("meal_plans").upsert(
                payload, on_conflict="user_id,date"
            ).execute()
        query = (
            self.client.table("meal_plans")
            .delete()
            .eq("user_id", str(user_id))
            .gte("date", start.isoformat())
            .lte("date", end.isoformat())
        )
        if payload:
            query = query.not_.in_("date", [row["date"] for row in payload])
        query.execute()
        return len(payload)


def _serialize_slots(slots: dict[str, list[UUID]]) -> dict[str, list[str]]:
    return {
        slot: [str(recipe_id) for recipe_id in slots.get(slot, [])] for slot in SLOTS
    }


def _parse_plan(row: dict[str, object]) -> MealPlan:
    raw_slots = row.get("slots") or {}
    slots = normalize_slots(
        {
            slot: [UUID(str(recipe_id)) for recipe_id in ids or []]
            for slot, ids in raw_slots.items()
        }
    )
    return MealPlan(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        day=date.fromisoformat(str(row["date"])[:10]),
        slots=slots,
        version=int(row.get("version") or 0),
        note=row.get("note"),
    )
