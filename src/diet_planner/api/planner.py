"""Planner API endpoints exposing slots, nutrition and shopping lists."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, BackgroundTasks, Header, Request

from diet_planner.api.schemas import (  # noqa: TC001
    CopyWeekRequest,
    CostProjectionRequest,
    SlotPatch,
)
from diet_planner.domain.nutrition import MacroTotals
from diet_planner.domain.shopping import ShoppingMode
from diet_planner.services.shopping import project_costs

if TYPE_CHECKING:
    from diet_planner.containers import AppContainer
    from diet_planner.domain.mealplans import MealPlan
    from diet_planner.domain.nutrition import DailyNutrition, PlannedMeal
    from diet_planner.domain.shopping import CostProjection, ShoppingList

router = APIRouter(tags=["planner"])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.get("/mealplans")
async def list_meal_plans(
    request: Request, start: date, end: date, x_user_id: UUID = Header()
) -> dict[str, object]:
    """Return meal plans in an inclusive date range."""
    plans = _container(request).meal_slot_service.get_range(x_user_id, start, end)
    return {"plans": [_serialize_plan(plan) for plan in plans]}


@router.patch("/mealplans/{day}/slots/{slot}")
async def patch_slot(
    day: date,
    slot: str,
    patch: SlotPatch,
    request: Request,
    x_user_id: UUID = Header(),
) -> dict[str, object]:
    """Apply one idempotent slot mutation."""
    service = _container(request).meal_slot_service
    version = patch.expected_version
    if patch.set is not None:
        plan = service.set_slot(x_user_id, day, slot, patch.set, version)
    elif patch.add is not None:
        plan = service.add_to_slot(x_user_id, day, slot, patch.add, version)
    elif patch.remove is not None:
        plan = service.remove_from_slot(x_user_id, day, slot, patch.remove, version)
    else:
        plan = service.replace_in_slot(
            x_user_id, day, slot, patch.replace.old, patch.replace.new, version
        )
    return _serialize_plan(plan)


@router.post("/mealplans/copy-week")
async def copy_week(
    body: CopyWeekRequest, request: Request, x_user_id: UUID = Header()
) -> dict[str, int]:
    """Copy one week's plans onto another week."""
    copied = _container(request).meal_slot_service.copy_week(
        x_user_id, body.source, body.target
    )
    return {"copied": copied}


@router.get("/nutrition/daily/{day}")
async def daily_nutrition(
    day: date, request: Request, x_user_id: UUID = Header()
) -> dict[str, object]:
    """Return one day's totals and their source."""
    daily = _container(request).nutrition_aggregator.daily_nutrition(x_user_id, day)
    return _serialize_daily(daily)


@router.get("/nutrition/summary")
async def nutrition_summary(
    request: Request, start: date, end: date, x_user_id: UUID = Header()
) -> dict[str, object]:
    """Return daily totals and the window average for a range."""
    summary = _container(request).nutrition_aggregator.summarize_range(
        x_user_id, start, end
    )
    return {
        "daily": [_serialize_daily(entry) for entry in summary.daily],
        "average": _serialize_macros(summary.average),
    }


@router.get("/shopping-list")
async def shopping_list(  # noqa: PLR0913
    request: Request,
    start: date,
    end: date,
    servings: int | None = None,
    mode: ShoppingMode = ShoppingMode.NORMAL,
    x_user_id: UUID = Header(),
) -> dict[str, object]:
    """Return the priced shopping list for a date range."""
    result = _container(request).shopping_list_builder.build(
        x_user_id, start, end, servings=servings, mode=mode
    )
    return _serialize_shopping_list(result)


@router.post("/shopping-list/costs")
async def shopping_list_costs(
    body: CostProjectionRequest, request: Request, x_user_id: UUID = Header()
) -> dict[str, object]:
    """Return the shopping list with total and remaining cost for checked items."""
    result = _container(request).shopping_list_builder.build(
        x_user_id, body.start, body.end, servings=body.servings, mode=body.mode
    )
    projection = project_costs(result, set(body.checked))
    return {
        **_serialize_shopping_list(result),
        "costs": _serialize_projection(projection),
    }


@router.post("/shopping-list/refresh-prices")
async def refresh_prices(
    request: Request,
    background_tasks: BackgroundTasks,
    start: date,
    end: date,
    x_user_id: UUID = Header(),
) -> dict[str, object]:
    """Schedule refreshes for stale or missing prices without waiting on them."""
    container = _container(request)
    result = container.shopping_list_builder.build(x_user_id, start, end)
    pending = [item.ingredient_id for item in result.items if item.is_estimate]
    if pending and container.price_service.refresher is not None:
        background_tasks.add_task(container.price_service.refresh_prices, pending)
        return {"scheduled": len(pending)}
    return {"scheduled": 0}


def _serialize_plan(plan: MealPlan) -> dict[str, object]:
    return {
        "id": str(plan.id),
        "date": plan.day.isoformat(),
        "version": plan.version,
        "note": plan.note,
        "slots": {
            slot: [str(recipe_id) for recipe_id in ids]
            for slot, ids in plan.slots.items()
        },
    }


def _serialize_macros(totals: MacroTotals) -> dict[str, float]:
    return {
        "calories": round(totals.calories),
        "protein": round(totals.protein, 1),
        "fat": round(totals.fat, 1),
        "carbs": round(totals.carbs, 1),
    }


def _serialize_daily(daily: DailyNutrition) -> dict[str, object]:
    return {
        "date": daily.day.isoformat(),
        **_serialize_macros(daily.totals),
        "source": daily.source.value,
        "incomplete": daily.incomplete,
        "meals": {
            slot: [_serialize_meal(meal) for meal in meals]
            for slot, meals in daily.meals.items()
        },
    }


def _serialize_meal(meal: PlannedMeal) -> dict[str, object]:
    nutrition = meal.nutrition
    return {
        "recipe_id": str(meal.recipe_id),
        "title": meal.title,
        **_serialize_macros(
            MacroTotals(
                nutrition.kcal, nutrition.protein, nutrition.fat, nutrition.carbs
            )
        ),
        "incomplete": nutrition.incomplete,
    }


def _serialize_shopping_list(result: ShoppingList) -> dict[str, object]:
    return {
        "start": result.start.isoformat(),
        "end": result.end.isoformat(),
        "servings": result.servings,
        "mode": result.mode.value,
        "currency": result.currency,
        "total_cost": result.total_cost,
        "incomplete": result.incomplete,
        "missing_recipe_ids": [
            str(recipe_id) for recipe_id in result.missing_recipe_ids
        ],
        "items": [
            {
                "ingredient_id": str(item.ingredient_id),
                "name": item.name,
                "unit": item.unit,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "currency": item.currency,
                "estimated_cost": item.estimated_cost,
                "price_status": item.price_status.value,
                "is_estimate": item.is_estimate,
                "price_updated_at": item.price_updated_at.isoformat()
                if item.price_updated_at
                else None,
            }
            for item in result.items
        ],
    }


def _serialize_projection(projection: CostProjection) -> dict[str, float]:
    return {
        "total": projection.total,
        "checked": projection.checked,
        "remaining": projection.remaining,
    }
