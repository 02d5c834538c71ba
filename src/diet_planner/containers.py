"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from supabase import create_client

from diet_planner.adapters.price_refresh_client import HttpxPriceRefreshClient
from diet_planner.adapters.supabase_food_log_repository import (
    SupabaseFoodLogRepository,
)
from diet_planner.adapters.supabase_ingredient_repository import (
    SupabaseIngredientRepository,
)
from diet_planner.adapters.supabase_meal_plan_repository import (
    SupabaseMealPlanRepository,
)
from diet_planner.adapters.supabase_recipe_repository import SupabaseRecipeRepository
from diet_planner.config import Settings
from diet_planner.services.cache import InMemoryCache
from diet_planner.services.catalog import CatalogService
from diet_planner.services.mealplans import MealSlotService
from diet_planner.services.nutrition import NutritionAggregator
from diet_planner.services.prices import PricePolicy, PriceService
from diet_planner.services.recipes import RecipeService
from diet_planner.services.shopping import ShoppingListBuilder


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    catalog_service: CatalogService
    recipe_service: RecipeService
    meal_slot_service: MealSlotService
    nutrition_aggregator: NutritionAggregator
    price_service: PriceService
    shopping_list_builder: ShoppingListBuilder
    close_resources: Callable[[], Awaitable[None]]


def build_price_policy(settings: Settings) -> PricePolicy:
    """Create the price policy from configured freshness and expiry."""
    expiry = (
        timedelta(hours=settings.price_expiry_hours)
        if settings.price_expiry_hours
        else None
    )
    return PricePolicy(
        freshness=timedelta(hours=settings.price_freshness_hours),
        expiry=expiry,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    ingredient_repository = SupabaseIngredientRepository(supabase_client)
    recipe_repository = SupabaseRecipeRepository(supabase_client)
    meal_plan_repository = SupabaseMealPlanRepository(supabase_client)
    food_log_repository = SupabaseFoodLogRepository(supabase_client)

    catalog_service = CatalogService(
        repository=ingredient_repository,
        cache=InMemoryCache(),
        ttl_seconds=resolved_settings.catalog_ttl_seconds,
    )
    recipe_service = RecipeService(recipe_repository, catalog_service)
    meal_slot_service = MealSlotService(
        meal_plan_repository,
        recipes=recipe_service,
        max_attempts=resolved_settings.slot_max_attempts,
    )
    nutrition_aggregator = NutritionAggregator(
        food_logs=food_log_repository,
        meal_plans=meal_plan_repository,
        recipes=recipe_service,
    )
    price_refresh_client = (
        HttpxPriceRefreshClient.create(
            resolved_settings.price_refresh_base_url,
            token=resolved_settings.price_refresh_token,
        )
        if resolved_settings.price_refresh_base_url
        else None
    )
    price_service = PriceService(
        catalog=catalog_service,
        policy=build_price_policy(resolved_settings),
        refresher=price_refresh_client,
    )
    shopping_list_builder = ShoppingListBuilder(
        meal_plans=meal_plan_repository,
        recipes=recipe_service,
        catalog=catalog_service,
        prices=price_service,
        default_unit_price=resolved_settings.default_unit_price,
        default_currency=resolved_settings.default_currency,
        default_servings=resolved_settings.default_servings,
        saving_factor=resolved_settings.saving_factor,
    )

    async def close_resources() -> None:
        if price_refresh_client is not None:
            await price_refresh_client.close()

    return AppContainer(
        settings=resolved_settings,
        catalog_service=catalog_service,
        recipe_service=recipe_service,
        meal_slot_service=meal_slot_service,
        nutrition_aggregator=nutrition_aggregator,
        price_service=price_service,
        shopping_list_builder=shopping_list_builder,
        close_resources=close_resources,
    )
