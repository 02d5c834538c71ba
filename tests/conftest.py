"""Shared test fixtures."""

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import date
from threading import Lock
from uuid import UUID, uuid4

import pytest

from diet_planner.config import Settings
from diet_planner.containers import AppContainer, build_price_policy
from diet_planner.domain.catalog import Ingredient, NutritionFacts, PriceInfo
from diet_planner.domain.errors import ConflictError
from diet_planner.domain.mealplans import FoodLog, MealPlan, normalize_slots
from diet_planner.domain.recipes import Recipe, RecipeItem
from diet_planner.services.cache import InMemoryCache
from diet_planner.services.catalog import CatalogService, IngredientRepository
from diet_planner.services.mealplans import MealPlanRepository, MealSlotService
from diet_planner.services.nutrition import FoodLogRepository, NutritionAggregator
from diet_planner.services.prices import PriceRefresher, PriceService
from diet_planner.services.recipes import RecipeRepository, RecipeService
from diet_planner.services.shopping import ShoppingListBuilder


@dataclass
class InMemoryIngredientRepository(IngredientRepository):
    """In-memory ingredient catalog that records batch calls."""

    ingredients: dict[UUID, Ingredient] = field(default_factory=dict)
    batch_calls: list[list[UUID]] = field(default_factory=list)
    single_calls: list[UUID] = field(default_factory=list)

    def add(self, ingredient: Ingredient) -> Ingredient:
        self.ingredients[ingredient.id] = ingredient
        return ingredient

    def get_ingredient(self, ingredient_id: UUID) -> Ingredient | None:
        self.single_calls.append(ingredient_id)
        return self.ingredients.get(ingredient_id)

    def get_ingredients(self, ingredient_ids: list[UUID]) -> list[Ingredient]:
        self.batch_calls.append(list(ingredient_ids))
        return [
            self.ingredients[ingredient_id]
            for ingredient_id in ingredient_ids
            if ingredient_id in self.ingredients
        ]


@dataclass
class InMemoryRecipeRepository(RecipeRepository):
    """In-memory recipe store that records batch calls."""

    recipes: dict[UUID, Recipe] = field(default_factory=dict)
    batch_calls: list[list[UUID]] = field(default_factory=list)

    def add(self, recipe: Recipe) -> Recipe:
        self.recipes[recipe.id] = recipe
        return recipe

    def get_recipe(self, recipe_id: UUID) -> Recipe | None:
        return self.recipes.get(recipe_id)

    def get_recipes(self, recipe_ids: list[UUID]) -> list[Recipe]:
        self.batch_calls.append(list(recipe_ids))
        return [
            self.recipes[recipe_id]
            for recipe_id in recipe_ids
            if recipe_id in self.recipes
        ]


@dataclass
class InMemoryMealPlanRepository(MealPlanRepository):
    """In-memory meal plans with version-checked writes.

    ``before_write`` runs inside ``update_slots`` ahead of the version check,
    which lets tests simulate a concurrent writer.
    """

    plans: dict[tuple[UUID, date], MealPlan] = field(default_factory=dict)
    before_write: Callable[[], None] | None = None
    writes: int = 0
    _lock: Lock = field(default_factory=Lock, repr=False)

    def get_meal_plan(self, user_id: UUID, day: date) -> MealPlan | None:
        return self.plans.get((user_id, day))

    def list_meal_plans(self, user_id: UUID, start: date, end: date) -> list[MealPlan]:
        return sorted(
            (
                plan
                for (owner, day), plan in self.plans.items()
                if owner == user_id and start <= day <= end
            ),
            key=lambda plan: plan.day,
        )

    def create_meal_plan(self, user_id: UUID, day: date) -> MealPlan:
        with self._lock:
            existing = self.plans.get((user_id, day))
            if existing is not None:
                return existing
            plan = MealPlan(id=uuid4(), user_id=user_id, day=day)
            self.plans[(user_id, day)] = plan
            return plan

    def update_slots(
        self,
        user_id: UUID,
        day: date,
        slots: dict[str, list[UUID]],
        expected_version: int,
    ) -> MealPlan:
        if self.before_write is not None:
            hook, self.before_write = self.before_write, None
            hook()
        with self._lock:
            current = self.plans.get((user_id, day))
            if current is None or current.version != expected_version:
                raise ConflictError(
                    expected_version, current.version if current else None
                )
            updated = replace(
                current, slots=normalize_slots(slots), version=current.version + 1
            )
            self.plans[(user_id, day)] = updated
            self.writes += 1
            return updated

    def replace_range(
        self,
        user_id: UUID,
        start: date,
        end: date,
        plans: list[tuple[date, dict[str, list[UUID]], str | None]],
    ) -> int:
        with self._lock:
            previous = {}
            for key in list(self.plans):
                owner, day = key
                if owner == user_id and start <= day <= end:
                    previous[day] = self.plans.pop(key).version
            for day, slots, note in plans:
                self.plans[(user_id, day)] = MealPlan(
                    id=uuid4(),
                    user_id=user_id,
                    day=day,
                    slots=normalize_slots(slots),
                    version=previous.get(day, -1) + 1,
                    note=note,
                )
            return len(plans)

    def put(self, user_id: UUID, day: date, **slots: list[UUID]) -> MealPlan:
        plan = MealPlan(
            id=uuid4(), user_id=user_id, day=day, slots=normalize_slots(slots)
        )
        self.plans[(user_id, day)] = plan
        return plan


@dataclass
class InMemoryFoodLogRepository(FoodLogRepository):
    """In-memory food log store."""

    logs: list[FoodLog] = field(default_factory=list)

    def list_food_logs(self, user_id: UUID, start: date, end: date) -> list[FoodLog]:
        return [
            log
            for log in self.logs
            if log.user_id == user_id and start <= log.day <= end
        ]


@dataclass
class FakePriceRefresher(PriceRefresher):
    """Fake refresher returning fixed prices and failing for selected ids."""

    prices: dict[UUID, Ingredient] = field(default_factory=dict)
    failing: set[UUID] = field(default_factory=set)
    calls: list[UUID] = field(default_factory=list)

    async def trigger_price_refresh(self, ingredient_id: UUID) -> Ingredient:
        self.calls.append(ingredient_id)
        if ingredient_id in self.failing:
            raise RuntimeError("price source unavailable")
        return self.prices[ingredient_id]


def make_ingredient(  # noqa: PLR0913
    name: str,
    *,
    kcal: float | None = None,
    protein: float | None = None,
    fat: float | None = None,
    carbs: float | None = None,
    unit: str = "g",
    price: PriceInfo | None = None,
) -> Ingredient:
    return Ingredient(
        id=uuid4(),
        name=name,
        unit=unit,
        nutrition=NutritionFacts(kcal=kcal, protein=protein, fat=fat, carbs=carbs),
        price=price,
    )


def make_recipe(title: str, *items: tuple[Ingredient, float]) -> Recipe:
    return Recipe(
        id=uuid4(),
        title=title,
        items=[RecipeItem(ingredient.id, amount) for ingredient, amount in items],
    )


@dataclass
class Planner:
    """Services wired over in-memory repositories."""

    ingredients: InMemoryIngredientRepository
    recipes: InMemoryRecipeRepository
    meal_plans: InMemoryMealPlanRepository
    food_logs: InMemoryFoodLogRepository
    refresher: FakePriceRefresher
    catalog: CatalogService
    recipe_service: RecipeService
    slots: MealSlotService
    nutrition: NutritionAggregator
    prices: PriceService
    shopping: ShoppingListBuilder


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        price_refresh_base_url="https://prices.example.com",
    )


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def planner(settings: Settings) -> Planner:
    ingredients = InMemoryIngredientRepository()
    recipes = InMemoryRecipeRepository()
    meal_plans = InMemoryMealPlanRepository()
    food_logs = InMemoryFoodLogRepository()
    refresher = FakePriceRefresher()
    catalog = CatalogService(ingredients, InMemoryCache())
    recipe_service = RecipeService(recipes, catalog)
    prices = PriceService(
        catalog=catalog, policy=build_price_policy(settings), refresher=refresher
    )
    return Planner(
        ingredients=ingredients,
        recipes=recipes,
        meal_plans=meal_plans,
        food_logs=food_logs,
        refresher=refresher,
        catalog=catalog,
        recipe_service=recipe_service,
        slots=MealSlotService(
            meal_plans,
            recipes=recipe_service,
            max_attempts=settings.slot_max_attempts,
        ),
        nutrition=NutritionAggregator(
            food_logs=food_logs, meal_plans=meal_plans, recipes=recipe_service
        ),
        prices=prices,
        shopping=ShoppingListBuilder(
            meal_plans=meal_plans,
            recipes=recipe_service,
            catalog=catalog,
            prices=prices,
            default_unit_price=settings.default_unit_price,
            default_currency=settings.default_currency,
        ),
    )


@pytest.fixture
def container(settings: Settings, planner: Planner) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        catalog_service=planner.catalog,
        recipe_service=planner.recipe_service,
        meal_slot_service=planner.slots,
        nutrition_aggregator=planner.nutrition,
        price_service=planner.prices,
        shopping_list_builder=planner.shopping,
        close_resources=close_resources,
    )
