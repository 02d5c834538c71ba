"""Domain models for recipes and derived nutrition."""

from dataclasses import dataclass, field, replace
from uuid import UUID

from diet_planner.domain.errors import InvalidInputError


@dataclass(frozen=True)
class RecipeItem:
    """Ingredient usage within a recipe, in the ingredient's canonical unit."""

    ingredient_id: UUID
    amount: float
    unit_override: str | None = None

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise InvalidInputError(
                f"amount must be positive for ingredient {self.ingredient_id}"
            )


@dataclass(frozen=True)
class Recipe:
    """Recipe with an ordered list of items."""

    id: UUID
    title: str
    items: list[RecipeItem] = field(default_factory=list)


@dataclass(frozen=True)
class RecipeNutrition:
    """Nutrition totals derived from recipe items, kept at full precision."""

    kcal: float = 0.0
    protein: float = 0.0
    fat: float = 0.0
    carbs: float = 0.0
    fiber: float = 0.0
    sugar: float = 0.0
    sodium: float = 0.0
    incomplete: bool = False
    missing_ingredient_ids: tuple[UUID, ...] = ()

    def __add__(self, other: "RecipeNutrition") -> "RecipeNutrition":
        missing = self.missing_ingredient_ids + tuple(
            ingredient_id
            for ingredient_id in other.missing_ingredient_ids
            if ingredient_id not in self.missing_ingredient_ids
        )
        return RecipeNutrition(
            kcal=self.kcal + other.kcal,
            protein=self.protein + other.protein,
            fat=self.fat + other.fat,
            carbs=self.carbs + other.carbs,
            fiber=self.fiber + other.fiber,
            sugar=self.sugar + other.sugar,
            sodium=self.sodium + other.sodium,
            incomplete=self.incomplete or other.incomplete,
            missing_ingredient_ids=missing,
        )

    def scaled(self, factor: float) -> "RecipeNutrition":
        """Return totals multiplied by a portion factor."""
        return replace(
            self,
            kcal=self.kcal * factor,
            protein=self.protein * factor,
            fat=self.fat * factor,
            carbs=self.carbs * factor,
            fiber=self.fiber * factor,
            sugar=self.sugar * factor,
            sodium=self.sodium * factor,
        )

    def rounded(self) -> "RecipeNutrition":
        """Round for presentation: kcal to integer, gram fields to one decimal."""
        return replace(
            self,
            kcal=float(round(self.kcal)),
            protein=round(self.protein, 1),
            fat=round(self.fat, 1),
            carbs=round(self.carbs, 1),
            fiber=round(self.fiber, 1),
            sugar=round(self.sugar, 1),
            sodium=round(self.sodium, 1),
        )
