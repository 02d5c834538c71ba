"""Tests for meal slot mutations."""

from datetime import date
from uuid import UUID, uuid4

import pytest

from diet_planner.domain.errors import ConflictError, InvalidInputError, NotFoundError
from diet_planner.services.mealplans import MealSlotService
from tests.conftest import make_recipe

DAY = date(2024, 5, 1)


@pytest.fixture
def dishes(planner):
    def create(count: int) -> list[UUID]:
        return [
            planner.recipes.add(make_recipe(f"Dish {index}")).id
            for index in range(count)
        ]

    return create


def test_ensure_creates_once(planner, user_id) -> None:
    first = planner.slots.ensure(user_id, DAY)
    second = planner.slots.ensure(user_id, DAY)

    assert first.id == second.id
    assert first.slots == {"breakfast": [], "lunch": [], "dinner": []}


def test_add_to_slot_is_idempotent(planner, user_id, dishes) -> None:
    [recipe_id] = dishes(1)

    once = planner.slots.add_to_slot(user_id, DAY, "lunch", recipe_id)
    twice = planner.slots.add_to_slot(user_id, DAY, "lunch", recipe_id)

    assert once.slot("lunch") == [recipe_id]
    assert twice.slot("lunch") == [recipe_id]
    assert planner.meal_plans.writes == 1


def test_remove_then_add_restores_membership(planner, user_id, dishes) -> None:
    first, second = dishes(2)
    planner.slots.set_slot(user_id, DAY, "dinner", [first, second])

    planner.slots.remove_from_slot(user_id, DAY, "dinner", first)
    plan = planner.slots.add_to_slot(user_id, DAY, "dinner", first)

    assert set(plan.slot("dinner")) == {first, second}


def test_remove_absent_is_noop(planner, user_id, dishes) -> None:
    [recipe_id] = dishes(1)
    planner.slots.add_to_slot(user_id, DAY, "breakfast", recipe_id)

    plan = planner.slots.remove_from_slot(user_id, DAY, "breakfast", uuid4())

    assert plan.slot("breakfast") == [recipe_id]


def test_remove_drops_every_occurrence(planner, user_id, dishes) -> None:
    recipe_id, other = dishes(2)
    planner.slots.set_slot(user_id, DAY, "lunch", [recipe_id, other, recipe_id])

    plan = planner.slots.remove_from_slot(user_id, DAY, "lunch", recipe_id)

    assert plan.slot("lunch") == [other]


def test_set_slot_keeps_duplicates(planner, user_id, dishes) -> None:
    [recipe_id] = dishes(1)

    plan = planner.slots.set_slot(user_id, DAY, "lunch", [recipe_id, recipe_id])

    assert plan.slot("lunch") == [recipe_id, recipe_id]


def test_add_after_duplicated_set_leaves_unique_ids(planner, user_id, dishes) -> None:
    first, second = dishes(2)
    planner.slots.set_slot(user_id, DAY, "lunch", [first, first])

    added = planner.slots.add_to_slot(user_id, DAY, "lunch", second)
    again = planner.slots.add_to_slot(user_id, DAY, "lunch", first)

    assert added.slot("lunch") == [first, second]
    assert again.slot("lunch") == [first, second]


def test_add_existing_id_collapses_duplicates(planner, user_id, dishes) -> None:
    [recipe_id] = dishes(1)
    planner.slots.set_slot(user_id, DAY, "lunch", [recipe_id, recipe_id])

    plan = planner.slots.add_to_slot(user_id, DAY, "lunch", recipe_id)

    assert plan.slot("lunch") == [recipe_id]


def test_replace_keeps_position(planner, user_id, dishes) -> None:
    first, old, last, new = dishes(4)
    planner.slots.set_slot(user_id, DAY, "dinner", [first, old, last])

    plan = planner.slots.replace_in_slot(user_id, DAY, "dinner", old, new)

    assert plan.slot("dinner") == [first, new, last]


def test_replace_never_duplicates_new_id(planner, user_id, dishes) -> None:
    old, new = dishes(2)
    planner.slots.set_slot(user_id, DAY, "dinner", [new, old, old])

    plan = planner.slots.replace_in_slot(user_id, DAY, "dinner", old, new)

    assert plan.slot("dinner") == [new]


def test_replace_after_duplicated_set_leaves_unique_ids(
    planner, user_id, dishes
) -> None:
    kept, old, new = dishes(3)
    planner.slots.set_slot(user_id, DAY, "dinner", [kept, kept, old, old])

    plan = planner.slots.replace_in_slot(user_id, DAY, "dinner", old, new)

    assert plan.slot("dinner") == [kept, new]


def test_replace_missing_old_falls_back_to_add(planner, user_id, dishes) -> None:
    existing, new = dishes(2)
    planner.slots.add_to_slot(user_id, DAY, "lunch", existing)

    plan = planner.slots.replace_in_slot(user_id, DAY, "lunch", uuid4(), new)
    again = planner.slots.replace_in_slot(user_id, DAY, "lunch", uuid4(), new)

    assert plan.slot("lunch") == [existing, new]
    assert again.slot("lunch") == [existing, new]


def test_unknown_slot_is_rejected(planner, user_id, dishes) -> None:
    [recipe_id] = dishes(1)

    with pytest.raises(InvalidInputError):
        planner.slots.add_to_slot(user_id, DAY, "brunch", recipe_id)


def test_unknown_recipes_are_rejected(planner, user_id, dishes) -> None:
    [known] = dishes(1)
    missing = uuid4()

    with pytest.raises(NotFoundError) as set_error:
        planner.slots.set_slot(user_id, DAY, "lunch", [known, missing])
    with pytest.raises(NotFoundError):
        planner.slots.add_to_slot(user_id, DAY, "lunch", missing)
    with pytest.raises(NotFoundError):
        planner.slots.replace_in_slot(user_id, DAY, "lunch", known, missing)

    assert set_error.value.identifier == missing
    assert planner.meal_plans.writes == 0


def test_recipe_check_uses_one_batch_call(planner, user_id, dishes) -> None:
    ids = dishes(3)
    planner.recipes.batch_calls.clear()

    planner.slots.set_slot(user_id, DAY, "dinner", [*ids, ids[0]])

    assert planner.recipes.batch_calls == [ids]


def test_removing_unknown_recipe_needs_no_lookup(planner, user_id) -> None:
    plan = planner.slots.remove_from_slot(user_id, DAY, "lunch", uuid4())

    assert plan.slot("lunch") == []
    assert planner.recipes.batch_calls == []


def test_service_without_recipe_store_accepts_any_id(planner, user_id) -> None:
    service = MealSlotService(planner.meal_plans)
    recipe_id = uuid4()

    plan = service.add_to_slot(user_id, DAY, "lunch", recipe_id)

    assert plan.slot("lunch") == [recipe_id]


def test_concurrent_write_is_retried_on_fresh_state(
    planner, user_id, dishes
) -> None:
    mine, theirs = dishes(2)
    planner.slots.ensure(user_id, DAY)

    def concurrent_writer() -> None:
        planner.slots.add_to_slot(user_id, DAY, "lunch", theirs)

    planner.meal_plans.before_write = concurrent_writer
    plan = planner.slots.add_to_slot(user_id, DAY, "lunch", mine)

    assert plan.slot("lunch") == [theirs, mine]
    assert plan.version == 2


def test_pinned_version_conflict_propagates(planner, user_id, dishes) -> None:
    first, second, third = dishes(3)
    plan = planner.slots.add_to_slot(user_id, DAY, "lunch", first)
    planner.slots.add_to_slot(user_id, DAY, "lunch", second)

    with pytest.raises(ConflictError) as excinfo:
        planner.slots.add_to_slot(
            user_id, DAY, "lunch", third, expected_version=plan.version
        )

    assert excinfo.value.expected_version == plan.version
    assert excinfo.value.actual_version == plan.version + 1


def test_conflict_after_retries_is_raised(planner, user_id, dishes) -> None:
    mine, theirs = dishes(2)
    planner.slots.max_attempts = 1
    planner.slots.ensure(user_id, DAY)

    def concurrent_writer() -> None:
        planner.slots.add_to_slot(user_id, DAY, "dinner", theirs)

    planner.meal_plans.before_write = concurrent_writer

    with pytest.raises(ConflictError):
        planner.slots.add_to_slot(user_id, DAY, "dinner", mine)


def test_get_range_rejects_reversed_dates(planner, user_id) -> None:
    with pytest.raises(InvalidInputError):
        planner.slots.get_range(user_id, date(2024, 5, 2), date(2024, 5, 1))


def test_copy_week_shifts_plans(planner, user_id) -> None:
    monday_recipe, friday_recipe = uuid4(), uuid4()
    planner.meal_plans.put(user_id, date(2024, 4, 29), breakfast=[monday_recipe])
    planner.meal_plans.put(user_id, date(2024, 5, 3), dinner=[friday_recipe])
    planner.meal_plans.put(user_id, date(2024, 5, 7), lunch=[uuid4()])

    copied = planner.slots.copy_week(user_id, date(2024, 5, 1), date(2024, 5, 8))

    plans = planner.slots.get_range(user_id, date(2024, 5, 6), date(2024, 5, 12))
    assert copied == 2
    assert [plan.day for plan in plans] == [date(2024, 5, 6), date(2024, 5, 10)]
    assert plans[0].slot("breakfast") == [monday_recipe]
    assert plans[1].slot("dinner") == [friday_recipe]
