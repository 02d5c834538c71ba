"""Error taxonomy for the planning engine."""


class DietPlannerError(Exception):
    """Base class for engine errors."""


class NotFoundError(DietPlannerError):
    """An ingredient, recipe or meal plan required for a computation is missing."""

    def __init__(self, kind: str, identifier: object) -> None:
        super().__init__(f"{kind} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier


class InvalidInputError(DietPlannerError):
    """Input is out of range or malformed."""


class ConflictError(DietPlannerError):
    """A slot write lost a race against a concurrent writer."""

    def __init__(self, expected_version: int, actual_version: int | None) -> None:
        super().__init__(
            "Meal plan version conflict: "
            f"expected {expected_version}, found {actual_version}"
        )
        self.expected_version = expected_version
        self.actual_version = actual_version
