"""Request models for the planner API."""

from datetime import date
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from diet_planner.domain.shopping import ShoppingMode


class SlotReplace(BaseModel):
    """Swap one recipe for another within a slot."""

    old: UUID
    new: UUID


class SlotPatch(BaseModel):
    """Exactly one slot mutation, optionally pinned to a plan version."""

    set: list[UUID] | None = None
    add: UUID | None = None
    remove: UUID | None = None
    replace: SlotReplace | None = None
    expected_version: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _single_operation(self) -> "SlotPatch":
        chosen = [
            name
            for name in ("set", "add", "remove", "replace")
            if getattr(self, name) is not None
        ]
        if len(chosen) != 1:
            raise ValueError("Provide exactly one of set, add, remove or replace")
        return self


class CopyWeekRequest(BaseModel):
    """Copy the week containing ``source`` onto the week containing ``target``."""

    source: date
    target: date


class CostProjectionRequest(BaseModel):
    """Shopping list parameters plus the caller's checked ingredients."""

    start: date
    end: date
    servings: int | None = None
    mode: ShoppingMode = ShoppingMode.NORMAL
    checked: list[UUID] = Field(default_factory=list)
