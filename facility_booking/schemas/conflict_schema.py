"""Conflict detection result models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from facility_booking.schemas.slot_schema import OccupiedSlot, PricedTimeSlot


class ConflictType(str, Enum):
    """How the requested interval relates to the first conflicting slot."""
    EXACT_DUPLICATE = "EXACT_DUPLICATE"
    PARTIAL_OVERLAP = "PARTIAL_OVERLAP"
    CONTAINED = "CONTAINED"
    CONTAINS = "CONTAINS"


class ConflictResult(BaseModel):
    """Outcome of checking a requested interval against occupied slots."""

    model_config = ConfigDict(frozen=True)

    has_conflict: bool
    conflict_type: Optional[ConflictType] = None
    conflicting_slots: list[OccupiedSlot] = Field(default_factory=list)
    message: str
    suggested_alternatives: list[PricedTimeSlot] = Field(default_factory=list)
