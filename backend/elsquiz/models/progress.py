from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ExerciseKind(str, Enum):
    """The five canonical quiz modes of a unit."""
    DEFINITION = "definition"
    ENG_TO_UZ = "engToUz"
    UZ_TO_ENG = "uzToEng"
    GAPFILL = "gapfill"
    GRAMMAR = "grammar"


CANONICAL_KINDS: tuple[ExerciseKind, ...] = tuple(ExerciseKind)

# Pseudo-kind for the multi-unit test; never stored in progress
GRAND_TEST = "grand"

DISPLAY_NAMES: dict[str, str] = {
    ExerciseKind.DEFINITION.value: "Matching Definition",
    ExerciseKind.ENG_TO_UZ.value: "English -> Uzbek",
    ExerciseKind.UZ_TO_ENG.value: "Uzbek -> English",
    ExerciseKind.GAPFILL.value: "Gap-Filling",
    ExerciseKind.GRAMMAR.value: "Grammar Practice",
    GRAND_TEST: "Grand Test",
}


def display_name(kind: ExerciseKind | str) -> str:
    value = kind.value if isinstance(kind, ExerciseKind) else kind
    return DISPLAY_NAMES.get(value, value)


class ExerciseStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETED = "completed"


class ExerciseAttemptRecord(BaseModel):
    """Latest attempt for one (unit, kind). Stored under unit_<id>_exercise_<kind>."""
    score: int = Field(default=0, ge=0, le=100)
    completed: bool = False
    completed_at: datetime | None = Field(default=None, alias="date")
    unit_id: int | str | None = Field(default=None, alias="unitId")
    exercise_kind: str | None = Field(default=None, alias="exerciseType")

    class Config:
        populate_by_name = True

    @property
    def attempted(self) -> bool:
        return self.score > 0


class UnitProgressSummary(BaseModel):
    """Derived per-unit progress; computed on demand, never stored."""
    average_score: int = Field(alias="averageScore")
    completion_rate: int = Field(alias="completionRate")
    completed_count: int = Field(alias="completedCount")
    total_exercises: int = Field(default=len(CANONICAL_KINDS), alias="totalExercises")

    class Config:
        populate_by_name = True
