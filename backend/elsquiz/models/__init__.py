from elsquiz.models.content import GrammarInfo, Unit, UnitInfo, UnitStatus, Word
from elsquiz.models.progress import (
    CANONICAL_KINDS,
    DISPLAY_NAMES,
    GRAND_TEST,
    ExerciseAttemptRecord,
    ExerciseKind,
    ExerciseStatus,
    UnitProgressSummary,
    display_name,
)
from elsquiz.models.report import Learner, ResultSummary

__all__ = [
    "GrammarInfo",
    "Unit",
    "UnitInfo",
    "UnitStatus",
    "Word",
    "CANONICAL_KINDS",
    "DISPLAY_NAMES",
    "GRAND_TEST",
    "ExerciseAttemptRecord",
    "ExerciseKind",
    "ExerciseStatus",
    "UnitProgressSummary",
    "display_name",
    "Learner",
    "ResultSummary",
]
