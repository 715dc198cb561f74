from elsquiz.engines.exercises import QuestionGenerator, Question, generate_questions, generate_grammar_questions
from elsquiz.engines.flashcards import FlashcardDeck
from elsquiz.engines.progress import ProgressTracker, exercise_status, progress_key
from elsquiz.engines.session import (
    AsyncioScheduler,
    ExerciseSession,
    SessionListener,
    SessionPhase,
    build_exercise,
    submit_grammar_example,
)

__all__ = [
    "QuestionGenerator",
    "Question",
    "generate_questions",
    "generate_grammar_questions",
    "FlashcardDeck",
    "ProgressTracker",
    "exercise_status",
    "progress_key",
    "AsyncioScheduler",
    "ExerciseSession",
    "SessionListener",
    "SessionPhase",
    "build_exercise",
    "submit_grammar_example",
]
