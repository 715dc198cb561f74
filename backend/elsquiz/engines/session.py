"""Exercise Session State Machine

Drives one quiz attempt:

    idle -> presenting(i) -> answered(i) -> presenting(i+1) ... -> completed
                     \\________________________/
                              -> aborted

Each presented question owns exactly one countdown handle; it is cancelled
on every way out of `presenting` (answer, timeout, abort). Completion writes
progress and emits a report; aborting only emits an "incomplete" report.
The free-text grammar submission is a separate terminal path
(`submit_grammar_example`).
"""
import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

from elsquiz.core.config import settings
from elsquiz.core.errors import (
    AppError,
    Ok,
    Result,
    content_unavailable,
    operation_not_allowed,
    required_field,
)
from elsquiz.core.logging import session_logger
from elsquiz.engines.exercises import WORD_KINDS, Question, QuestionGenerator
from elsquiz.engines.progress import ProgressTracker
from elsquiz.models import GRAND_TEST, ExerciseKind, Learner, ResultSummary, Unit
from elsquiz.reporting.telegram import Reporter, prepare_report

log = session_logger()

TIMEOUT_REASON = "Time is up"


class SessionPhase(str, Enum):
    IDLE = "idle"
    PRESENTING = "presenting"
    ANSWERED = "answered"
    COMPLETED = "completed"
    ABORTED = "aborted"


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class AsyncioScheduler:
    """Countdown ticks on the asyncio event loop."""

    __slots__ = ("_loop",)

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def available(self) -> bool:
        """True when a countdown can be armed from the current context."""
        if self._loop is not None:
            return not self._loop.is_closed()
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return False
        return True

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class SessionListener:
    """UI hooks. All no-ops; the shell overrides what it renders."""

    def on_question(self, index: int, total: int, question: Question) -> None:
        pass

    def on_tick(self, remaining: int, warning: bool) -> None:
        pass

    def on_answered(self, feedback: "AnswerFeedback") -> None:
        pass

    def on_completed(self, summary: ResultSummary, celebrate: bool) -> None:
        pass

    def on_aborted(self, summary: ResultSummary) -> None:
        pass


@dataclass(frozen=True, slots=True)
class AnswerFeedback:
    index: int
    selected: str | None
    correct_option: str
    is_correct: bool
    timed_out: bool = False

    @property
    def reason(self) -> str:
        return TIMEOUT_REASON if self.timed_out else ""


@dataclass(slots=True)
class SessionState:
    """Transient state of one quiz attempt."""
    questions: tuple[Question, ...]
    phase: SessionPhase = SessionPhase.IDLE
    index: int = 0
    correct: int = 0
    wrong: int = 0
    answered: bool = False
    remaining: int = 0
    shown: int = 0
    selected: str | None = None

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def answered_count(self) -> int:
        return self.correct + self.wrong

    @property
    def percentage(self) -> int:
        return round(self.correct / self.total * 100) if self.total else 0

    @property
    def current(self) -> Question | None:
        return self.questions[self.index] if 0 <= self.index < self.total else None

    @property
    def is_last(self) -> bool:
        return self.index == self.total - 1


class ExerciseSession:
    """One timed multiple-choice attempt for a unit (or the Grand Test)."""

    __slots__ = (
        "learner", "unit_id", "kind", "state", "summary",
        "_progress", "_reporter", "_scheduler", "_listener",
        "_time_limit", "_tick_seconds", "_warning_at", "_pass_threshold", "_timer",
    )

    def __init__(
        self,
        learner: Learner,
        unit_id: int | str | None,
        kind: ExerciseKind | str,
        questions: list[Question],
        *,
        progress: ProgressTracker,
        reporter: Reporter,
        scheduler: Scheduler | None = None,
        listener: SessionListener | None = None,
        time_limit: int | None = None,
        tick_seconds: float | None = None,
        warning_at: int | None = None,
        pass_threshold: int | None = None,
    ):
        self.learner = learner
        self.unit_id = unit_id
        self.kind = kind.value if isinstance(kind, ExerciseKind) else kind
        self.state = SessionState(questions=tuple(questions))
        self.summary: ResultSummary | None = None
        self._progress = progress
        self._reporter = reporter
        self._scheduler = scheduler or AsyncioScheduler()
        self._listener = listener or SessionListener()
        self._time_limit = settings.QUESTION_TIME_LIMIT if time_limit is None else time_limit
        self._tick_seconds = settings.TIMER_TICK_SECONDS if tick_seconds is None else tick_seconds
        self._warning_at = settings.TIMER_WARNING_AT if warning_at is None else warning_at
        self._pass_threshold = settings.PASS_THRESHOLD if pass_threshold is None else pass_threshold
        self._timer: Cancellable | None = None

    @property
    def phase(self) -> SessionPhase:
        return self.state.phase

    @property
    def has_live_timer(self) -> bool:
        return self._timer is not None

    @property
    def _stores_progress(self) -> bool:
        return self.kind != GRAND_TEST and self.unit_id is not None

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def start(self) -> Result[SessionState, AppError]:
        if self.state.phase != SessionPhase.IDLE:
            return operation_not_allowed("start", f"session is {self.state.phase.value}", origin="session")
        if not self.state.questions:
            return operation_not_allowed("start", "no questions to present", origin="session")
        if not getattr(self._scheduler, "available", True):
            log.warning("session_start_refused", unit_id=self.unit_id, kind=self.kind, reason="no_event_loop")
            return operation_not_allowed("start", "no running event loop for the question timer", origin="session")

        log.info("session_started", unit_id=self.unit_id, kind=self.kind, total=self.state.total)
        self._present(0)
        return Ok(self.state)

    def answer(self, option: str) -> AnswerFeedback | None:
        """Score the first answer to the current question; later calls are ignored."""
        if self.state.phase != SessionPhase.PRESENTING or self.state.answered:
            log.debug("answer_ignored", phase=self.state.phase.value, index=self.state.index)
            return None
        return self._record_answer(option, timed_out=False)

    def advance(self) -> SessionPhase:
        """Continue to the next question, or complete after the last one."""
        if self.state.phase != SessionPhase.ANSWERED:
            log.debug("advance_blocked", phase=self.state.phase.value, index=self.state.index)
            return self.state.phase

        next_index = self.state.index + 1
        if next_index >= self.state.total:
            self._complete()
        else:
            self._present(next_index)
        return self.state.phase

    def abort(self, reason: str) -> ResultSummary | None:
        """Tear down a running quiz (navigation away, tab closed).

        Reports an incomplete summary if at least one question was shown;
        progress is never written for an aborted run.
        """
        self._cancel_timer()
        running = self.state.phase in (SessionPhase.PRESENTING, SessionPhase.ANSWERED)
        if not running or self.state.shown == 0:
            return None

        self.state.phase = SessionPhase.ABORTED
        answered = self.state.answered_count
        total = self.state.total
        summary = prepare_report(
            self.learner,
            self.unit_id,
            self.kind,
            total,
            self.state.correct,
            self.state.wrong,
            incomplete=True,
            answered=answered,
            note=f"\n\nNote: {reason} - Test was not completed (answered {answered}/{total} questions)",
            pass_threshold=self._pass_threshold,
        )
        self.summary = summary
        log.info("session_aborted", unit_id=self.unit_id, kind=self.kind, reason=reason, answered=answered, total=total)
        self._emit(summary)
        self._listener.on_aborted(summary)
        return summary

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _present(self, index: int) -> None:
        state = self.state
        state.index = index
        state.phase = SessionPhase.PRESENTING
        state.answered = False
        state.selected = None
        state.remaining = self._time_limit
        state.shown += 1
        self._listener.on_question(index, state.total, state.questions[index])
        self._arm_timer()

    def _arm_timer(self) -> None:
        self._cancel_timer()
        self._timer = self._scheduler.call_later(self._tick_seconds, self._on_tick)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_tick(self) -> None:
        self._timer = None
        if self.state.phase != SessionPhase.PRESENTING:
            return

        self.state.remaining -= 1
        self._listener.on_tick(self.state.remaining, self.state.remaining <= self._warning_at)
        if self.state.remaining <= 0:
            log.debug("question_timed_out", index=self.state.index)
            self._record_answer(None, timed_out=True)
        else:
            self._arm_timer()

    def _record_answer(self, option: str | None, timed_out: bool) -> AnswerFeedback:
        self._cancel_timer()
        state = self.state
        question = state.questions[state.index]
        is_correct = not timed_out and option is not None and question.is_correct(option)

        if is_correct:
            state.correct += 1
        else:
            state.wrong += 1
        state.answered = True
        state.selected = option
        state.phase = SessionPhase.ANSWERED

        feedback = AnswerFeedback(
            index=state.index,
            selected=option,
            correct_option=question.correct,
            is_correct=is_correct,
            timed_out=timed_out,
        )
        self._listener.on_answered(feedback)
        return feedback

    def _complete(self) -> None:
        self._cancel_timer()
        state = self.state
        state.index = state.total
        state.phase = SessionPhase.COMPLETED
        percentage = state.percentage

        if self._stores_progress:
            saved = self._progress.save(self.unit_id, self.kind, percentage)
            if saved.is_err():
                log.warning("session_progress_not_saved", unit_id=self.unit_id, kind=self.kind, error=saved.unwrap_err().message)

        summary = prepare_report(
            self.learner,
            self.unit_id,
            self.kind,
            state.total,
            state.correct,
            state.wrong,
            answered=state.answered_count,
            pass_threshold=self._pass_threshold,
        )
        self.summary = summary
        log.info("session_completed", unit_id=self.unit_id, kind=self.kind, score=percentage, correct=state.correct, total=state.total)
        self._emit(summary)
        self._listener.on_completed(summary, percentage >= self._pass_threshold)

    def _emit(self, summary: ResultSummary) -> None:
        try:
            self._reporter.dispatch(summary)
        except Exception as e:
            # Reporting never interrupts the learner
            log.warning("report_dispatch_failed", error=str(e), error_type=type(e).__name__)


def build_exercise(
    unit: Unit,
    kind: ExerciseKind | str,
    generator: QuestionGenerator | None = None,
) -> Result[list[Question], AppError]:
    """Generate the question list for one exercise button of a unit."""
    generator = generator or QuestionGenerator()

    if kind == ExerciseKind.GRAMMAR:
        grammar = unit.grammar
        if not grammar.structure:
            return content_unavailable(
                unit.id, "grammar exercises are not available for this unit yet", origin="session"
            )
        return Ok(generator.generate_grammar(grammar.structure, grammar.examples, settings.GRAMMAR_QUESTION_COUNT))

    try:
        resolved = ExerciseKind(kind)
    except ValueError:
        resolved = None
    if resolved not in WORD_KINDS:
        return operation_not_allowed("build_exercise", f"unknown exercise kind '{kind}'", origin="session")

    count = min(len(unit.words), settings.MAX_WORD_QUESTIONS)
    return Ok(generator.generate(unit.words, resolved, count))


def submit_grammar_example(
    learner: Learner,
    unit_id: int | str,
    text: str,
    *,
    progress: ProgressTracker,
    reporter: Reporter,
) -> Result[ResultSummary, AppError]:
    """Accept a learner-written grammar example: always 100% and completed."""
    example = (text or "").strip()
    if not example:
        return required_field("example", origin="session")

    saved = progress.save(unit_id, ExerciseKind.GRAMMAR, 100, completed=True)
    if saved.is_err():
        log.warning("grammar_progress_not_saved", unit_id=unit_id, error=saved.unwrap_err().message)

    summary = prepare_report(
        learner,
        unit_id,
        ExerciseKind.GRAMMAR,
        total=1,
        correct=1,
        wrong=0,
        answered=1,
        note=f"\nStudent's Example: {example}",
    )
    try:
        reporter.dispatch(summary)
    except Exception as e:
        log.warning("report_dispatch_failed", error=str(e), error_type=type(e).__name__)

    log.info("grammar_example_submitted", unit_id=unit_id, length=len(example))
    return Ok(summary)
