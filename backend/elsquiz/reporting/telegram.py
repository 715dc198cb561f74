"""Result Reporter

Formats quiz summaries as Telegram-ready Markdown and posts them to the relay
endpoint, which holds the bot credentials. Delivery is fire-and-forget:
failures are logged and returned as Err, never raised into the quiz flow, and
nothing is retried.
"""
import asyncio
import threading
from datetime import datetime, timezone
from typing import Protocol

import httpx

from elsquiz.core.config import settings
from elsquiz.core.errors import AppError, Ok, Result, report_delivery_failed
from elsquiz.core.logging import reporter_logger
from elsquiz.models import GRAND_TEST, ExerciseKind, Learner, ResultSummary, display_name

log = reporter_logger()

INCOMPLETE_SUFFIX = " (Incomplete)"


class Reporter(Protocol):
    def dispatch(self, summary: ResultSummary) -> None: ...


def exercise_title(unit_id: int | str | None, kind: ExerciseKind | str) -> str:
    kind_value = kind.value if isinstance(kind, ExerciseKind) else kind
    if kind_value == GRAND_TEST:
        return display_name(GRAND_TEST)
    return f"Unit {unit_id} - {display_name(kind_value)}"


def format_message(
    learner: Learner,
    name: str,
    percentage: int,
    total: int,
    correct: int,
    wrong: int,
    when: datetime,
    pass_threshold: int,
) -> str:
    passed = percentage >= pass_threshold
    lines = [
        "*ELS - English Through Reading*",
        "",
        f"*Student:* {learner.full_name}",
        f"*Group:* {learner.group}",
        f"*Date:* {when.strftime('%Y-%m-%d')}",
        f"*Time:* {when.strftime('%H:%M:%S')}",
        "",
        "*Test Results:*",
        f"   Test: {name}",
        f"   Status: {'PASSED' if passed else 'FAILED'}",
        f"   Score: {correct}/{total} ({percentage}%)",
        f"   Correct: {correct}",
        f"   Wrong: {wrong}",
        "",
        "*Congratulations! Keep up the good work!*" if passed else "*Keep practicing! You can do better next time!*",
    ]
    return "\n".join(lines)


def prepare_report(
    learner: Learner,
    unit_id: int | str | None,
    kind: ExerciseKind | str,
    total: int,
    correct: int,
    wrong: int,
    *,
    incomplete: bool = False,
    answered: int | None = None,
    note: str | None = None,
    when: datetime | None = None,
    pass_threshold: int | None = None,
) -> ResultSummary:
    """Build the summary sent to the relay.

    The score is always correct/total, also for aborted runs, so an abort
    after 2 of 5 right answers reports 40%.
    """
    when = when or datetime.now(timezone.utc)
    threshold = settings.PASS_THRESHOLD if pass_threshold is None else pass_threshold
    kind_value = kind.value if isinstance(kind, ExerciseKind) else kind
    percentage = round(correct / total * 100) if total else 0

    name = exercise_title(unit_id, kind_value)
    if incomplete:
        name += INCOMPLETE_SUFFIX
    message = format_message(learner, name, percentage, total, correct, wrong, when, threshold)
    if note:
        message += note

    return ResultSummary(
        student_name=learner.name,
        student_surname=learner.surname,
        group=learner.group,
        unit_id=unit_id,
        exercise_type=kind_value + INCOMPLETE_SUFFIX if incomplete else kind_value,
        score=percentage,
        correct=correct,
        total=total,
        wrong=wrong,
        message=message,
        timestamp=when,
        incomplete=incomplete,
        answered=answered,
    )


class HttpResultReporter:
    """Posts summaries to the relay endpoint with httpx."""

    __slots__ = ("_endpoint", "_timeout", "_transport", "_pending")

    def __init__(
        self,
        endpoint: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._endpoint = endpoint or settings.REPORT_ENDPOINT
        self._timeout = settings.REPORT_TIMEOUT_SECONDS if timeout is None else timeout
        self._transport = transport
        self._pending: set[asyncio.Task] = set()

    async def report(self, summary: ResultSummary) -> Result[dict, AppError]:
        """Deliver one summary. Never raises."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._endpoint, json=summary.to_payload())
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.warning("report_delivery_failed", url=self._endpoint, error=str(e), error_type=type(e).__name__)
            return report_delivery_failed(str(e), url=self._endpoint, cause=e)

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error or (isinstance(body, dict) and body.get("success") is False):
            log.warning(
                "report_delivery_failed",
                url=self._endpoint,
                status=response.status_code,
                details=body.get("error") if isinstance(body, dict) else None,
            )
            return report_delivery_failed(
                f"relay answered {response.status_code}",
                url=self._endpoint,
                status_code=response.status_code,
            )

        log.info(
            "report_delivered",
            exercise_type=summary.exercise_type,
            unit_id=summary.unit_id,
            score=summary.score,
        )
        return Ok(body if isinstance(body, dict) else {})

    def dispatch(self, summary: ResultSummary) -> None:
        """Schedule delivery without waiting for it.

        Inside an event loop the delivery runs as a task; without one it runs
        on a daemon thread so the caller still returns immediately.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            threading.Thread(
                target=asyncio.run,
                args=(self.report(summary),),
                name="els-report",
                daemon=True,
            ).start()
            return

        task = loop.create_task(self.report(summary))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for in-flight deliveries (shutdown and tests)."""
        if self._pending:
            await asyncio.gather(*self._pending)
