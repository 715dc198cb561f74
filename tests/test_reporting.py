"""Result reporter tests."""
import asyncio
import json
import threading
from datetime import datetime

import httpx

from elsquiz.core.errors import ErrorCode
from elsquiz.models import GRAND_TEST, ExerciseKind
from elsquiz.reporting import HttpResultReporter, exercise_title, prepare_report

ENDPOINT = "http://relay.test/api/send-result"
WHEN = datetime(2025, 3, 1, 14, 5, 9)


class TestTitles:
    def test_unit_exercise(self):
        assert exercise_title(1, ExerciseKind.DEFINITION) == "Unit 1 - Matching Definition"
        assert exercise_title("2", "gapfill") == "Unit 2 - Gap-Filling"

    def test_grand_test(self):
        assert exercise_title(None, GRAND_TEST) == "Grand Test"


class TestPrepareReport:
    def test_passed_message(self, learner):
        summary = prepare_report(learner, 1, ExerciseKind.ENG_TO_UZ, 10, 7, 3, when=WHEN, pass_threshold=70)

        assert summary.score == 70
        lines = summary.message.split("\n")
        assert "*Student:* Aziza Karimova" in lines
        assert "*Group:* B2-07" in lines
        assert "*Date:* 2025-03-01" in lines
        assert "*Time:* 14:05:09" in lines
        assert "   Test: Unit 1 - English -> Uzbek" in lines
        assert "   Status: PASSED" in lines
        assert "   Score: 7/10 (70%)" in lines
        assert lines[-1] == "*Congratulations! Keep up the good work!*"

    def test_failed_message(self, learner):
        summary = prepare_report(learner, 1, ExerciseKind.DEFINITION, 10, 6, 4, when=WHEN, pass_threshold=70)
        assert summary.score == 60
        assert "   Status: FAILED" in summary.message
        assert summary.message.endswith("*Keep practicing! You can do better next time!*")

    def test_incomplete_report(self, learner):
        summary = prepare_report(
            learner, 3, ExerciseKind.UZ_TO_ENG, 5, 1, 1,
            incomplete=True, answered=2, note="\n\nNote: gone", when=WHEN,
        )
        assert summary.exercise_type == "uzToEng (Incomplete)"
        assert "Test: Unit 3 - Uzbek -> English (Incomplete)" in summary.message
        assert summary.score == 20
        assert summary.message.endswith("\n\nNote: gone")

    def test_empty_quiz_scores_zero(self, learner):
        assert prepare_report(learner, 1, ExerciseKind.DEFINITION, 0, 0, 0).score == 0

    def test_payload_is_camel_case(self, learner):
        payload = prepare_report(learner, 1, ExerciseKind.GAPFILL, 4, 4, 0, when=WHEN).to_payload()
        assert payload["studentName"] == "Aziza"
        assert payload["studentSurname"] == "Karimova"
        assert payload["unitId"] == 1
        assert payload["exerciseType"] == "gapfill"
        assert payload["score"] == 100
        assert payload["timestamp"].startswith("2025-03-01T14:05:09")


class TestHttpResultReporter:
    def _reporter(self, handler):
        return HttpResultReporter(ENDPOINT, timeout=2.0, transport=httpx.MockTransport(handler))

    def test_delivered(self, learner):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"success": True, "message": "Result sent to Telegram successfully"})

        summary = prepare_report(learner, 1, ExerciseKind.DEFINITION, 5, 5, 0)
        result = asyncio.run(self._reporter(handler).report(summary))

        assert result.is_ok()
        assert result.unwrap()["success"] is True
        assert seen[0]["message"] == summary.message
        assert seen[0]["exerciseType"] == "definition"

    def test_relay_error_status(self, learner):
        def handler(request):
            return httpx.Response(500, json={"success": False, "error": "Server configuration error"})

        summary = prepare_report(learner, 1, ExerciseKind.DEFINITION, 5, 5, 0)
        result = asyncio.run(self._reporter(handler).report(summary))

        assert result.is_err()
        error = result.unwrap_err()
        assert error.code == ErrorCode.E1030_REPORT_DELIVERY_FAILED
        assert error.metadata["status_code"] == 500

    def test_unsuccessful_body(self, learner):
        def handler(request):
            return httpx.Response(200, json={"success": False})

        summary = prepare_report(learner, 1, ExerciseKind.DEFINITION, 5, 5, 0)
        assert asyncio.run(self._reporter(handler).report(summary)).is_err()

    def test_network_failure(self, learner):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        summary = prepare_report(learner, 1, ExerciseKind.DEFINITION, 5, 5, 0)
        result = asyncio.run(self._reporter(handler).report(summary))

        assert result.is_err()
        assert result.unwrap_err().code == ErrorCode.E1030_REPORT_DELIVERY_FAILED

    def test_dispatch_inside_event_loop(self, learner):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, json={"success": True})

        reporter = self._reporter(handler)
        summary = prepare_report(learner, 1, ExerciseKind.DEFINITION, 5, 5, 0)

        async def run():
            reporter.dispatch(summary)
            assert seen == []
            await reporter.drain()

        asyncio.run(run())
        assert seen == ["/api/send-result"]

    def test_malformed_endpoint(self, learner):
        def handler(request):
            return httpx.Response(200, json={"success": True})

        reporter = HttpResultReporter("http://[::1", timeout=2.0, transport=httpx.MockTransport(handler))
        summary = prepare_report(learner, 1, ExerciseKind.DEFINITION, 5, 5, 0)
        result = asyncio.run(reporter.report(summary))

        assert result.is_err()
        error = result.unwrap_err()
        assert error.code == ErrorCode.E1030_REPORT_DELIVERY_FAILED
        assert error.metadata["url"] == "http://[::1"

    def test_dispatch_without_event_loop(self, learner):
        delivered = threading.Event()

        def handler(request):
            delivered.set()
            return httpx.Response(200, json={"success": True})

        summary = prepare_report(learner, 1, ExerciseKind.DEFINITION, 5, 5, 0)
        self._reporter(handler).dispatch(summary)

        assert delivered.wait(5)

    def test_bad_endpoint_on_worker_thread(self, learner):
        results = []
        reporter = HttpResultReporter("http://[::1", timeout=2.0)
        summary = prepare_report(learner, 1, ExerciseKind.DEFINITION, 5, 5, 0)

        worker = threading.Thread(target=lambda: results.append(asyncio.run(reporter.report(summary))))
        worker.start()
        worker.join(5)

        [result] = results
        assert result.unwrap_err().code == ErrorCode.E1030_REPORT_DELIVERY_FAILED
