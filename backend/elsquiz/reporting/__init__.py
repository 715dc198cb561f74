from elsquiz.reporting.telegram import (
    INCOMPLETE_SUFFIX,
    HttpResultReporter,
    Reporter,
    format_message,
    prepare_report,
    exercise_title,
)

__all__ = [
    "INCOMPLETE_SUFFIX",
    "HttpResultReporter",
    "Reporter",
    "format_message",
    "prepare_report",
    "exercise_title",
]
