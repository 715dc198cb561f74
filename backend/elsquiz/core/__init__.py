# Core module exports
from elsquiz.core.config import settings, get_settings
from elsquiz.core.logging import (
    configure_logging,
    get_logger,
    bind_context,
    clear_context,
    generate_correlation_id,
)

__all__ = [
    "settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "generate_correlation_id",
]
