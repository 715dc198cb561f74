from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Progress storage
    PROGRESS_DATABASE_URL: str = "sqlite:///./els_progress.db"

    # Content
    UNITS_DIR: str = "./data/units"
    UNITS_INDEX_FILE: str = "units-index.json"

    # Quiz rules
    QUESTION_TIME_LIMIT: int = 30
    TIMER_TICK_SECONDS: float = 1.0
    TIMER_WARNING_AT: int = 10
    PASS_THRESHOLD: int = 70
    MAX_WORD_QUESTIONS: int = 10
    GRAMMAR_QUESTION_COUNT: int = 5
    GRAND_TEST_DEFAULT_SIZE: int = 50

    # Result reporting (client side)
    REPORT_ENDPOINT: str = "http://localhost:8000/api/send-result"
    REPORT_TIMEOUT_SECONDS: float = 10.0

    # Relay (server side only, never shipped to the client)
    BOT_TOKEN: str | None = None
    CHAT_ID: str | None = None
    TELEGRAM_API_BASE: str = "https://api.telegram.org"

    # Relay host
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 8000
    APP_DEBUG: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True for production (structured JSON), False for dev (colored)

    @property
    def telegram_configured(self) -> bool:
        return bool(self.BOT_TOKEN and self.CHAT_ID)

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
