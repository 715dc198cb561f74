from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from elsquiz import __version__
from elsquiz.api import relay
from elsquiz.core.config import settings
from elsquiz.core.errors.handlers import register_error_handlers
from elsquiz.core.logging import configure_logging, get_logger
from elsquiz.core.middleware import RequestLoggingMiddleware

configure_logging(level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("startup", message="ELS result relay starting up", telegram_configured=settings.telegram_configured)
    if not settings.telegram_configured:
        log.warning("telegram_not_configured", message="BOT_TOKEN/CHAT_ID missing, results will be rejected")
    yield
    log.info("shutdown", message="ELS result relay shutting down")


def create_app() -> FastAPI:
    app = FastAPI(
        title="ELS Result Relay",
        description="Forwards ELS quiz results to the class Telegram chat",
        version=__version__,
        lifespan=lifespan,
    )

    register_error_handlers(app)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST"],
        allow_headers=["*"],
    )

    app.include_router(relay.router, prefix="/api", tags=["relay"])

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": __version__}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    log.info("server_config", host=settings.BACKEND_HOST, port=settings.BACKEND_PORT, debug=settings.APP_DEBUG)
    uvicorn.run(
        "elsquiz.main:app",
        host=settings.BACKEND_HOST,
        port=settings.BACKEND_PORT,
        reload=settings.APP_DEBUG,
        log_config=None,  # structlog owns the root logger
    )
