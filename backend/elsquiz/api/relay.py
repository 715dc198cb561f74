"""Result relay

Receives quiz summaries from learners' browsers and forwards the formatted
message to a Telegram chat. The bot credentials live only here.
"""
from typing import AsyncIterator

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from elsquiz.core.config import Settings, get_settings
from elsquiz.core.logging import api_logger

log = api_logger()

router = APIRouter()

MESSAGE_HEADER = "ELS Test Result"


class ResultPayload(BaseModel):
    """Summary posted by the reporter. Only `message` is forwarded."""
    message: str

    class Config:
        extra = "allow"


async def get_telegram_client(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        base_url=settings.TELEGRAM_API_BASE,
        timeout=settings.REPORT_TIMEOUT_SECONDS,
    ) as client:
        yield client


def _failure(error: str, details: str | None = None) -> JSONResponse:
    content = {"success": False, "error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=500, content=content)


@router.post("/send-result")
async def send_result(
    payload: ResultPayload,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_telegram_client),
):
    if not settings.telegram_configured:
        log.error("telegram_not_configured")
        return JSONResponse(
            status_code=500,
            content={"error": "Server configuration error", "success": False},
        )

    try:
        response = await client.post(
            f"/bot{settings.BOT_TOKEN}/sendMessage",
            json={
                "chat_id": settings.CHAT_ID,
                "text": f"{MESSAGE_HEADER}\n\n{payload.message}",
                "parse_mode": "Markdown",
            },
        )
        result = response.json()
    except (httpx.HTTPError, ValueError) as e:
        log.exception("relay_failed", error=str(e), error_type=type(e).__name__)
        return _failure("Internal server error", str(e))

    if isinstance(result, dict) and result.get("ok"):
        log.info("result_relayed", student=payload.model_extra.get("studentName"))
        return {"success": True, "message": "Result sent to Telegram successfully"}

    description = result.get("description") if isinstance(result, dict) else None
    log.error("telegram_rejected", status=response.status_code, description=description)
    return _failure("Failed to send to Telegram", description)
