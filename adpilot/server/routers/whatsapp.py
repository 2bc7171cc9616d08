from fastapi import APIRouter, BackgroundTasks, HTTPException, Query
from fastapi.responses import PlainTextResponse

from adpilot.logging import get_logger
from adpilot.server.runtime import get_runtime
from adpilot.server.schemas import WebhookPayload

_logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks/whatsapp", tags=["whatsapp"])

BUSINESS_ACCOUNT = "whatsapp_business_account"


@router.get("", response_class=PlainTextResponse)
async def verify(
    mode: str | None = Query(default=None, alias="hub.mode"),
    token: str | None = Query(default=None, alias="hub.verify_token"),
    challenge: str = Query(default="", alias="hub.challenge"),
) -> str:
    expected = get_runtime().config.whatsapp_verify_token
    if mode == "subscribe" and expected and token == expected:
        _logger.info("WhatsApp webhook verified")
        return challenge
    _logger.warning("WhatsApp webhook verification failed")
    raise HTTPException(status_code=403, detail="Forbidden")


@router.post("")
async def receive(payload: WebhookPayload, background: BackgroundTasks) -> dict:
    if payload.object != BUSINESS_ACCOUNT:
        raise HTTPException(status_code=404, detail="Not Found")

    runtime = get_runtime()
    messages = payload.text_messages()
    for message in messages:
        _logger.info("Message from %s: %s", message.from_, message.text.body[:100])
        # Reply after the 200 so slow generation never trips the webhook deadline
        background.add_task(runtime.handle_message, message.from_, message.text.body)

    for entry in payload.entry:
        for change in entry.changes:
            for status in change.value.statuses:
                _logger.debug("Message %s status: %s", status.id, status.status)

    return {"status": "ok", "accepted": len(messages)}
