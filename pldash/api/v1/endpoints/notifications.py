import logging

from fastapi import APIRouter, Depends, HTTPException

from pldash.api.deps import get_settings, get_slack_client
from pldash.core.config import Settings
from pldash.core.slack_client import SlackWebhookClient
from pldash.schemas.dashboard import Envelope, NotificationRequest, SlackMessageRequest, success_envelope
from pldash.services.notification_service import build_notification, build_text_message, resolve_webhook

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/slack", response_model=Envelope)
async def send_slack_message(
    payload: SlackMessageRequest,
    slack: SlackWebhookClient = Depends(get_slack_client),
    config: Settings = Depends(get_settings),
):
    if not payload.message or not payload.channel:
        raise HTTPException(status_code=400, detail="Message and channel are required")

    webhook_url = resolve_webhook(payload.channel, config)
    logger.info(f"Sending message to Slack channel {payload.channel} ({len(payload.message)} chars)")
    await slack.post(webhook_url, build_text_message(payload.message, payload.channel))
    return success_envelope({"channel": payload.channel})


@router.post("", response_model=Envelope)
async def send_notification(
    payload: NotificationRequest,
    slack: SlackWebhookClient = Depends(get_slack_client),
    config: Settings = Depends(get_settings),
):
    if not payload.type or payload.data is None:
        raise HTTPException(status_code=400, detail="Missing required parameters: type and data")
    try:
        message = build_notification(payload.type, payload.data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    webhook_url = resolve_webhook(None, config)
    await slack.post(webhook_url, message)
    logger.info(f"Sent {payload.type} notification to Slack")
    return success_envelope({"type": payload.type})
