import asyncio
import logging
from typing import Any, Dict

import aiohttp

from pldash.core.errors import UpstreamError

logger = logging.getLogger(__name__)

SERVICE = "Slack"


class SlackWebhookClient:
    """Posts JSON payloads to Slack incoming webhooks. No retries."""

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    async def post(self, webhook_url: str, payload: Dict[str, Any]) -> str:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    webhook_url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    body = await response.text()
                    if 200 <= response.status < 300:
                        logger.info(f"✅ Slack webhook accepted message ({response.status})")
                        return body
                    logger.error(f"Slack webhook returned {response.status}: {body}")
                    raise UpstreamError(SERVICE, body or "webhook rejected message", response.status)
        except asyncio.TimeoutError as e:
            logger.error("⏱️ Timeout posting to Slack webhook")
            raise UpstreamError(SERVICE, "timed out posting to webhook") from e
        except aiohttp.ClientError as e:
            logger.error(f"Could not reach Slack webhook: {e}")
            raise UpstreamError(SERVICE, str(e)) from e
