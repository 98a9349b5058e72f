"""
Slack notifications via incoming webhook.
"""
import json
import logging
from typing import Optional

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential

from freight_sync.core.config import settings
from freight_sync.core.timezone import now_utc

logger = logging.getLogger(__name__)


@retry(stop=stop_after_attempt(2), wait=wait_exponential(multiplier=1, min=1, max=5), reraise=True)
async def _post_webhook(url: str, message: dict) -> httpx.Response:
    async with httpx.AsyncClient() as client:
        response = await client.post(url, json=message, timeout=10.0)
        response.raise_for_status()
        return response


async def send_slack(message: dict, webhook_url: Optional[str] = None) -> bool:
    """
    Sends a message to Slack.

    Args:
        message: Slack message payload (text/blocks)
        webhook_url: Overrides SLACK_WEBHOOK_URL

    Returns:
        True if Slack accepted the message
    """
    url = webhook_url or settings.SLACK_WEBHOOK_URL
    if not url:
        logger.warning("SLACK_WEBHOOK_URL not configured, skipping notification")
        return False

    try:
        await _post_webhook(url, message)
        logger.info("Slack notification sent")
        return True
    except httpx.HTTPStatusError as e:
        logger.error(f"Slack rejected notification: {e.response.status_code} - {e.response.text}")
        return False
    except httpx.HTTPError as e:
        logger.error(f"Error reaching Slack: {e}")
        return False


def build_dlq_overflow_message(alert: dict) -> dict:
    """
    Renders a dlq_overflow alert as a Slack message.

    Args:
        alert: {kind, count, byEventType, maxRetriesReached, timestamp}
    """
    timestamp = alert.get("timestamp") or now_utc().isoformat()
    breakdown = json.dumps(alert.get("byEventType", {}), indent=2, sort_keys=True)

    return {
        "text": f":warning: PortPro DLQ Alert: {alert.get('count')} failed webhooks",
        "blocks": [
            {
                "type": "header",
                "text": {
                    "type": "plain_text",
                    "text": ":warning: PortPro Dead Letter Queue Alert",
                    "emoji": True,
                },
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Failed Webhooks:*\n{alert.get('count')}"},
                    {"type": "mrkdwn", "text": f"*Max Retries Reached:*\n{alert.get('maxRetriesReached')}"},
                ],
            },
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*By Event Type:*\n```{breakdown}```"},
            },
            {
                "type": "context",
                "elements": [{"type": "mrkdwn", "text": f":clock1: {timestamp}"}],
            },
        ],
    }


async def send_dlq_overflow_alert(alert: dict) -> bool:
    """Sends a dlq_overflow alert to Slack."""
    return await send_slack(build_dlq_overflow_message(alert))
