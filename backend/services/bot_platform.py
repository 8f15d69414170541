"""
Client for handing a lead's SMS reply to the Botpress webhook integration.
The bot answers asynchronously through /api/botpress/webhook.
"""
import logging

import requests

from backend.config import settings
from backend.errors import DeliveryError

logger = logging.getLogger("leadline")


class BotPlatformClient:
    def __init__(self, webhook_url: str, timeout: float = 10):
        self.webhook_url = webhook_url
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.webhook_url)

    def forward_message(self, user_id: str, conversation_id: str, text: str) -> None:
        """Post a lead message to the bot. Raises DeliveryError on any failure."""
        if not self.configured:
            raise DeliveryError("Bot platform not configured", details="BOTPRESS_WEBHOOK_URL is empty")
        try:
            resp = requests.post(
                self.webhook_url,
                json={"userId": user_id, "conversationId": conversation_id, "text": text},
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise DeliveryError("Failed to forward message to bot platform", details=str(e)) from e
        logger.info(f"Forwarded message to Botpress conversation {conversation_id}")


def get_bot_client() -> BotPlatformClient:
    """FastAPI dependency returning a client configured from settings."""
    return BotPlatformClient(settings.botpress_webhook_url, timeout=settings.bot_timeout_seconds)
