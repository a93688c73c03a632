import logging

import httpx

from .errors import DeliveryError
from .models import WebhookPayload

logger = logging.getLogger(__name__)


class GChatWebhookClient:
    def __init__(self, endpoint: str, client: httpx.AsyncClient):
        """
        Client for a Google Chat incoming webhook.

        Args:
            endpoint: The webhook URL, including its key and token query parameters.
            client: Shared HTTP client. Timeouts are configured on the client.
        """
        self.endpoint = endpoint
        self.client = client

    async def post(self, payload: WebhookPayload) -> None:
        """
        Sends one message to the webhook. There are no retries, Pub/Sub redelivers
        the whole push request when the handler fails.

        Raises:
            DeliveryError: endpoint not configured, transport failure or non-2xx response.
        """
        if not self.endpoint:
            raise DeliveryError("gchat webhook endpoint not configured")

        try:
            response = await self.client.post(self.endpoint, json=payload.model_dump())
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise DeliveryError(f"post to gchat webhook: {e}") from e

        if not response.is_success:
            logger.debug(f"gchat webhook response body: {response.text[:200]}")
            raise DeliveryError(f"gchat webhook responded with status {response.status_code}")
