"""
Notification relay client.

After a storefront order is persisted, a summary is POSTed to the relay,
which forwards it to the user's Telegram chat. Delivery is best-effort:
callers catch NotificationError and only log it.
"""

import os
from typing import Any, Dict, List, Optional

import httpx

from kalipos.errors import NotificationError
from kalipos.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)

NOTIFY_RELAY_URL = os.environ.get("NOTIFY_RELAY_URL", "")
NOTIFY_RELAY_TOKEN = os.environ.get("NOTIFY_RELAY_TOKEN", "")


class NotificationRelay:
    """HTTP client for the order notification relay."""

    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = NOTIFY_RELAY_URL if url is None else url
        self.token = NOTIFY_RELAY_TOKEN if token is None else token
        self.timeout = timeout
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def send_order(
        self,
        user_id: int,
        message: str,
        items: List[Dict[str, Any]],
    ) -> None:
        """
        Relay an order summary.

        Raises:
            NotificationError: non-2xx response or transport failure
        """
        if not self.enabled:
            logger.warning("NOTIFY_RELAY_URL not configured, order notification skipped")
            return

        payload = {
            "type": "order",
            "user_id": user_id,
            "message": message,
            "items": items,
        }

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.post(self.url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise NotificationError(f"Notification relay unreachable: {type(e).__name__}") from e

        if not response.is_success:
            raise NotificationError(
                f"Notification relay error: {response.text[:200] or response.status_code}",
                status_code=response.status_code,
            )

        logger.info("Order notification relayed for user %s", sanitize_id_for_logging(user_id))
