"""
Order notifications sent to a Telegram chat.

Delivery is best effort: one attempt per order, no retries.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from storefront.config import settings
from storefront.errors import NotificationFailed
from storefront.rate_limiter import rate_limiter
from storefront.schemas import OrderRequest

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


def _money(value: float) -> str:
    return f"{value:,.2f}"


def format_order_message(
    order: OrderRequest,
    timestamp: Optional[datetime] = None,
    currency: Optional[str] = None,
) -> str:
    """Render an order summary as Telegram Markdown."""
    timestamp = timestamp or datetime.now()
    currency = currency or settings.ORDER_CURRENCY_SYMBOL

    lines = [
        f"🛒 *NEW ORDER* ({timestamp.strftime('%Y-%m-%d %H:%M:%S')})",
        "",
        "*Customer Information:*",
        f"📧 Email: {order.email}",
        f"📱 Phone: {order.phone_number}",
        "",
        f"*Order Summary:* {len(order.cart)} items",
        "",
    ]
    for index, line in enumerate(order.cart, start=1):
        lines.extend([
            f"{index}. *{line.name}*",
            f"   Quantity: {line.quantity}",
            f"   Price: {currency} {_money(line.price)}",
            f"   Subtotal: {currency} {_money(line.subtotal)}",
            "",
        ])
    lines.append(f"*TOTAL: {currency} {_money(order.total)}*")
    return "\n".join(lines)


class TelegramNotifier:
    """
    Client for the Telegram Bot API ``sendMessage`` method.

    Configure via environment variables: TELEGRAM_BOT_TOKEN, TELEGRAM_CHAT_ID
    """

    def __init__(
        self,
        bot_token: Optional[str] = None,
        chat_id: Optional[str] = None,
        base_url: str = TELEGRAM_API_URL,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.bot_token = bot_token if bot_token is not None else settings.TELEGRAM_BOT_TOKEN
        self.chat_id = chat_id if chat_id is not None else settings.TELEGRAM_CHAT_ID
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=15.0)

    @property
    def is_configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    async def send(self, text: str) -> Dict[str, Any]:
        """
        Send one Markdown message to the configured chat.

        Returns:
            The ``result`` object of the Telegram response.

        Raises:
            NotificationFailed: if unconfigured, unreachable, or rejected.
        """
        if not self.is_configured:
            raise NotificationFailed("Telegram bot token or chat ID not configured")

        url = f"{self.base_url}/bot{self.bot_token}/sendMessage"
        payload = {"chat_id": self.chat_id, "text": text, "parse_mode": "Markdown"}

        try:
            async with rate_limiter.get_limiter("api.telegram.org"):
                response = await self.client.post(url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"[Telegram] Error sending message: {e}")
            raise NotificationFailed(f"Telegram request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code != 200 or not data.get("ok", False):
            description = data.get("description") or f"HTTP {response.status_code}"
            logger.error(f"[Telegram] Message rejected: {description}")
            raise NotificationFailed(f"Telegram rejected message: {description}")

        return data.get("result", {})

    async def send_order(self, order: OrderRequest) -> Dict[str, Any]:
        """Format and send an order summary."""
        return await self.send(format_order_message(order))

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
