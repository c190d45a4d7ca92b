"""
Telegram Bot API message sending outside of aiogram handlers.

Used by the notification relay endpoint, which receives order summaries over
HTTP and has no aiogram update to reply to. Retries transient failures with
exponential backoff; 400/403/404 are permanent and not retried.
"""

import asyncio
import os

import httpx

from kalipos.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)

NO_RESPONSE_BODY = "No response body"
PERMANENT_ERROR_CODES = {400, 403, 404}
MAX_MESSAGE_LENGTH = 4096

TELEGRAM_TOKEN = os.environ.get("TELEGRAM_TOKEN", "")
TELEGRAM_API_BASE = "https://api.telegram.org"


def _is_permanent_error(status_code: int) -> bool:
    return status_code in PERMANENT_ERROR_CODES


def _calculate_backoff_delay(attempt: int) -> float:
    return float(0.5 * (2 ** attempt))


def _truncate_message(text: str, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """Truncate message to Telegram's limit."""
    if len(text) <= max_length:
        return text
    logger.warning("Truncating message from %d to %d characters", len(text), max_length)
    return text[:max_length - 3] + "..."


def _convert_keyboard_to_dict(keyboard) -> dict | None:
    """Accept an aiogram InlineKeyboardMarkup or an already-built dict."""
    if keyboard is None:
        return None
    if isinstance(keyboard, dict):
        return dict(keyboard)
    if hasattr(keyboard, "model_dump"):
        return keyboard.model_dump(exclude_none=True)
    logger.error("Unknown keyboard type: %s", type(keyboard).__name__)
    return None


def _error_description(response: httpx.Response) -> str:
    if not response.text:
        return NO_RESPONSE_BODY
    try:
        return response.json().get("description") or response.text[:200]
    except ValueError:
        return response.text[:200]


async def send_telegram_message(
    chat_id: int,
    text: str,
    reply_markup=None,
    parse_mode: str | None = None,
    bot_token: str | None = None,
    retries: int = 2,
    timeout: float = 10.0,
    client: httpx.AsyncClient | None = None,
) -> bool:
    """
    Send a Telegram message with retry logic.

    Args:
        chat_id: Telegram chat ID (user or group)
        text: Message text
        reply_markup: Optional inline keyboard (aiogram object or dict)
        parse_mode: "HTML", "Markdown", or None for plain text
        bot_token: Bot token; defaults to TELEGRAM_TOKEN
        retries: Number of retry attempts after the first
        timeout: Request timeout in seconds
        client: Optional shared httpx client (one is created per call otherwise)

    Returns:
        True if sent successfully, False otherwise
    """
    token = bot_token or TELEGRAM_TOKEN
    if not token:
        logger.warning("No bot token configured, message to %s dropped", sanitize_id_for_logging(chat_id))
        return False

    url = f"{TELEGRAM_API_BASE}/bot{token}/sendMessage"
    payload: dict = {"chat_id": chat_id, "text": _truncate_message(text)}
    if parse_mode:
        payload["parse_mode"] = parse_mode
    keyboard = _convert_keyboard_to_dict(reply_markup)
    if keyboard:
        payload["reply_markup"] = keyboard

    last_error = None
    for attempt in range(retries + 1):
        try:
            if client is not None:
                response = await client.post(url, json=payload, timeout=timeout)
            else:
                async with httpx.AsyncClient() as own_client:
                    response = await own_client.post(url, json=payload, timeout=timeout)

            if response.status_code == 200:
                logger.debug("Message sent to %s", sanitize_id_for_logging(chat_id))
                return True

            description = _error_description(response)
            logger.warning(
                "Telegram API error for %s: status=%d, description=%s",
                sanitize_id_for_logging(chat_id), response.status_code, description,
            )
            if _is_permanent_error(response.status_code):
                return False
            last_error = f"HTTP {response.status_code}"

        except httpx.TimeoutException:
            last_error = "Timeout"
            logger.warning("Timeout sending message (attempt %d/%d)", attempt + 1, retries + 1)
        except httpx.HTTPError as e:
            last_error = f"{type(e).__name__}: {e}"
            logger.warning("HTTP error sending message: %s", last_error)

        if attempt < retries:
            await asyncio.sleep(_calculate_backoff_delay(attempt))

    logger.error(
        "Failed to send message to %s after %d attempts: %s",
        sanitize_id_for_logging(chat_id), retries + 1, last_error,
    )
    return False
