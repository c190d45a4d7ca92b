"""Telegram Mini App initData validation and the FastAPI auth dependency."""
import hashlib
import hmac
import json
import os
from typing import Optional
from urllib.parse import parse_qs

from fastapi import Header, HTTPException
from pydantic import BaseModel

from kalipos.logging import get_logger

logger = get_logger(__name__)


class TelegramUser(BaseModel):
    """Telegram user data from initData"""
    id: int
    first_name: str = ""
    last_name: Optional[str] = None
    username: Optional[str] = None
    language_code: Optional[str] = "en"


def validate_telegram_init_data(init_data: str, bot_token: str) -> bool:
    """
    Validate Telegram Mini App initData using HMAC-SHA256.

    Args:
        init_data: The initData query string from Telegram WebApp
        bot_token: The bot token for HMAC verification

    Returns:
        True if the hash matches, False otherwise
    """
    if not init_data or not bot_token:
        return False

    parsed = parse_qs(init_data)
    received_hash = parsed.pop("hash", [None])[0]
    if not received_hash:
        return False

    # Data check string: sorted key=value pairs joined by newlines
    data_check_string = "\n".join(f"{key}={parsed[key][0]}" for key in sorted(parsed))

    secret_key = hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()
    calculated_hash = hmac.new(secret_key, data_check_string.encode(), hashlib.sha256).hexdigest()

    return hmac.compare_digest(calculated_hash, received_hash)


def extract_user_from_init_data(init_data: str) -> Optional[TelegramUser]:
    """User object embedded in initData, or None when absent or malformed."""
    user_json = parse_qs(init_data).get("user", [None])[0]
    if not user_json:
        return None
    try:
        return TelegramUser(**json.loads(user_json))
    except (ValueError, TypeError) as e:
        logger.warning("Malformed initData user: %s", type(e).__name__)
        return None


async def verify_telegram_auth(x_init_data: Optional[str] = Header(None, alias="X-Init-Data")) -> TelegramUser:
    """FastAPI dependency: the Mini App user behind the request."""
    if not x_init_data:
        raise HTTPException(status_code=401, detail="No authorization header")

    if not validate_telegram_init_data(x_init_data, os.environ.get("TELEGRAM_TOKEN", "")):
        raise HTTPException(status_code=401, detail="Invalid initData signature")

    user = extract_user_from_init_data(x_init_data)
    if user is None:
        raise HTTPException(status_code=401, detail="Could not extract user from initData")
    return user
