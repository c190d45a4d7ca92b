"""Tests for Telegram Mini App initData validation"""
import hashlib
import hmac
import json
from urllib.parse import urlencode

import pytest
from fastapi import HTTPException

from kalipos.auth import extract_user_from_init_data, validate_telegram_init_data, verify_telegram_auth

BOT_TOKEN = "123456:test_token"


def make_init_data(user: dict, bot_token: str = BOT_TOKEN) -> str:
    """Build initData signed the way Telegram signs it."""
    fields = {"auth_date": "1700000000", "query_id": "AAF", "user": json.dumps(user)}
    data_check_string = "\n".join(f"{k}={fields[k]}" for k in sorted(fields))
    secret_key = hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()
    fields["hash"] = hmac.new(secret_key, data_check_string.encode(), hashlib.sha256).hexdigest()
    return urlencode(fields)


class TestValidation:

    def test_valid_signature(self):
        assert validate_telegram_init_data(make_init_data({"id": 42, "first_name": "Ana"}), BOT_TOKEN)

    def test_wrong_token(self):
        assert not validate_telegram_init_data(make_init_data({"id": 42}), "other:token")

    def test_tampered_user(self):
        init_data = make_init_data({"id": 42}).replace("42", "43")
        assert not validate_telegram_init_data(init_data, BOT_TOKEN)

    def test_missing_hash(self):
        assert not validate_telegram_init_data("user=%7B%7D&auth_date=1", BOT_TOKEN)

    def test_extract_user(self):
        user = extract_user_from_init_data(make_init_data({"id": 42, "first_name": "Ana", "username": "ana"}))

        assert user.id == 42
        assert user.username == "ana"

    def test_extract_malformed_user(self):
        assert extract_user_from_init_data("user=not-json") is None


class TestDependency:

    @pytest.mark.asyncio
    async def test_accepts_signed_init_data(self, monkeypatch):
        monkeypatch.setenv("TELEGRAM_TOKEN", BOT_TOKEN)

        user = await verify_telegram_auth(make_init_data({"id": 42, "first_name": "Ana"}))

        assert user.id == 42

    @pytest.mark.asyncio
    async def test_rejects_missing_header(self):
        with pytest.raises(HTTPException) as exc_info:
            await verify_telegram_auth(None)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_rejects_bad_signature(self, monkeypatch):
        monkeypatch.setenv("TELEGRAM_TOKEN", BOT_TOKEN)

        with pytest.raises(HTTPException):
            await verify_telegram_auth(make_init_data({"id": 42}, bot_token="other:token"))
