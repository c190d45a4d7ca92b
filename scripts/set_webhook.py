"""
Register the Telegram webhook for the Kalipos bot
Usage: python scripts/set_webhook.py
"""
import asyncio
import os
import sys
from pathlib import Path

import httpx
from dotenv import load_dotenv

ALLOWED_UPDATES = ["message", "callback_query", "inline_query"]


async def set_webhook() -> bool:
    """Point Telegram at /webhook/telegram and print the resulting webhook info."""
    token = os.environ.get("TELEGRAM_TOKEN")
    if not token:
        print("❌ Error: TELEGRAM_TOKEN not set")
        return False

    webhook_url = os.environ.get("TELEGRAM_WEBHOOK_URL")
    if not webhook_url:
        webhook_url = f"{os.environ.get('WEBAPP_URL', 'https://kalipos.app')}/webhook/telegram"
        print(f"⚠️  TELEGRAM_WEBHOOK_URL not set, using default: {webhook_url}")
    else:
        print(f"📡 Setting webhook to: {webhook_url}")

    base_url = f"https://api.telegram.org/bot{token}"

    async with httpx.AsyncClient(timeout=15.0) as client:
        response = await client.post(
            f"{base_url}/setWebhook",
            json={
                "url": webhook_url,
                "allowed_updates": ALLOWED_UPDATES,
                "drop_pending_updates": True,
            },
        )
        result = response.json()

        if not result.get("ok"):
            print(f"❌ Error: {result.get('description', 'Unknown error')}")
            return False

        print("✅ Webhook set")
        info = (await client.get(f"{base_url}/getWebhookInfo")).json()
        if info.get("ok"):
            webhook_info = info["result"]
            print(f"   URL: {webhook_info.get('url', 'N/A')}")
            print(f"   Pending updates: {webhook_info.get('pending_update_count', 0)}")
            if webhook_info.get("last_error_date"):
                print(f"   ⚠️  Last error: {webhook_info.get('last_error_message', 'N/A')}")
        return True


if __name__ == "__main__":
    env_path = Path(__file__).parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    sys.exit(0 if asyncio.run(set_webhook()) else 1)
