"""
Kalipos POS - Main FastAPI Application

Single entry point for the Telegram webhook, the notification relay and the
POS Mini App API. Deployed as one Vercel serverless function.
"""
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Vercel runs this file without installing the project
_base_path = Path(__file__).resolve().parent.parent
if str(_base_path) not in sys.path:
    sys.path.insert(0, str(_base_path))

from kalipos.logging import get_logger  # noqa: E402
from kalipos.routers import deps  # noqa: E402
from kalipos.routers.webapp import router as webapp_router  # noqa: E402
from kalipos.routers.webhooks import router as webhooks_router  # noqa: E402
from kalipos.services.database import close_database, init_database  # noqa: E402

logger = get_logger(__name__)

WEBAPP_URL = os.environ.get("WEBAPP_URL", "https://kalipos.app")


# ==================== FASTAPI APP ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup
    try:
        await init_database()
    except ValueError as e:
        # Retried lazily on first use
        logger.warning("Database not initialized at startup: %s", e)
    yield
    # Shutdown
    await deps.shutdown()
    await close_database()


app = FastAPI(
    title="Kalipos POS",
    description="Ordering storefront and Telegram bot API",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS for Mini App
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Telegram Mini Apps require this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(webhooks_router)
app.include_router(webapp_router)


# ==================== HEALTH CHECK ====================

@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "service": "kalipos"}


@app.get("/api/webhook/test")
async def test_webhook():
    """Verify the bot is configured"""
    return {
        "bot_configured": deps.get_bot() is not None,
        "telegram_token_set": bool(os.environ.get("TELEGRAM_TOKEN")),
        "webhook_url": f"{WEBAPP_URL}/webhook/telegram",
    }
