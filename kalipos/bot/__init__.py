"""Telegram bot: inline item search and one-tap ordering."""
from kalipos.bot.handlers import router

__all__ = ["router"]
