"""Bot handlers package - exports combined router with all handlers."""
from aiogram import Router

from kalipos.bot.handlers.callbacks import router as callbacks_router
from kalipos.bot.handlers.commands import router as commands_router
from kalipos.bot.handlers.inline import router as inline_router

router = Router()

# Commands before the text catch-all they contain; callbacks end with their own fallback
router.include_router(commands_router)
router.include_router(callbacks_router)
router.include_router(inline_router)

__all__ = ["router"]
