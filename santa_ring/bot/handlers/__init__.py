from aiogram import Router

from santa_ring.bot.handlers import draw, roster, start

router = Router()
router.include_router(start.router)
router.include_router(roster.router)
router.include_router(draw.router)
