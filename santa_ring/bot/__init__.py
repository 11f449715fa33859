from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from santa_ring.bot.handlers import router as handlers_router
from santa_ring.core.config import load_settings
from santa_ring.services.rate_limit import rate_limiter

settings = load_settings()
rate_limiter.configure(settings.rate_limit_calls, settings.rate_limit_period)

bot = Bot(token=settings.bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))

dp = Dispatcher()
dp.include_router(handlers_router)
