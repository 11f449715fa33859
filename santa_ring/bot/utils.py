from __future__ import annotations

from aiogram.enums import ChatMemberStatus, ChatType
from loguru import logger

from santa_ring.services.rate_limit import rate_limiter

TOO_OFTEN = "You're doing that too often. Please slow down."
GENERIC_ERROR = "Something went wrong. Please try again later."


async def is_admin(bot, chat, user_id: int) -> bool:
    if chat.type == ChatType.PRIVATE:
        return True
    try:
        member = await bot.get_chat_member(chat.id, user_id)
    except Exception as exc:  # pragma: no cover - network dependent
        logger.bind(chat_id=chat.id, user_id=user_id).warning(
            "Failed to check admin status: {error}", error=str(exc)
        )
        return False
    return member.status in {ChatMemberStatus.ADMINISTRATOR, ChatMemberStatus.CREATOR}


def check_rate_limit(user_id: int, action: str) -> bool:
    return rate_limiter.hit(user_id, action).allowed


def command_argument(text: str | None) -> str:
    parts = (text or "").split(maxsplit=1)
    return parts[1].strip() if len(parts) > 1 else ""


def log_handler_exception(action: str, user_id: int | None, chat_id: int | None, error: Exception) -> None:
    logger.bind(action=action, user_id=user_id, chat_id=chat_id).exception(
        "Handler error: {error}", error=str(error)
    )
