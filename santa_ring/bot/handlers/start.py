from aiogram import Router, types
from aiogram.filters import CommandStart

from santa_ring.bot.utils import GENERIC_ERROR, TOO_OFTEN, check_rate_limit, log_handler_exception
from santa_ring.db import get_session
from santa_ring.services import game_flow

router = Router()

HELP_TEXT = (
    "Hello! I'm your Secret Santa bot!\n\n"
    "Build the list of participants, tell me who must not be matched, "
    "and I'll draw one gift-giving circle through everyone.\n\n"
    "/add &lt;name&gt; - add a participant\n"
    "/remove &lt;name&gt; - remove a participant\n"
    "/exclude &lt;name&gt;, &lt;name&gt; - never match these two\n"
    "/unexclude &lt;name&gt;, &lt;name&gt; - drop an exclusion\n"
    "/list - participants and exclusions\n"
    "/check - see whether a draw can be attempted\n"
    "/draw - draw the matches (admins)\n"
    "/reveal - reveal the matches one by one\n"
    "/matches - show every match behind a spoiler\n"
    "/reset - clear the matches (admins)"
)


@router.message(CommandStart())
async def command_start_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "start"):
        await message.answer(TOO_OFTEN)
        return

    try:
        with get_session() as session:
            game_flow.get_or_create_group(session, message.chat.id, message.chat.title)
        await message.answer(HELP_TEXT)
    except Exception as exc:
        log_handler_exception("start", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)
