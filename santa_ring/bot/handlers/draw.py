from __future__ import annotations

import html

from aiogram import Router, types
from aiogram.filters import Command
from loguru import logger

from santa_ring.bot.keyboards import confirm_draw_keyboard, reveal_next_keyboard
from santa_ring.bot.utils import GENERIC_ERROR, TOO_OFTEN, check_rate_limit, is_admin, log_handler_exception
from santa_ring.db import GroupStatus, get_session, repo
from santa_ring.services import game_flow
from santa_ring.services.game_flow import AssignmentError, RevealStep

router = Router()

NOT_ACTIVE = "This chat has no Secret Santa yet. Add participants with /add &lt;name&gt;."


def format_reveal_step(step: RevealStep) -> str:
    return (
        f"Match {step.position} of {step.total}\n\n"
        f"{step.giver_name} gives a gift to <tg-spoiler>{step.receiver_name}</tg-spoiler>"
    )


@router.message(Command("draw"))
async def draw_command_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "draw"):
        await message.answer(TOO_OFTEN)
        return

    if not await is_admin(message.bot, message.chat, message.from_user.id):
        await message.answer("Only group admins can draw the matches.")
        return

    try:
        with get_session() as session:
            group = repo.get_group_by_telegram_id(session, message.chat.id)
            if not group:
                await message.answer(NOT_ACTIVE)
                return
            if group.status == GroupStatus.ASSIGNED:
                await message.answer("Matches have already been drawn. Use /reset to draw again.")
                return

        await message.answer(
            "Are you sure you want to draw the Secret Santa matches?",
            reply_markup=confirm_draw_keyboard(),
        )
    except Exception as exc:
        log_handler_exception("draw", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)


@router.callback_query(lambda c: c.data == "confirm_draw")
async def confirm_draw_callback_handler(query: types.CallbackQuery) -> None:
    if not check_rate_limit(query.from_user.id, "confirm_draw"):
        await query.answer(TOO_OFTEN, show_alert=True)
        return

    if not await is_admin(query.message.bot, query.message.chat, query.from_user.id):
        await query.answer("Only group admins can draw the matches.", show_alert=True)
        return

    try:
        with get_session() as session:
            group = repo.get_group_by_telegram_id(session, query.message.chat.id)
            if not group:
                await query.answer("This chat has no Secret Santa yet.", show_alert=True)
                return
            result = game_flow.draw_group(session, group)
            count = len(result.pairs)

        await query.answer("Matches drawn!", show_alert=True)
        await query.message.edit_text(
            f"Secret Santa matches are drawn for {count} participants! "
            "Use /reveal to reveal them one by one."
        )
    except AssignmentError as exc:
        await query.answer(str(exc), show_alert=True)
    except Exception as exc:
        log_handler_exception("confirm_draw", query.from_user.id, query.message.chat.id, exc)
        await query.answer(GENERIC_ERROR, show_alert=True)


@router.message(Command("reveal"))
async def reveal_command_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "reveal"):
        await message.answer(TOO_OFTEN)
        return

    try:
        with get_session() as session:
            group = repo.get_group_by_telegram_id(session, message.chat.id)
            if not group:
                await message.answer(NOT_ACTIVE)
                return
            step = game_flow.reveal_next(session, group)

        if step is None:
            await message.answer("Every match has been revealed. Merry Christmas!")
            return
        await message.answer(format_reveal_step(step), reply_markup=reveal_next_keyboard(step.is_last))
    except AssignmentError as exc:
        await message.answer(html.escape(str(exc)))
    except Exception as exc:
        log_handler_exception("reveal", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)


@router.callback_query(lambda c: c.data == "reveal_next")
async def reveal_next_callback_handler(query: types.CallbackQuery) -> None:
    if not check_rate_limit(query.from_user.id, "reveal_next"):
        await query.answer(TOO_OFTEN, show_alert=True)
        return

    try:
        with get_session() as session:
            group = repo.get_group_by_telegram_id(session, query.message.chat.id)
            if not group:
                await query.answer("This chat has no Secret Santa yet.", show_alert=True)
                return
            step = game_flow.reveal_next(session, group)

        await query.answer()
        if step is None:
            await query.message.edit_text("Every match has been revealed. Merry Christmas!")
            return
        await query.message.edit_text(
            format_reveal_step(step),
            reply_markup=reveal_next_keyboard(step.is_last),
        )
    except AssignmentError as exc:
        await query.answer(str(exc), show_alert=True)
    except Exception as exc:
        log_handler_exception("reveal_next", query.from_user.id, query.message.chat.id, exc)
        await query.answer(GENERIC_ERROR, show_alert=True)


@router.message(Command("matches"))
async def matches_command_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "matches"):
        await message.answer(TOO_OFTEN)
        return

    try:
        with get_session() as session:
            group = repo.get_group_by_telegram_id(session, message.chat.id)
            if not group:
                await message.answer(NOT_ACTIVE)
                return
            matches = game_flow.list_matches(session, group)

        lines = ["Secret Santa matches:"]
        lines.extend(
            f"- {giver} → <tg-spoiler>{receiver}</tg-spoiler>" for giver, receiver in matches
        )
        await message.answer("\n".join(lines))
    except AssignmentError as exc:
        await message.answer(html.escape(str(exc)))
    except Exception as exc:
        log_handler_exception("matches", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)


@router.message(Command("reset"))
async def reset_command_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "reset"):
        await message.answer(TOO_OFTEN)
        return

    if not await is_admin(message.bot, message.chat, message.from_user.id):
        await message.answer("Only group admins can reset the Secret Santa.")
        return

    try:
        with get_session() as session:
            group = repo.get_group_by_telegram_id(session, message.chat.id)
            if not group:
                await message.answer(NOT_ACTIVE)
                return
            game_flow.reset_group(session, group)
        logger.bind(chat_id=message.chat.id).info("Secret Santa reset")
        await message.answer("Secret Santa has been reset. Participants and exclusions are kept, matches cleared.")
    except Exception as exc:
        log_handler_exception("reset", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)
