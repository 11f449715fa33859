from __future__ import annotations

import html

from aiogram import Router, types
from aiogram.filters import Command

from santa_ring.bot.utils import (
    GENERIC_ERROR,
    TOO_OFTEN,
    check_rate_limit,
    command_argument,
    log_handler_exception,
)
from santa_ring.db import get_session
from santa_ring.services import game_flow
from santa_ring.services.validation import RosterError, parse_name_pair

router = Router()


@router.message(Command("add"))
async def add_command_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "add"):
        await message.answer(TOO_OFTEN)
        return

    name = command_argument(message.text)
    if not name:
        await message.answer("Usage: /add Alice")
        return

    try:
        with get_session() as session:
            group = game_flow.get_or_create_group(session, message.chat.id, message.chat.title)
            participant = game_flow.add_participant(session, group, name)
            label = game_flow.format_name(participant)
        await message.answer(f"{label} joined the Secret Santa!")
    except RosterError as exc:
        await message.answer(html.escape(str(exc)))
    except Exception as exc:
        log_handler_exception("add", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)


@router.message(Command("remove"))
async def remove_command_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "remove"):
        await message.answer(TOO_OFTEN)
        return

    name = command_argument(message.text)
    if not name:
        await message.answer("Usage: /remove Alice")
        return

    try:
        with get_session() as session:
            group = game_flow.get_or_create_group(session, message.chat.id, message.chat.title)
            participant = game_flow.remove_participant(session, group, name)
            label = game_flow.format_name(participant)
        await message.answer(f"{label} was removed along with their exclusions.")
    except RosterError as exc:
        await message.answer(html.escape(str(exc)))
    except Exception as exc:
        log_handler_exception("remove", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)


@router.message(Command("list"))
async def list_command_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "list"):
        await message.answer(TOO_OFTEN)
        return

    try:
        with get_session() as session:
            group = game_flow.get_or_create_group(session, message.chat.id, message.chat.title)
            participants = game_flow.list_participants(session, group)
            if not participants:
                await message.answer("No participants yet. Add some with /add &lt;name&gt;.")
                return

            names = {participant.id: game_flow.format_name(participant) for participant in participants}
            lines = ["Participants:"]
            lines.extend(f"- {names[participant.id]}" for participant in participants)

            exclusions = game_flow.list_exclusions(session, group)
            if exclusions:
                lines.append("")
                lines.append("Never matched:")
                lines.extend(
                    f"- {names[exclusion.participant1_id]} &amp; {names[exclusion.participant2_id]}"
                    for exclusion in exclusions
                )

        await message.answer("\n".join(lines))
    except Exception as exc:
        log_handler_exception("list", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)


@router.message(Command("exclude"))
async def exclude_command_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "exclude"):
        await message.answer(TOO_OFTEN)
        return

    try:
        first, second = parse_name_pair(command_argument(message.text))
        with get_session() as session:
            group = game_flow.get_or_create_group(session, message.chat.id, message.chat.title)
            game_flow.add_exclusion(session, group, first, second)
        await message.answer(
            f"{html.escape(first)} and {html.escape(second)} will never be matched."
        )
    except RosterError as exc:
        await message.answer(html.escape(str(exc)))
    except Exception as exc:
        log_handler_exception("exclude", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)


@router.message(Command("unexclude"))
async def unexclude_command_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "unexclude"):
        await message.answer(TOO_OFTEN)
        return

    try:
        first, second = parse_name_pair(command_argument(message.text))
        with get_session() as session:
            group = game_flow.get_or_create_group(session, message.chat.id, message.chat.title)
            game_flow.remove_exclusion(session, group, first, second)
        await message.answer(
            f"{html.escape(first)} and {html.escape(second)} may be matched again."
        )
    except RosterError as exc:
        await message.answer(html.escape(str(exc)))
    except Exception as exc:
        log_handler_exception("unexclude", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)


@router.message(Command("check"))
async def check_command_handler(message: types.Message) -> None:
    if not check_rate_limit(message.from_user.id, "check"):
        await message.answer(TOO_OFTEN)
        return

    try:
        with get_session() as session:
            group = game_flow.get_or_create_group(session, message.chat.id, message.chat.title)
            report = game_flow.check_group(session, group)

        await message.answer(game_flow.describe_feasibility(report))
    except Exception as exc:
        log_handler_exception("check", message.from_user.id, message.chat.id, exc)
        await message.answer(GENERIC_ERROR)
