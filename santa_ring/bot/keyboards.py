from aiogram.utils.keyboard import InlineKeyboardBuilder


def confirm_draw_keyboard():
    keyboard = InlineKeyboardBuilder()
    keyboard.button(text="Yes, draw the matches!", callback_data="confirm_draw")
    return keyboard.as_markup()


def reveal_next_keyboard(is_last: bool):
    keyboard = InlineKeyboardBuilder()
    keyboard.button(text="Finish" if is_last else "Next match", callback_data="reveal_next")
    return keyboard.as_markup()
