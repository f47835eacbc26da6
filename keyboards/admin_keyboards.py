"""Клавиатуры администратора"""

from aiogram.types import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    KeyboardButton,
    ReplyKeyboardMarkup,
)

from database.models import ALLOWED_TRANSITIONS, Appointment, AppointmentStatus

ADMIN_MENU = ReplyKeyboardMarkup(
    keyboard=[
        [KeyboardButton(text="📅 Сегодня"), KeyboardButton(text="📆 Завтра")],
        [KeyboardButton(text="➕ Услуга"), KeyboardButton(text="🧹 Просроченные")],
        [KeyboardButton(text="🔙 Выход из админки")],
    ],
    resize_keyboard=True,
)

ACTION_LABELS = {
    AppointmentStatus.CONFIRMED: ("✅", "confirm"),
    AppointmentStatus.COMPLETED: ("🏁", "complete"),
    AppointmentStatus.NO_SHOW: ("🚫", "no_show"),
    AppointmentStatus.CANCELLED: ("❌", "cancel"),
}


def appointment_actions_keyboard(appointment: Appointment) -> InlineKeyboardMarkup:
    """Кнопки только для допустимых переходов статуса"""
    row = []
    for target, (emoji, action) in ACTION_LABELS.items():
        if target not in ALLOWED_TRANSITIONS[appointment.status]:
            continue
        row.append(
            InlineKeyboardButton(text=emoji, callback_data=f"adm:{action}:{appointment.id}")
        )
    row.append(
        InlineKeyboardButton(text="🗑", callback_data=f"adm:delete:{appointment.id}")
    )
    return InlineKeyboardMarkup(inline_keyboard=[row])
