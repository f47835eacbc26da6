"""Клавиатуры для клиентов"""

from datetime import date, datetime
from typing import Dict, List

from aiogram.types import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    KeyboardButton,
    ReplyKeyboardMarkup,
)

from config import DAY_NAMES_SHORT
from database.models import Appointment, Service, Stylist
from utils.datetime_utils import format_datetime

# Главное меню
MAIN_MENU = ReplyKeyboardMarkup(
    keyboard=[
        [KeyboardButton(text="💇 Записаться")],
        [KeyboardButton(text="📋 Мои записи")],
    ],
    resize_keyboard=True,
    one_time_keyboard=False,
)

CANCEL_BUTTON = InlineKeyboardButton(text="❌ Отмена", callback_data="cancel_booking_flow")


def services_keyboard(services: List[Service]) -> InlineKeyboardMarkup:
    """Клавиатура выбора услуги"""
    buttons = []
    for service in services:
        # Эмодзи в зависимости от длительности
        if service.duration_minutes <= 60:
            emoji = "⚡"
        elif service.duration_minutes <= 90:
            emoji = "⏱"
        else:
            emoji = "🕐"

        buttons.append([
            InlineKeyboardButton(
                text=f"{emoji} {service.name} ({service.get_duration_display()}, {service.price:g} €)",
                callback_data=f"svc:{service.id}",
            )
        ])

    buttons.append([CANCEL_BUTTON])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def stylists_keyboard(stylists: List[Stylist]) -> InlineKeyboardMarkup:
    """Клавиатура выбора мастера"""
    buttons = [
        [InlineKeyboardButton(text=f"✂️ {stylist.full_name}", callback_data=f"sty:{stylist.id}")]
        for stylist in stylists
    ]
    buttons.append([InlineKeyboardButton(text="« Услуги", callback_data="back_services")])
    buttons.append([CANCEL_BUTTON])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def days_keyboard(days: Dict[date, bool]) -> InlineKeyboardMarkup:
    """Дни на ближайшие недели; дни без слотов некликабельны"""
    keyboard = []
    for day, has_slots in days.items():
        label = f"{DAY_NAMES_SHORT[day.weekday()]} {day.strftime('%d.%m')}"
        if has_slots:
            button = InlineKeyboardButton(text=f"🟢 {label}", callback_data=f"day:{day.isoformat()}")
        else:
            button = InlineKeyboardButton(text=f"⚫ {label}", callback_data="ignore")

        if not keyboard or len(keyboard[-1]) == 3:
            keyboard.append([])
        keyboard[-1].append(button)

    keyboard.append([InlineKeyboardButton(text="« Мастера", callback_data="back_stylists")])
    keyboard.append([CANCEL_BUTTON])
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def slots_keyboard(slots: List[datetime]) -> InlineKeyboardMarkup:
    """Свободные времена начала услуги, по 4 в ряд"""
    keyboard = []
    for slot in slots:
        if not keyboard or len(keyboard[-1]) == 4:
            keyboard.append([])
        keyboard[-1].append(
            InlineKeyboardButton(
                text=slot.strftime("%H:%M"),
                callback_data=f"slot:{slot.strftime('%Y-%m-%dT%H:%M')}",
            )
        )

    keyboard.append([InlineKeyboardButton(text="« Дни", callback_data="back_days")])
    keyboard.append([CANCEL_BUTTON])
    return InlineKeyboardMarkup(inline_keyboard=keyboard)


def confirmation_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="✅ Подтвердить", callback_data="book_confirm")],
            [InlineKeyboardButton(text="« Другое время", callback_data="back_slots")],
            [CANCEL_BUTTON],
        ]
    )


def my_appointments_keyboard(appointments: List[Appointment]) -> InlineKeyboardMarkup:
    keyboard = [
        [
            InlineKeyboardButton(
                text=f"❌ Отменить {format_datetime(a.service_start, '%d.%m %H:%M')}",
                callback_data=f"ucancel:{a.id}",
            )
        ]
        for a in appointments
    ]
    return InlineKeyboardMarkup(inline_keyboard=keyboard)
