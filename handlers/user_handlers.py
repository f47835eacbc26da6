"""Обработчики пользовательских команд"""

import logging

from aiogram import F, Router
from aiogram.filters import CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from config import STATUS_LABELS
from database.models import Client
from database.queries import Database
from database.repositories.appointment_repository import AppointmentRepository
from database.repositories.client_repository import ClientRepository
from keyboards.user_keyboards import MAIN_MENU, my_appointments_keyboard
from services.booking_service import BookingService
from services.exceptions import BookingError, InvalidTransition
from services.notification_service import NotificationService
from utils.datetime_utils import format_datetime

router = Router()


async def _current_client(message_or_callback) -> Client:
    user = message_or_callback.from_user
    return await ClientRepository.get_or_create(
        Client(
            id=None,
            first_name=user.first_name or user.username or "Гость",
            last_name=user.last_name or "",
            telegram_id=user.id,
        )
    )


@router.message(CommandStart())
async def start_cmd(message: Message, state: FSMContext):
    """Команда /start: регистрация клиента и главное меню"""
    await state.clear()
    existing = await ClientRepository.get_by_telegram_id(message.from_user.id)
    client = existing or await _current_client(message)

    if existing is None:
        await Database.log_event(message.from_user.id, "user_registered", str(client.id))
        await message.answer(
            f"👋 Добро пожаловать, {client.first_name}!\n\n"
            "💇 Записаться к мастеру можно за пару нажатий",
            reply_markup=MAIN_MENU,
        )
    else:
        await message.answer("С возвращением! 👋\n\nВыберите действие:", reply_markup=MAIN_MENU)


@router.message(F.text == "📋 Мои записи")
async def my_appointments(message: Message):
    """Предстоящие записи клиента"""
    client = await ClientRepository.get_by_telegram_id(message.from_user.id)
    appointments = (
        await AppointmentRepository.get_client_appointments(client.id) if client else []
    )

    if not appointments:
        await message.answer("📭 У вас нет активных записей", reply_markup=MAIN_MENU)
        return

    lines = ["📋 ВАШИ ЗАПИСИ:\n"]
    for a in appointments:
        lines.append(
            f"📅 {format_datetime(a.service_start)}\n"
            f"💇 {a.service_name} · ✂️ {a.stylist_name}\n"
            f"{STATUS_LABELS[a.status.value]}\n"
        )
    await message.answer("\n".join(lines), reply_markup=my_appointments_keyboard(appointments))


@router.callback_query(F.data.startswith("ucancel:"))
async def cancel_own_appointment(
    callback: CallbackQuery,
    booking_service: BookingService,
    notification_service: NotificationService,
):
    """Отмена записи клиентом"""
    try:
        appointment_id = int(callback.data.split(":", 1)[1])
    except (ValueError, IndexError) as e:
        logging.error(f"Invalid callback_data in cancel_own_appointment: {callback.data}, error: {e}")
        await callback.answer("❌ Ошибка", show_alert=True)
        return

    client = await ClientRepository.get_by_telegram_id(callback.from_user.id)
    appointment = await AppointmentRepository.get_appointment(appointment_id)
    # Отменять можно только свою запись
    if client is None or appointment is None or appointment.client_id != client.id:
        await callback.answer("❌ Запись не найдена", show_alert=True)
        return

    try:
        appointment = await booking_service.cancel(appointment_id, "cancelled by client")
    except InvalidTransition:
        await callback.answer("⚠️ Эту запись уже нельзя отменить", show_alert=True)
        return
    except BookingError as e:
        logging.error(f"Client cancellation failed for {appointment_id}: {e}")
        await callback.answer("❌ Ошибка отмены", show_alert=True)
        return

    await callback.message.edit_text(
        f"✅ Запись на {format_datetime(appointment.service_start)} отменена"
    )
    await callback.answer()
    await notification_service.notify_admin_cancellation(appointment)


@router.callback_query(F.data == "ignore")
async def ignore_callback(callback: CallbackQuery):
    """Заглушка для некликабельных кнопок"""
    await callback.answer()
