"""Обработчики записи: услуга -> мастер -> день -> время -> подтверждение"""

import logging
from datetime import date

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from config import AUTO_CONFIRM_BOT_BOOKINGS, BOOKING_DAYS_AHEAD, DEFAULT_SALON_ID
from database.models import AppointmentStatus, BookingChannel, Client
from database.queries import Database
from database.repositories.client_repository import ClientRepository
from database.repositories.salon_repository import SalonRepository
from database.repositories.service_repository import ServiceRepository
from database.repositories.stylist_repository import StylistRepository
from keyboards.user_keyboards import (
    MAIN_MENU,
    confirmation_keyboard,
    days_keyboard,
    services_keyboard,
    slots_keyboard,
    stylists_keyboard,
)
from services.availability_service import AvailabilityService
from services.booking_service import BookingService
from services.exceptions import (
    BookingError,
    InvalidService,
    NotFound,
    PersistenceUnavailable,
    SlotUnavailable,
    ValidationError,
)
from services.notification_service import NotificationService
from utils.datetime_utils import format_datetime, now_local
from utils.helpers import format_date
from utils.retry import async_retry
from utils.states import BookingStates
from utils.validators import (
    parse_datetime,
    parse_day,
    parse_int,
    validate_booking_payload,
)

router = Router()


@async_retry()
async def _load_days(stylist_id: int, service_id: int):
    return await AvailabilityService.available_days(
        stylist_id, service_id, now_local().date(), BOOKING_DAYS_AHEAD
    )


@async_retry()
async def _load_slots(stylist_id: int, service_id: int, day: date):
    return await AvailabilityService.list_available_slots(stylist_id, service_id, day)


async def _show_slots(callback: CallbackQuery, state: FSMContext, day: date, prefix: str = ""):
    data = await state.get_data()
    slots = await _load_slots(data["stylist_id"], data["service_id"], day)
    await state.update_data(day=day.isoformat())

    if not slots:
        await callback.message.edit_text(
            f"{prefix}📭 На {format_date(day)} свободного времени нет.\n\nВыберите другой день:",
            reply_markup=days_keyboard(await _load_days(data["stylist_id"], data["service_id"])),
        )
        await state.set_state(BookingStates.choosing_day)
        return

    await state.set_state(BookingStates.choosing_slot)
    await callback.message.edit_text(
        f"{prefix}📍 ШАГ 4 из 5: Время\n\n📅 {format_date(day)}\nСвободно: {len(slots)}",
        reply_markup=slots_keyboard(slots),
    )


async def _session_expired(callback: CallbackQuery, state: FSMContext):
    await callback.answer("⌛ Сессия устарела, начните заново", show_alert=True)
    await state.clear()


@router.message(F.text == "💇 Записаться")
async def booking_start(message: Message, state: FSMContext):
    """Начало процесса записи"""
    await state.clear()
    await Database.log_event(message.from_user.id, "booking_started")

    salon = await SalonRepository.get_salon(DEFAULT_SALON_ID)
    services = await ServiceRepository.get_salon_services(DEFAULT_SALON_ID) if salon else []
    if not services:
        await message.answer("😔 Услуги пока не настроены", reply_markup=MAIN_MENU)
        return

    await state.set_state(BookingStates.choosing_service)
    await message.answer(
        f"💈 {salon.name}\n\n📍 ШАГ 1 из 5: Выберите услугу",
        reply_markup=services_keyboard(services),
    )


@router.callback_query(F.data == "back_services")
async def back_services(callback: CallbackQuery, state: FSMContext):
    services = await ServiceRepository.get_salon_services(DEFAULT_SALON_ID)
    await state.set_state(BookingStates.choosing_service)
    await callback.message.edit_text(
        "📍 ШАГ 1 из 5: Выберите услугу", reply_markup=services_keyboard(services)
    )
    await callback.answer()


@router.callback_query(F.data.startswith("svc:"))
async def select_service(callback: CallbackQuery, state: FSMContext):
    """Выбор услуги"""
    try:
        service_id = parse_int(callback.data.split(":", 1)[1], "service_id", minimum=1)
    except (ValidationError, IndexError) as e:
        await callback.answer("❌ Ошибка: неверная услуга", show_alert=True)
        logging.error(f"Invalid callback_data in select_service: {callback.data}, error: {e}")
        await state.clear()
        return

    stylists = await StylistRepository.get_salon_stylists(DEFAULT_SALON_ID)
    await state.update_data(service_id=service_id)
    await state.set_state(BookingStates.choosing_stylist)
    await callback.message.edit_text(
        "📍 ШАГ 2 из 5: Выберите мастера", reply_markup=stylists_keyboard(stylists)
    )
    await callback.answer()


@router.callback_query(F.data == "back_stylists")
async def back_stylists(callback: CallbackQuery, state: FSMContext):
    stylists = await StylistRepository.get_salon_stylists(DEFAULT_SALON_ID)
    await state.set_state(BookingStates.choosing_stylist)
    await callback.message.edit_text(
        "📍 ШАГ 2 из 5: Выберите мастера", reply_markup=stylists_keyboard(stylists)
    )
    await callback.answer()


@router.callback_query(F.data.startswith("sty:"))
async def select_stylist(callback: CallbackQuery, state: FSMContext):
    """Выбор мастера -> дни со свободными слотами"""
    try:
        stylist_id = parse_int(callback.data.split(":", 1)[1], "stylist_id", minimum=1)
    except (ValidationError, IndexError) as e:
        await callback.answer("❌ Ошибка: неверный мастер", show_alert=True)
        logging.error(f"Invalid callback_data in select_stylist: {callback.data}, error: {e}")
        await state.clear()
        return

    await callback.answer("⏳ Загружаю расписание...")
    data = await state.get_data()
    if "service_id" not in data:
        await callback.message.edit_text("⌛ Сессия устарела, начните заново")
        await state.clear()
        return

    try:
        days = await _load_days(stylist_id, data["service_id"])
    except (NotFound, InvalidService) as e:
        logging.warning(f"Service unavailable for booking: {e}")
        await callback.message.edit_text("😔 Эта услуга сейчас недоступна")
        await state.clear()
        return

    await state.update_data(stylist_id=stylist_id)
    await state.set_state(BookingStates.choosing_day)
    await callback.message.edit_text(
        "📍 ШАГ 3 из 5: Выберите день\n\n🟢 = есть время\n⚫ = нет свободного времени",
        reply_markup=days_keyboard(days),
    )


@router.callback_query(F.data == "back_days")
async def back_days(callback: CallbackQuery, state: FSMContext):
    data = await state.get_data()
    if not {"service_id", "stylist_id"} <= data.keys():
        await _session_expired(callback, state)
        return

    try:
        days = await _load_days(data["stylist_id"], data["service_id"])
    except (NotFound, InvalidService) as e:
        logging.warning(f"Service unavailable for booking: {e}")
        await _session_expired(callback, state)
        return

    await state.set_state(BookingStates.choosing_day)
    await callback.message.edit_text(
        "📍 ШАГ 3 из 5: Выберите день", reply_markup=days_keyboard(days)
    )
    await callback.answer()


@router.callback_query(F.data.startswith("day:"))
async def select_day(callback: CallbackQuery, state: FSMContext):
    """Выбор дня -> свободное время"""
    try:
        day = parse_day(callback.data.split(":", 1)[1])
    except (ValidationError, IndexError) as e:
        await callback.answer("❌ Ошибка: неверная дата", show_alert=True)
        logging.error(f"Invalid date in select_day: {callback.data}, error: {e}")
        await state.clear()
        return

    if not {"service_id", "stylist_id"} <= (await state.get_data()).keys():
        await _session_expired(callback, state)
        return

    await callback.answer("⏳ Загружаю слоты...")
    await _show_slots(callback, state, day)


@router.callback_query(F.data == "back_slots")
async def back_slots(callback: CallbackQuery, state: FSMContext):
    data = await state.get_data()
    if not {"service_id", "stylist_id", "day"} <= data.keys():
        await _session_expired(callback, state)
        return

    await callback.answer()
    await _show_slots(callback, state, date.fromisoformat(data["day"]))


@router.callback_query(F.data.startswith("slot:"))
async def select_slot(callback: CallbackQuery, state: FSMContext):
    """Подтверждение выбранного времени"""
    try:
        start = parse_datetime(callback.data.split(":", 1)[1], "slot")
    except (ValidationError, IndexError) as e:
        await callback.answer("❌ Ошибка: неверное время", show_alert=True)
        logging.error(f"Invalid callback_data in select_slot: {callback.data}, error: {e}")
        await state.clear()
        return

    data = await state.get_data()
    if not {"service_id", "stylist_id"} <= data.keys():
        await _session_expired(callback, state)
        return

    service = await ServiceRepository.get_service_by_id(data["service_id"])
    stylist = await StylistRepository.get_stylist(data["stylist_id"])
    # Услугу или мастера могли отключить, пока клиент выбирал время
    if service is None or not service.is_active or stylist is None or not stylist.is_active:
        await _session_expired(callback, state)
        return

    await state.update_data(start=start.isoformat())
    await state.set_state(BookingStates.confirming)
    await callback.message.edit_text(
        "📍 ШАГ 5 из 5: Подтверждение\n\n"
        f"💇 {service.name} ({service.get_duration_display()})\n"
        f"✂️ {stylist.full_name}\n"
        f"📅 {format_datetime(start)}\n"
        f"💰 {service.price:g} €\n\n"
        "✅ Подтвердить?",
        reply_markup=confirmation_keyboard(),
    )
    await callback.answer()


@router.callback_query(F.data == "cancel_booking_flow")
async def cancel_booking_flow(callback: CallbackQuery, state: FSMContext):
    """Отмена процесса бронирования"""
    await state.clear()
    await callback.message.edit_text(
        "❌ Запись отменена\n\nВы вернулись в главное меню", reply_markup=None
    )
    await callback.answer("Действие отменено")


@router.callback_query(F.data == "book_confirm")
async def book_confirm(
    callback: CallbackQuery,
    state: FSMContext,
    booking_service: BookingService,
    notification_service: NotificationService,
):
    """Финальное бронирование: свободность проверяется заново в транзакции"""
    data = await state.get_data()
    if not {"service_id", "stylist_id", "start"} <= data.keys():
        await callback.answer("⌛ Сессия устарела, начните заново", show_alert=True)
        await state.clear()
        return

    user = callback.from_user
    client = await ClientRepository.get_or_create(
        Client(
            id=None,
            first_name=user.first_name or user.username or "Гость",
            last_name=user.last_name or "",
            telegram_id=user.id,
        )
    )

    try:
        request = validate_booking_payload(
            {
                "salon_id": DEFAULT_SALON_ID,
                "client_id": client.id,
                "stylist_id": data["stylist_id"],
                "service_id": data["service_id"],
                "start_time": data["start"],
                "channel": BookingChannel.BOT.value,
                "auto_confirm": AUTO_CONFIRM_BOT_BOOKINGS,
            }
        )
        appointment = await booking_service.book_request(request)
    except SlotUnavailable as e:
        logging.info(f"Booking rejected for client {client.id}: {e}")
        await callback.answer("❌ Это время уже занято!", show_alert=True)
        # Показываем актуальные слоты снова
        await _show_slots(
            callback, state, date.fromisoformat(data["day"]), prefix="❌ Не удалось записать\n\n"
        )
        return
    except PersistenceUnavailable as e:
        logging.error(f"Booking failed, storage unavailable: {e}")
        await callback.answer("⚠️ Сервис временно недоступен, попробуйте позже", show_alert=True)
        return
    except BookingError as e:
        logging.warning(f"Booking failed for client {client.id}: {e}")
        await callback.answer("❌ Ошибка создания записи", show_alert=True)
        await state.clear()
        return

    await state.clear()
    status_line = (
        "✅ ЗАПИСЬ ПОДТВЕРЖДЕНА!" if appointment.status == AppointmentStatus.CONFIRMED
        else "⏳ ЗАПИСЬ СОЗДАНА, ждёт подтверждения салона"
    )
    await callback.message.edit_text(
        f"{status_line}\n\n"
        f"💇 {appointment.service_name}\n"
        f"✂️ {appointment.stylist_name}\n"
        f"📅 {format_datetime(appointment.service_start)}\n\n"
        "📋 'Мои записи': посмотреть все"
    )
    await callback.answer("✅ Запись создана!")

    await notification_service.notify_admin_new_booking(appointment)
