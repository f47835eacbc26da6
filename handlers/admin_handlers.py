"""Обработчики для администратора"""

import logging
from datetime import timedelta

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from config import DAY_NAMES, DEFAULT_SALON_ID, DEFAULT_SALON_NAME, STATUS_LABELS
from database.models import PaymentStatus, SalonHours, Service, Stylist, StylistSchedule
from database.repositories.appointment_repository import AppointmentRepository
from database.repositories.client_repository import ClientRepository
from database.repositories.salon_repository import SalonRepository
from database.repositories.service_repository import ServiceRepository
from database.repositories.stylist_repository import StylistRepository
from keyboards.admin_keyboards import ADMIN_MENU, appointment_actions_keyboard
from keyboards.user_keyboards import MAIN_MENU
from services.booking_service import BookingService
from services.exceptions import (
    BookingError,
    InvalidService,
    InvalidTransition,
    NotFound,
    SlotUnavailable,
    ValidationError,
)
from services.notification_service import NotificationService
from utils.datetime_utils import day_bounds, format_datetime, now_local
from utils.helpers import format_date, is_admin
from utils.states import AdminStates
from utils.validators import (
    parse_datetime,
    parse_hours_range,
    parse_int,
    validate_service_payload,
)

router = Router()

SERVICE_FIELDS = (
    "name",
    "duration_minutes",
    "price",
    "buffer_before",
    "buffer_after",
    "processing_time",
)


def _parse_service_text(text: str) -> Service:
    """'название;длительность;цена;буфер до;буфер после;выдержка' -> Service"""
    parts = [p.strip() for p in text.split(";")]
    payload = dict(zip(SERVICE_FIELDS, parts))
    payload["salon_id"] = DEFAULT_SALON_ID
    return validate_service_payload(payload)


async def _ensure_salon():
    """Салон бота создаётся при первом обращении администратора"""
    salon = await SalonRepository.get_salon(DEFAULT_SALON_ID)
    if salon is None:
        await SalonRepository.save_salon(DEFAULT_SALON_ID, DEFAULT_SALON_NAME)
        salon = await SalonRepository.get_salon(DEFAULT_SALON_ID)
    return salon


@router.message(Command("admin"))
async def admin_panel(message: Message):
    """Вход в админ-панель"""
    if not is_admin(message.from_user.id):
        return

    salon = await _ensure_salon()
    await message.answer(
        f"🔐 АДМИН-ПАНЕЛЬ · 💈 {salon.name}\n\n"
        "Салон:\n"
        "/salon <название>\n"
        "/hours <день 0-6> <09:00-18:00|closed>\n\n"
        "Мастера:\n"
        "/stylists\n"
        "/stylist_add <имя> [фамилия]\n"
        "/stylist_hours <id> <день 0-6> <09:00-18:00|off>\n"
        "/stylist_off <id>\n\n"
        "Услуги:\n"
        "/services\n"
        "/service_edit <id> <название;длит.;цена;буфер до;буфер после;выдержка>\n"
        "/service_off <id>\n\n"
        "Записи:\n"
        "/move <id записи> <YYYY-MM-DDTHH:MM>\n"
        "/paid <id записи>",
        reply_markup=ADMIN_MENU,
    )


@router.message(F.text == "🔙 Выход из админки")
async def exit_admin(message: Message, state: FSMContext):
    """Выход из админ-панели"""
    if not is_admin(message.from_user.id):
        return

    await state.clear()
    await message.answer("👋 Вы вышли из админ-панели", reply_markup=MAIN_MENU)


async def _send_day_calendar(message: Message, day_offset: int):
    day = now_local().date() + timedelta(days=day_offset)
    start, end = day_bounds(day)
    appointments = await AppointmentRepository.get_salon_appointments(DEFAULT_SALON_ID, start, end)

    header = f"📅 {format_date(day)} ({DAY_NAMES[day.weekday()]})"
    if not appointments:
        await message.answer(f"{header}\n\nЗаписей нет", reply_markup=ADMIN_MENU)
        return

    await message.answer(f"{header}\n\nЗаписей: {len(appointments)}", reply_markup=ADMIN_MENU)
    for a in appointments:
        await message.answer(
            f"🕒 {format_datetime(a.service_start, '%H:%M')}-"
            f"{format_datetime(a.service_end, '%H:%M')} (#{a.id})\n"
            f"💇 {a.service_name}\n"
            f"✂️ {a.stylist_name}\n"
            f"👤 {a.client_name}\n"
            f"{STATUS_LABELS[a.status.value]} · 💶 {a.payment_status.value}",
            reply_markup=appointment_actions_keyboard(a),
        )


@router.message(F.text == "📅 Сегодня")
async def today_schedule(message: Message):
    if not is_admin(message.from_user.id):
        return
    await _send_day_calendar(message, 0)


@router.message(F.text == "📆 Завтра")
async def tomorrow_schedule(message: Message):
    if not is_admin(message.from_user.id):
        return
    await _send_day_calendar(message, 1)


@router.callback_query(F.data.startswith("adm:"))
async def appointment_action(
    callback: CallbackQuery,
    booking_service: BookingService,
    notification_service: NotificationService,
):
    """Смена статуса или удаление записи из календаря"""
    if not is_admin(callback.from_user.id):
        await callback.answer("❌ Доступ запрещён", show_alert=True)
        return

    try:
        _, action, raw_id = callback.data.split(":")
        appointment_id = int(raw_id)
    except ValueError as e:
        logging.error(f"Invalid callback_data in appointment_action: {callback.data}, error: {e}")
        await callback.answer("❌ Ошибка", show_alert=True)
        return

    actions = {
        "confirm": booking_service.confirm,
        "complete": booking_service.complete,
        "no_show": booking_service.mark_no_show,
        "cancel": booking_service.cancel,
    }

    try:
        if action == "delete":
            await booking_service.delete(appointment_id)
            await callback.message.edit_text(f"🗑 Запись #{appointment_id} удалена")
            await callback.answer()
            return
        if action not in actions:
            await callback.answer("❌ Неизвестное действие", show_alert=True)
            return
        appointment = await actions[action](appointment_id)
    except NotFound:
        await callback.answer("❌ Запись не найдена", show_alert=True)
        return
    except InvalidTransition as e:
        logging.info(f"Rejected admin action {action} on {appointment_id}: {e}")
        await callback.answer("⚠️ Статус уже изменён", show_alert=True)
        return

    await callback.message.edit_text(
        f"#{appointment.id} {format_datetime(appointment.service_start)}\n"
        f"{STATUS_LABELS[appointment.status.value]}",
        reply_markup=appointment_actions_keyboard(appointment),
    )
    await callback.answer("✅ Готово")

    client = await ClientRepository.get_client(appointment.client_id)
    if client and client.telegram_id:
        await notification_service.notify_client_status(client.telegram_id, appointment)


@router.message(Command("hours"))
async def set_hours(message: Message, command: CommandObject):
    """/hours <день> <HH:MM-HH:MM|closed>"""
    if not is_admin(message.from_user.id):
        return

    try:
        raw_day, raw_range = (command.args or "").split()
        day_of_week = parse_int(raw_day, "day_of_week", minimum=0)
        if day_of_week > 6:
            raise ValidationError("day_of_week", "must be 0..6")
        if raw_range.lower() == "closed":
            hours = SalonHours(DEFAULT_SALON_ID, day_of_week, None, None, True)
        else:
            open_time, close_time = parse_hours_range(raw_range)
            hours = SalonHours(DEFAULT_SALON_ID, day_of_week, open_time, close_time, False)
    except (ValueError, ValidationError) as e:
        await message.answer(f"❌ Формат: /hours 0 09:00-18:00\n{e}")
        return

    await _ensure_salon()
    await SalonRepository.set_salon_hours(hours)
    await message.answer(f"✅ {DAY_NAMES[day_of_week]}: {raw_range}", reply_markup=ADMIN_MENU)


@router.message(Command("stylist_hours"))
async def set_stylist_hours(message: Message, command: CommandObject):
    """/stylist_hours <id> <день> <HH:MM-HH:MM|off>"""
    if not is_admin(message.from_user.id):
        return

    try:
        raw_id, raw_day, raw_range = (command.args or "").split()
        stylist_id = parse_int(raw_id, "stylist_id", minimum=1)
        day_of_week = parse_int(raw_day, "day_of_week", minimum=0)
        if day_of_week > 6:
            raise ValidationError("day_of_week", "must be 0..6")
        if raw_range.lower() == "off":
            schedule = StylistSchedule(stylist_id, day_of_week, None, None, False)
        else:
            start, end = parse_hours_range(raw_range)
            schedule = StylistSchedule(stylist_id, day_of_week, start, end, True)
    except (ValueError, ValidationError) as e:
        await message.answer(f"❌ Формат: /stylist_hours 1 0 10:00-17:00\n{e}")
        return

    stylist = await StylistRepository.get_stylist(stylist_id)
    if stylist is None or stylist.salon_id != DEFAULT_SALON_ID:
        await message.answer("❌ Мастер не найден")
        return

    await StylistRepository.set_stylist_schedule(schedule)
    await message.answer(
        f"✅ {stylist.full_name}, {DAY_NAMES[day_of_week]}: {raw_range}",
        reply_markup=ADMIN_MENU,
    )


@router.message(Command("salon"))
async def rename_salon(message: Message, command: CommandObject):
    """/salon <название>"""
    if not is_admin(message.from_user.id):
        return

    name = (command.args or "").strip()
    if not name:
        await message.answer("❌ Формат: /salon Studio Lumière")
        return

    await SalonRepository.save_salon(DEFAULT_SALON_ID, name)
    await message.answer(f"✅ Салон: {name}", reply_markup=ADMIN_MENU)


@router.message(Command("stylists"))
async def list_stylists(message: Message):
    if not is_admin(message.from_user.id):
        return

    stylists = await StylistRepository.get_salon_stylists(DEFAULT_SALON_ID)
    if not stylists:
        await message.answer("✂️ Мастеров пока нет\n\n/stylist_add <имя> [фамилия]")
        return

    lines = [f"#{s.id} {s.full_name}" for s in stylists]
    await message.answer("✂️ МАСТЕРА\n\n" + "\n".join(lines), reply_markup=ADMIN_MENU)


@router.message(Command("stylist_add"))
async def add_stylist(message: Message, command: CommandObject):
    """/stylist_add <имя> [фамилия]"""
    if not is_admin(message.from_user.id):
        return

    parts = (command.args or "").split(maxsplit=1)
    if not parts:
        await message.answer("❌ Формат: /stylist_add Anna Martin")
        return

    await _ensure_salon()
    first_name = parts[0]
    last_name = parts[1] if len(parts) > 1 else ""
    stylist_id = await StylistRepository.create_stylist(
        Stylist(id=None, salon_id=DEFAULT_SALON_ID, first_name=first_name, last_name=last_name)
    )
    logging.info(f"Stylist {stylist_id} created by admin {message.from_user.id}")
    full_name = f"{first_name} {last_name}".strip()
    await message.answer(
        f"✅ Мастер #{stylist_id} {full_name} добавлен\n\n"
        f"Рабочие часы: /stylist_hours {stylist_id} 0 09:00-18:00",
        reply_markup=ADMIN_MENU,
    )


@router.message(Command("stylist_off"))
async def deactivate_stylist(message: Message, command: CommandObject):
    """/stylist_off <id>: мастер больше не принимает записи"""
    if not is_admin(message.from_user.id):
        return

    try:
        stylist_id = parse_int(command.args, "stylist_id", minimum=1)
    except ValidationError as e:
        await message.answer(f"❌ Формат: /stylist_off 3\n{e}")
        return

    stylist = await StylistRepository.get_stylist(stylist_id)
    if stylist is None or stylist.salon_id != DEFAULT_SALON_ID:
        await message.answer("❌ Мастер не найден")
        return

    await StylistRepository.deactivate_stylist(stylist_id)
    logging.info(f"Stylist {stylist_id} deactivated by admin {message.from_user.id}")
    await message.answer(
        f"🚫 {stylist.full_name} больше не принимает записи\n"
        "Уже созданные записи сохранены",
        reply_markup=ADMIN_MENU,
    )


@router.message(Command("services"))
async def list_services(message: Message):
    if not is_admin(message.from_user.id):
        return

    services = await ServiceRepository.get_salon_services(DEFAULT_SALON_ID)
    if not services:
        await message.answer("💇 Услуг пока нет", reply_markup=ADMIN_MENU)
        return

    lines = [
        f"#{s.id} {s.name} · {s.get_duration_display()} · {s.price:g} € "
        f"(буферы {s.buffer_before}/{s.buffer_after}, выдержка {s.processing_time})"
        for s in services
    ]
    await message.answer("💇 УСЛУГИ\n\n" + "\n".join(lines), reply_markup=ADMIN_MENU)


@router.message(Command("service_edit"))
async def edit_service(message: Message, command: CommandObject):
    """/service_edit <id> <название;длительность;цена;буфер до;буфер после;выдержка>"""
    if not is_admin(message.from_user.id):
        return

    try:
        raw_id, raw_fields = (command.args or "").split(maxsplit=1)
        service_id = parse_int(raw_id, "service_id", minimum=1)
        service = _parse_service_text(raw_fields)
    except (ValueError, ValidationError, InvalidService) as e:
        await message.answer(f"❌ Формат: /service_edit 2 Окрашивание;90;65;10;15;30\n{e}")
        return

    current = await ServiceRepository.get_service_by_id(service_id)
    if current is None or current.salon_id != DEFAULT_SALON_ID:
        await message.answer("❌ Услуга не найдена")
        return

    service.id = service_id
    service.display_order = current.display_order
    await ServiceRepository.update_service(service_id, service)
    logging.info(f"Service {service_id} updated by admin {message.from_user.id}")
    await message.answer(
        f"✅ Услуга #{service_id} «{service.name}» обновлена\n"
        "Уже созданные записи не меняются",
        reply_markup=ADMIN_MENU,
    )


@router.message(Command("service_off"))
async def deactivate_service(message: Message, command: CommandObject):
    """/service_off <id>: услуга скрывается из записи"""
    if not is_admin(message.from_user.id):
        return

    try:
        service_id = parse_int(command.args, "service_id", minimum=1)
    except ValidationError as e:
        await message.answer(f"❌ Формат: /service_off 2\n{e}")
        return

    service = await ServiceRepository.get_service_by_id(service_id)
    if service is None or service.salon_id != DEFAULT_SALON_ID:
        await message.answer("❌ Услуга не найдена")
        return

    await ServiceRepository.delete_service(service_id)
    await message.answer(f"🚫 Услуга «{service.name}» отключена", reply_markup=ADMIN_MENU)


@router.message(Command("move"))
async def move_appointment(
    message: Message,
    command: CommandObject,
    booking_service: BookingService,
    notification_service: NotificationService,
):
    """/move <id> <YYYY-MM-DDTHH:MM>: перенос записи"""
    if not is_admin(message.from_user.id):
        return

    try:
        raw_id, raw_start = (command.args or "").split()
        appointment_id = parse_int(raw_id, "appointment_id", minimum=1)
        new_start = parse_datetime(raw_start)
    except (ValueError, ValidationError) as e:
        await message.answer(f"❌ Формат: /move 12 2026-03-02T10:30\n{e}")
        return

    try:
        appointment = await booking_service.reschedule(appointment_id, new_start)
    except SlotUnavailable as e:
        await message.answer(f"❌ Время недоступно ({e.reason})")
        return
    except BookingError as e:
        await message.answer(f"❌ Перенос невозможен: {e}")
        return

    await message.answer(
        f"✅ Запись #{appointment_id} перенесена на {format_datetime(appointment.service_start)}",
        reply_markup=ADMIN_MENU,
    )
    client = await ClientRepository.get_client(appointment.client_id)
    if client and client.telegram_id:
        await notification_service.notify_client_status(client.telegram_id, appointment)


@router.message(Command("paid"))
async def mark_paid(message: Message, command: CommandObject):
    """/paid <id>: отметить оплату"""
    if not is_admin(message.from_user.id):
        return

    try:
        appointment_id = parse_int(command.args, "appointment_id", minimum=1)
    except ValidationError as e:
        await message.answer(f"❌ Формат: /paid 12\n{e}")
        return

    if await AppointmentRepository.set_payment_status(appointment_id, PaymentStatus.PAID):
        await message.answer(f"💶 Запись #{appointment_id} оплачена", reply_markup=ADMIN_MENU)
    else:
        await message.answer("❌ Запись не найдена")


@router.message(F.text == "➕ Услуга")
async def add_service_start(message: Message, state: FSMContext):
    if not is_admin(message.from_user.id):
        return

    await state.set_state(AdminStates.awaiting_service_data)
    await message.answer(
        "➕ НОВАЯ УСЛУГА\n\n"
        "Отправьте: название;длительность;цена;буфер до;буфер после;выдержка\n"
        "Пример: Окрашивание;90;65;10;15;30"
    )


@router.message(AdminStates.awaiting_service_data)
async def add_service_finish(message: Message, state: FSMContext):
    """Приём данных новой услуги"""
    if not is_admin(message.from_user.id):
        return

    try:
        service = _parse_service_text(message.text or "")
    except (ValidationError, InvalidService) as e:
        await message.answer(f"❌ {e}\n\nПопробуйте ещё раз или нажмите «🔙 Выход из админки»")
        return

    await _ensure_salon()
    service_id = await ServiceRepository.create_service(service)
    await state.clear()
    logging.info(f"Service {service_id} '{service.name}' created by admin {message.from_user.id}")
    await message.answer(
        f"✅ Услуга #{service_id} «{service.name}» добавлена\n"
        f"⏱ {service.get_duration_display()} · занято {service.occupied_minutes} мин",
        reply_markup=ADMIN_MENU,
    )


@router.message(F.text == "🧹 Просроченные")
async def expire_holds(message: Message, booking_service: BookingService):
    """Ручной запуск очистки неподтверждённых записей"""
    if not is_admin(message.from_user.id):
        return

    expired = await booking_service.expire_pending_holds()
    await message.answer(f"🧹 Отменено просроченных записей: {len(expired)}", reply_markup=ADMIN_MENU)
