"""Сервис управления бронированием"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from config import HOLD_CLEANUP_INTERVAL_MINUTES, PENDING_HOLD_TTL_MINUTES
from database.models import (
    ALLOWED_TRANSITIONS,
    Appointment,
    AppointmentStatus,
    BookingChannel,
)
from database.queries import Database
from database.repositories.appointment_repository import AppointmentRepository
from database.repositories.stylist_repository import StylistRepository
from services.availability_service import earliest_start, load_service
from services.exceptions import InvalidTransition, NotFound, SlotUnavailable
from services.schedule_resolver import resolve_stylist_hours
from utils.datetime_utils import format_iso, localize_datetime, now_local
from utils.intervals import TimeInterval
from utils.validators import BookingRequest

HOLD_CLEANUP_JOB_ID = "expire_pending_holds"


class BookingService:
    """Сервис для работы с бронированием"""

    def __init__(self, scheduler: AsyncIOScheduler):
        self.scheduler = scheduler

    async def book_slot(
        self,
        salon_id: int,
        client_id: int,
        stylist_id: int,
        service_id: int,
        external_start: datetime,
        channel: BookingChannel = BookingChannel.BOT,
        auto_confirm: bool = False,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Appointment:
        """Создание записи с атомарной проверкой

        Интервал пересчитывается по текущим буферам услуги, проверка
        свободности повторяется внутри транзакции записи: результат
        предыдущего показа слотов не используется.

        Raises:
            SlotUnavailable: интервал занят, в прошлом или вне рабочего окна
            InvalidService: некорректная услуга
            NotFound: услуга/мастер не найдены или из другого салона
            PersistenceUnavailable: ошибка БД
        """
        service = await load_service(service_id)
        if service.salon_id != salon_id:
            raise NotFound(f"Service {service_id} does not belong to salon {salon_id}")

        stylist = await StylistRepository.get_stylist(stylist_id)
        if stylist is None or stylist.salon_id != salon_id:
            raise NotFound(f"Stylist {stylist_id} does not belong to salon {salon_id}")

        interval = service.occupied_interval(localize_datetime(external_start))

        if interval.start < earliest_start(now or now_local()):
            raise SlotUnavailable(stylist_id, interval.start, interval.end, "in_past")

        window = await resolve_stylist_hours(stylist_id, interval.start.date())
        if window is None:
            raise SlotUnavailable(stylist_id, interval.start, interval.end, "closed")

        candidate = Appointment(
            id=None,
            salon_id=salon_id,
            client_id=client_id,
            stylist_id=stylist_id,
            service_id=service_id,
            start_time=interval.start,
            end_time=interval.end,
            buffer_before=service.buffer_before,
            buffer_after=service.buffer_after,
            status=AppointmentStatus.CONFIRMED if auto_confirm else AppointmentStatus.PENDING,
            channel=channel,
            total_amount=service.price,
            notes=notes,
        )

        appointment = await AppointmentRepository.insert_appointment_if_free(candidate, window)

        await Database.log_event(
            client_id,
            "appointment_created",
            f"{appointment.id} stylist={stylist_id} {format_iso(appointment.service_start)}",
        )
        logging.info(
            f"Appointment created: {appointment.id} for client {client_id} "
            f"with stylist {stylist_id} at {format_iso(appointment.service_start)}"
        )
        return appointment

    async def book_request(
        self, request: BookingRequest, now: Optional[datetime] = None
    ) -> Appointment:
        """Запись по проверенному запросу формы, голосового агента или бота

        Канал и автоподтверждение берутся из запроса: голосовые записи
        подтверждаются сразу, остальные по умолчанию ждут салон.
        """
        return await self.book_slot(
            salon_id=request.salon_id,
            client_id=request.client_id,
            stylist_id=request.stylist_id,
            service_id=request.service_id,
            external_start=request.start,
            channel=request.channel,
            auto_confirm=request.auto_confirm,
            notes=request.notes,
            now=now,
        )

    async def reschedule(
        self,
        appointment_id: int,
        new_external_start: datetime,
        now: Optional[datetime] = None,
    ) -> Appointment:
        """Перенос записи в одной транзакции

        Интервал пересчитывается по буферам, сохранённым в записи.
        """
        appointment = await self._get(appointment_id)
        if not appointment.is_blocking or appointment.status == AppointmentStatus.COMPLETED:
            raise InvalidTransition(
                f"Appointment {appointment_id} in status {appointment.status.value} cannot be moved"
            )

        span = appointment.end_time - appointment.start_time
        new_start = localize_datetime(new_external_start) - timedelta(
            minutes=appointment.buffer_before
        )
        new_interval = TimeInterval(new_start, new_start + span)

        if new_interval.start < earliest_start(now or now_local()):
            raise SlotUnavailable(
                appointment.stylist_id, new_interval.start, new_interval.end, "in_past"
            )

        window = await resolve_stylist_hours(appointment.stylist_id, new_interval.start.date())
        if window is None:
            raise SlotUnavailable(
                appointment.stylist_id, new_interval.start, new_interval.end, "closed"
            )

        moved = await AppointmentRepository.move_if_free(
            appointment_id, appointment.stylist_id, new_interval, window
        )
        if not moved:
            raise InvalidTransition(f"Appointment {appointment_id} is no longer active")

        await Database.log_event(
            appointment.client_id,
            "appointment_rescheduled",
            f"{appointment_id} {format_iso(appointment.service_start)} -> "
            f"{format_iso(new_external_start)}",
        )
        logging.info(f"Appointment {appointment_id} rescheduled successfully")
        return await self._get(appointment_id)

    async def confirm(self, appointment_id: int) -> Appointment:
        return await self._transition(appointment_id, AppointmentStatus.CONFIRMED)

    async def complete(self, appointment_id: int) -> Appointment:
        return await self._transition(appointment_id, AppointmentStatus.COMPLETED)

    async def mark_no_show(self, appointment_id: int) -> Appointment:
        return await self._transition(appointment_id, AppointmentStatus.NO_SHOW)

    async def cancel(self, appointment_id: int, reason: Optional[str] = None) -> Appointment:
        """Отмена записи (мягкая: запись остаётся со статусом cancelled)"""
        return await self._transition(appointment_id, AppointmentStatus.CANCELLED, reason)

    async def delete(self, appointment_id: int) -> None:
        """Административное удаление записи"""
        appointment = await self._get(appointment_id)
        await AppointmentRepository.delete_appointment(appointment_id)
        await Database.log_event(appointment.client_id, "appointment_deleted", str(appointment_id))
        logging.warning(f"Appointment {appointment_id} deleted by administrator")

    async def _get(self, appointment_id: int) -> Appointment:
        appointment = await AppointmentRepository.get_appointment(appointment_id)
        if appointment is None:
            raise NotFound(f"Appointment {appointment_id} not found")
        return appointment

    async def _transition(
        self,
        appointment_id: int,
        new_status: AppointmentStatus,
        notes: Optional[str] = None,
    ) -> Appointment:
        """Смена статуса по таблице допустимых переходов"""
        appointment = await self._get(appointment_id)

        if new_status not in ALLOWED_TRANSITIONS[appointment.status]:
            raise InvalidTransition(
                f"Appointment {appointment_id}: {appointment.status.value} -> {new_status.value}"
            )

        # Источники перехода в new_status; защищает от параллельной смены статуса
        sources = [s for s, targets in ALLOWED_TRANSITIONS.items() if new_status in targets]
        updated = await AppointmentRepository.update_status(
            appointment_id, new_status, sources, notes
        )
        if not updated:
            raise InvalidTransition(
                f"Appointment {appointment_id} changed concurrently, {new_status.value} rejected"
            )

        await Database.log_event(
            appointment.client_id, f"appointment_{new_status.value}", str(appointment_id)
        )
        logging.info(
            f"Appointment {appointment_id}: {appointment.status.value} -> {new_status.value}"
        )
        return await self._get(appointment_id)

    async def expire_pending_holds(self, now: Optional[datetime] = None) -> List[int]:
        """Отменить неподтверждённые записи старше PENDING_HOLD_TTL_MINUTES"""
        cutoff = (now or now_local()) - timedelta(minutes=PENDING_HOLD_TTL_MINUTES)
        expired = await AppointmentRepository.cancel_stale_pending(cutoff)
        if expired:
            logging.info(f"Expired {len(expired)} pending holds: {expired}")
        return expired

    def start_hold_cleanup(self):
        """Периодическая очистка просроченных pending-записей"""
        self.scheduler.add_job(
            self._expire_pending_holds_job,
            "interval",
            minutes=HOLD_CLEANUP_INTERVAL_MINUTES,
            id=HOLD_CLEANUP_JOB_ID,
            replace_existing=True,
        )

    async def _expire_pending_holds_job(self):
        try:
            await self.expire_pending_holds()
        except Exception as e:
            # Задача повторится на следующем интервале
            logging.error(f"Error expiring pending holds: {e}")
