"""Сервис доступности: какие слоты можно предложить клиенту"""

import logging
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from config import DEFAULT_SLOT_GRANULARITY, MIN_LEAD_MINUTES
from database.models import Service
from database.repositories.service_repository import ServiceRepository
from services.conflict_index import ConflictIndex
from services.exceptions import ClosedDay, NotFound
from services.schedule_resolver import require_stylist_hours
from services.slot_generator import SlotSequence
from utils.datetime_utils import now_local


async def load_service(service_id: int) -> Service:
    """Загрузить и проверить услугу

    Raises:
        NotFound: услуги нет или она отключена
        InvalidService: некорректная длительность или буферы
    """
    service = await ServiceRepository.get_service_by_id(service_id)
    if service is None or not service.is_active:
        raise NotFound(f"Service {service_id} not found")
    return service.validate()


def earliest_start(now: datetime, lead_minutes: int = MIN_LEAD_MINUTES) -> datetime:
    """Самое раннее допустимое начало интервала занятости"""
    return max(now, now + timedelta(minutes=lead_minutes))


class AvailabilityService:
    """Расчёт свободных слотов мастера"""

    @staticmethod
    async def slot_sequence(
        stylist_id: int,
        service_id: int,
        day: date,
        granularity_minutes: int = DEFAULT_SLOT_GRANULARITY,
        now: Optional[datetime] = None,
    ) -> SlotSequence:
        """Последовательность слотов (ленивая, перезапускаемая)"""
        if granularity_minutes <= 0:
            raise ValueError(f"granularity_minutes must be > 0, got {granularity_minutes}")

        # Услуга проверяется до любых расчётов
        service = await load_service(service_id)

        try:
            window = await require_stylist_hours(stylist_id, day)
        except ClosedDay:
            logging.debug(f"Stylist {stylist_id} closed on {day}")
            window = None

        busy = []
        if window is not None:
            busy = await ConflictIndex.busy_intervals(stylist_id, window.start, window.end)

        return SlotSequence(
            window=window,
            busy=busy,
            span=service.occupied_span,
            buffer_before=timedelta(minutes=service.buffer_before),
            granularity=timedelta(minutes=granularity_minutes),
            earliest=earliest_start(now or now_local()),
        )

    @staticmethod
    async def list_available_slots(
        stylist_id: int,
        service_id: int,
        day: date,
        granularity_minutes: int = DEFAULT_SLOT_GRANULARITY,
        now: Optional[datetime] = None,
    ) -> List[datetime]:
        """Свободные времена начала услуги (закрытый день -> пустой список)"""
        sequence = await AvailabilityService.slot_sequence(
            stylist_id, service_id, day, granularity_minutes, now
        )
        return list(sequence)

    @staticmethod
    async def available_days(
        stylist_id: int,
        service_id: int,
        start_day: date,
        days: int,
        now: Optional[datetime] = None,
    ) -> Dict[date, bool]:
        """Есть ли хотя бы один слот в каждый из дней диапазона"""
        result = {}
        for offset in range(days):
            day = start_day + timedelta(days=offset)
            sequence = await AvailabilityService.slot_sequence(
                stylist_id, service_id, day, now=now
            )
            result[day] = sequence.first() is not None
        return result
