"""Рабочие часы салона и мастера на конкретную дату

Отсутствие настроек - это не ошибка, а закрытый день (None).
"""

from datetime import date
from typing import Optional

from database.repositories.salon_repository import SalonRepository
from database.repositories.stylist_repository import StylistRepository
from services.exceptions import ClosedDay
from utils.datetime_utils import combine_local
from utils.intervals import TimeInterval


async def resolve_salon_hours(salon_id: int, day: date) -> Optional[TimeInterval]:
    """Интервал работы салона в дату или None (закрыто)"""
    hours = await SalonRepository.get_salon_hours(salon_id, day.weekday())
    if hours is None or hours.is_closed:
        return None
    if hours.open_time is None or hours.close_time is None:
        return None

    interval = TimeInterval(
        combine_local(day, hours.open_time), combine_local(day, hours.close_time)
    )
    return None if interval.is_empty() else interval


async def resolve_stylist_hours(stylist_id: int, day: date) -> Optional[TimeInterval]:
    """Рабочее окно мастера = часы салона ∩ расписание мастера"""
    stylist = await StylistRepository.get_stylist(stylist_id)
    if stylist is None or not stylist.is_active:
        return None

    salon_interval = await resolve_salon_hours(stylist.salon_id, day)
    if salon_interval is None:
        return None

    schedule = await StylistRepository.get_stylist_schedule(stylist_id, day.weekday())
    if schedule is None or not schedule.is_available:
        return None
    if schedule.start_time is None or schedule.end_time is None:
        return None

    own_interval = TimeInterval(
        combine_local(day, schedule.start_time), combine_local(day, schedule.end_time)
    )
    if own_interval.is_empty():
        return None

    return salon_interval.intersect(own_interval)


async def require_stylist_hours(stylist_id: int, day: date) -> TimeInterval:
    """То же, что resolve_stylist_hours, но закрытый день - исключение

    Raises:
        ClosedDay: мастер не работает в эту дату
    """
    window = await resolve_stylist_hours(stylist_id, day)
    if window is None:
        raise ClosedDay(f"Stylist {stylist_id} is not working on {day.isoformat()}")
    return window
