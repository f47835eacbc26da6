"""Утилиты для работы с датами и временем"""

from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz

from config import TIMEZONE

DB_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def now_local() -> datetime:
    """Текущее время в timezone салона (aware)"""
    return datetime.now(TIMEZONE)


def localize_datetime(dt: datetime) -> datetime:
    """Безопасная локализация datetime с учетом DST

    Args:
        dt: Наивный datetime объект

    Returns:
        Aware datetime в TIMEZONE салона
    """
    if dt.tzinfo is not None:
        # Уже aware - конвертируем в нужную зону
        return dt.astimezone(TIMEZONE)

    # Используем is_dst=None чтобы получить исключение при неоднозначности
    try:
        return TIMEZONE.localize(dt, is_dst=None)
    except pytz.exceptions.AmbiguousTimeError:
        # Время попадает на переход часов - используем стандартное время
        return TIMEZONE.localize(dt, is_dst=False)
    except pytz.exceptions.NonExistentTimeError:
        # Время не существует (пропущено при переходе) - сдвигаем на час вперед
        return TIMEZONE.localize(dt + timedelta(hours=1), is_dst=True)


def parse_hhmm(value: str) -> time:
    """Парсинг времени в формате HH:MM"""
    return datetime.strptime(value, "%H:%M").time()


def combine_local(day: date, value: time) -> datetime:
    """Дата + время салона -> aware datetime"""
    return localize_datetime(datetime.combine(day, value))


def day_bounds(day: date) -> tuple:
    """Начало и конец календарного дня в зоне салона"""
    start = combine_local(day, time(0, 0))
    end = combine_local(day + timedelta(days=1), time(0, 0))
    return start, end


def parse_iso(value: str) -> datetime:
    """Парсинг ISO-8601; наивное время считается временем салона"""
    dt = datetime.fromisoformat(value.strip())
    return localize_datetime(dt)


def format_iso(dt: datetime) -> str:
    """ISO-8601 с явным смещением"""
    return localize_datetime(dt).isoformat(timespec="minutes")


def to_utc(dt: datetime) -> datetime:
    """Конвертация в UTC для хранения в БД

    Args:
        dt: Локальное время

    Returns:
        UTC datetime
    """
    if dt.tzinfo is None:
        dt = localize_datetime(dt)
    return dt.astimezone(pytz.UTC)


def from_utc(dt: datetime) -> datetime:
    """Конвертация из UTC в локальное время

    Args:
        dt: UTC datetime

    Returns:
        Локальное aware datetime
    """
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return dt.astimezone(TIMEZONE)


def to_db(dt: datetime) -> str:
    """datetime -> строка UTC для колонки (сортируется лексикографически)"""
    return to_utc(dt).strftime(DB_DATETIME_FORMAT)


def from_db(value: Optional[str]) -> Optional[datetime]:
    """Строка UTC из БД -> локальное aware datetime"""
    if not value:
        return None
    return from_utc(datetime.strptime(value, DB_DATETIME_FORMAT))


def format_datetime(dt: datetime, format_str: str = "%d.%m.%Y %H:%M") -> str:
    """Форматирование datetime в зоне салона"""
    return localize_datetime(dt).strftime(format_str)
