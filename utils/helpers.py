"""Вспомогательные функции"""

from datetime import date

from config import ADMIN_IDS, DAY_NAMES


def format_date(date_obj: date) -> str:
    """Форматирование даты для отображения"""
    day_name = DAY_NAMES[date_obj.weekday()]
    return f"{date_obj.strftime('%d.%m.%Y')} ({day_name})"


def format_duration(minutes: int) -> str:
    """Длительность в читаемом формате"""
    hours = minutes // 60
    rest = minutes % 60

    if hours and rest:
        return f"{hours} ч {rest} мин"
    elif hours:
        return f"{hours} ч"
    return f"{rest} мин"


def is_admin(user_id: int) -> bool:
    """Проверка прав администратора"""
    return user_id in ADMIN_IDS
