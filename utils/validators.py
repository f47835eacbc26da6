"""
Валидация входных данных на границе системы

Словари из форм, callback_data бота и ввод администратора
приводятся к строгим структурам ДО попадания в ядро бронирования.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Dict, Optional, Tuple

from database.models import BookingChannel, Service
from services.exceptions import ValidationError
from utils.datetime_utils import parse_iso

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
HOURS_RANGE_RE = re.compile(r"^(\d{1,2}:\d{2})\s*-\s*(\d{1,2}:\d{2})$")


@dataclass(frozen=True)
class BookingRequest:
    """Проверенный запрос на запись"""
    salon_id: int
    client_id: int
    stylist_id: int
    service_id: int
    start: datetime
    channel: BookingChannel = BookingChannel.FORM
    auto_confirm: bool = False
    notes: Optional[str] = None


def _require(data: Dict[str, Any], field: str) -> Any:
    value = data.get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(field, "is required")
    return value


def parse_int(value: Any, field: str, minimum: Optional[int] = None) -> int:
    """Целое число из int или строки; bool и дробные отклоняются"""
    if isinstance(value, bool):
        raise ValidationError(field, "must be an integer")
    if isinstance(value, int):
        result = value
    elif isinstance(value, str) and re.fullmatch(r"-?\d+", value.strip()):
        result = int(value.strip())
    else:
        raise ValidationError(field, f"must be an integer, got {value!r}")

    if minimum is not None and result < minimum:
        raise ValidationError(field, f"must be >= {minimum}")
    return result


def parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def parse_day(value: Any, field: str = "date") -> date:
    """Дата в формате YYYY-MM-DD"""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not DATE_RE.match(value.strip()):
        raise ValidationError(field, "invalid format, use YYYY-MM-DD")
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise ValidationError(field, str(e)) from e


def parse_datetime(value: Any, field: str = "start_time") -> datetime:
    """ISO-8601 со смещением или без (тогда время салона)"""
    if isinstance(value, datetime):
        return parse_iso(value.isoformat())
    if not isinstance(value, str):
        raise ValidationError(field, "must be an ISO-8601 string")
    try:
        return parse_iso(value)
    except ValueError as e:
        raise ValidationError(field, f"invalid ISO-8601 datetime: {value!r}") from e


def parse_hours_range(value: str) -> Tuple[time, time]:
    """'09:00-18:00' -> (time(9), time(18))"""
    match = HOURS_RANGE_RE.match(value.strip())
    if not match:
        raise ValidationError("hours", "invalid format, use HH:MM-HH:MM")
    try:
        start = datetime.strptime(match.group(1), "%H:%M").time()
        end = datetime.strptime(match.group(2), "%H:%M").time()
    except ValueError as e:
        raise ValidationError("hours", str(e)) from e
    if end <= start:
        raise ValidationError("hours", "end must be after start")
    return start, end


def validate_service_payload(data: Dict[str, Any]) -> Service:
    """Словарь формы -> Service

    Raises:
        ValidationError: отсутствуют поля или неверные типы
        InvalidService: длительность <= 0 или отрицательные буферы
    """
    name = str(_require(data, "name")).strip()
    service = Service(
        id=None,
        salon_id=parse_int(_require(data, "salon_id"), "salon_id", minimum=1),
        name=name,
        description=data.get("description"),
        duration_minutes=parse_int(_require(data, "duration_minutes"), "duration_minutes"),
        price=_parse_price(data.get("price", 0)),
        buffer_before=parse_int(data.get("buffer_before", 0), "buffer_before"),
        buffer_after=parse_int(data.get("buffer_after", 0), "buffer_after"),
        processing_time=parse_int(data.get("processing_time", 0), "processing_time"),
        is_active=parse_bool(data.get("is_active", True)),
        display_order=parse_int(data.get("display_order", 0), "display_order"),
    )
    return service.validate()


def validate_booking_payload(data: Dict[str, Any]) -> BookingRequest:
    """Словарь формы -> BookingRequest

    Присланное клиентом время окончания игнорируется: интервал
    всегда пересчитывается по услуге.
    """
    channel_value = data.get("channel", BookingChannel.FORM.value)
    try:
        channel = BookingChannel(channel_value)
    except ValueError as e:
        raise ValidationError("channel", f"unknown channel {channel_value!r}") from e

    notes = data.get("notes")
    return BookingRequest(
        salon_id=parse_int(_require(data, "salon_id"), "salon_id", minimum=1),
        client_id=parse_int(_require(data, "client_id"), "client_id", minimum=1),
        stylist_id=parse_int(_require(data, "stylist_id"), "stylist_id", minimum=1),
        service_id=parse_int(_require(data, "service_id"), "service_id", minimum=1),
        start=parse_datetime(_require(data, "start_time")),
        channel=channel,
        auto_confirm=parse_bool(data.get("auto_confirm", channel == BookingChannel.VOICE)),
        notes=str(notes).strip() if notes else None,
    )


def _parse_price(value: Any) -> float:
    try:
        price = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError("price", f"must be a number, got {value!r}") from e
    if price < 0:
        raise ValidationError("price", "must be >= 0")
    return price
