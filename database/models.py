"""Модели данных"""

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from enum import Enum
from typing import Optional

from services.exceptions import InvalidService
from utils.helpers import format_duration
from utils.intervals import TimeInterval


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class BookingChannel(str, Enum):
    FORM = "form"
    VOICE = "voice"
    BOT = "bot"
    ADMIN = "admin"


# Статусы, которые НЕ занимают время мастера
NON_BLOCKING_STATUSES = (AppointmentStatus.CANCELLED.value, AppointmentStatus.NO_SHOW.value)

# Допустимые переходы статусов
ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING: {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED},
    AppointmentStatus.CONFIRMED: {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    },
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELLED: set(),
    AppointmentStatus.NO_SHOW: set(),
}


@dataclass
class Salon:
    """Модель салона"""
    id: Optional[int]
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class SalonHours:
    """Часы работы салона в день недели (0 = понедельник)"""
    salon_id: int
    day_of_week: int
    open_time: Optional[time] = None
    close_time: Optional[time] = None
    is_closed: bool = False


@dataclass
class Stylist:
    """Модель мастера"""
    id: Optional[int]
    salon_id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    specialties: str = ""
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class StylistSchedule:
    """Рабочее время мастера в день недели"""
    stylist_id: int
    day_of_week: int
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    is_available: bool = True


@dataclass
class Service:
    """Модель услуги/процедуры"""
    id: Optional[int]
    salon_id: int
    name: str
    duration_minutes: int
    description: Optional[str] = None
    price: float = 0.0
    buffer_before: int = 0
    buffer_after: int = 0
    processing_time: int = 0
    is_active: bool = True
    display_order: int = 0
    created_at: Optional[datetime] = None

    def validate(self) -> "Service":
        """Проверка длительности и буферов до любых расчётов"""
        if not isinstance(self.duration_minutes, int) or self.duration_minutes <= 0:
            raise InvalidService(
                f"Service {self.id}: duration must be > 0, got {self.duration_minutes!r}"
            )
        for field_name in ("buffer_before", "buffer_after", "processing_time"):
            value = getattr(self, field_name)
            if not isinstance(value, int) or value < 0:
                raise InvalidService(
                    f"Service {self.id}: {field_name} must be >= 0, got {value!r}"
                )
        return self

    @property
    def occupied_minutes(self) -> int:
        """Полное время занятости мастера: буферы + работа + выдержка"""
        return (
            self.buffer_before
            + self.duration_minutes
            + self.processing_time
            + self.buffer_after
        )

    @property
    def occupied_span(self) -> timedelta:
        return timedelta(minutes=self.occupied_minutes)

    def occupied_interval(self, service_start: datetime) -> TimeInterval:
        """Интервал занятости для видимого клиенту времени начала"""
        start = service_start - timedelta(minutes=self.buffer_before)
        return TimeInterval(start, start + self.occupied_span)

    def get_duration_display(self) -> str:
        """Отображение длительности в читаемом формате"""
        return format_duration(self.duration_minutes)


@dataclass
class Client:
    """Модель клиента"""
    id: Optional[int]
    first_name: str
    last_name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    telegram_id: Optional[int] = None
    notes: Optional[str] = None
    preferred_stylist_id: Optional[int] = None


@dataclass
class Appointment:
    """Запись клиента

    start_time/end_time хранят полный интервал занятости мастера
    (буферы включены). Время начала самой услуги = start_time + buffer_before.
    """
    id: Optional[int]
    salon_id: int
    client_id: int
    stylist_id: int
    service_id: int
    start_time: datetime
    end_time: datetime
    buffer_before: int = 0
    buffer_after: int = 0
    status: AppointmentStatus = AppointmentStatus.PENDING
    channel: BookingChannel = BookingChannel.BOT
    total_amount: float = 0.0
    payment_status: PaymentStatus = PaymentStatus.PENDING
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Расширенные поля (загружаются из JOIN)
    service_name: Optional[str] = None
    stylist_name: Optional[str] = None
    client_name: Optional[str] = None

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start_time, self.end_time)

    @property
    def service_start(self) -> datetime:
        return self.start_time + timedelta(minutes=self.buffer_before)

    @property
    def service_end(self) -> datetime:
        return self.end_time - timedelta(minutes=self.buffer_after)

    @property
    def is_blocking(self) -> bool:
        return self.status.value not in NON_BLOCKING_STATUSES
