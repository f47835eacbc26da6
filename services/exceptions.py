"""Исключения ядра бронирования"""


class BookingError(Exception):
    """Базовая ошибка бронирования"""


class ClosedDay(BookingError):
    """Салон или мастер не работает в указанную дату"""


class SlotUnavailable(BookingError):
    """Запрошенный интервал уже занят (на момент записи в БД)"""

    def __init__(self, stylist_id: int, start=None, end=None, reason: str = "slot_taken"):
        self.stylist_id = stylist_id
        self.start = start
        self.end = end
        self.reason = reason
        super().__init__(
            f"Slot unavailable for stylist {stylist_id}: {start} - {end} ({reason})"
        )


class InvalidService(BookingError):
    """Некорректная услуга: длительность <= 0 или отрицательные буферы"""


class PersistenceUnavailable(BookingError):
    """Ошибка чтения/записи в хранилище (временная)"""


class NotFound(BookingError):
    """Сущность не найдена"""


class InvalidTransition(BookingError):
    """Недопустимая смена статуса записи"""


class ValidationError(BookingError):
    """Ошибка валидации входных данных на границе системы"""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")
