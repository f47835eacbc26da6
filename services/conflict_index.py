"""Индекс конфликтов: занятые интервалы мастера"""

from datetime import datetime
from typing import List, Optional

import aiosqlite

from database.repositories.appointment_repository import AppointmentRepository
from utils.intervals import TimeInterval, merge_intervals


class ConflictIndex:
    """Занятость мастера по активным записям

    Каждый вызов читает БД заново: кеш между запросами не ведётся,
    иначе после новой записи клиенту предлагались бы занятые слоты.
    """

    @staticmethod
    async def busy_intervals(
        stylist_id: int,
        start: datetime,
        end: datetime,
        db: Optional[aiosqlite.Connection] = None,
        exclude_id: Optional[int] = None,
    ) -> List[TimeInterval]:
        """Отсортированные и слитые занятые интервалы в [start, end)

        Буферы уже входят в сохранённые интервалы записей.
        """
        raw = await AppointmentRepository.get_busy_intervals(
            stylist_id, start, end, db=db, exclude_id=exclude_id
        )
        return merge_intervals(raw)

    @staticmethod
    async def is_free(
        stylist_id: int,
        interval: TimeInterval,
        db: Optional[aiosqlite.Connection] = None,
        exclude_id: Optional[int] = None,
    ) -> bool:
        """Свободен ли интервал у мастера"""
        busy = await ConflictIndex.busy_intervals(
            stylist_id, interval.start, interval.end, db=db, exclude_id=exclude_id
        )
        return not any(b.overlaps(interval) for b in busy)
