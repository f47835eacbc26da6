"""Генерация слотов записи

Чистая часть без обращения к БД: получает рабочее окно, занятые
интервалы и параметры услуги, отдаёт допустимые времена начала услуги.
"""

from datetime import datetime, timedelta
from typing import Iterable, Iterator, List, Optional

from utils.datetime_utils import localize_datetime
from utils.intervals import TimeInterval, merge_intervals


class SlotSequence:
    """Ленивая, конечная и перезапускаемая последовательность слотов

    Каждый iter() начинает обход заново. Кандидат t (начало полного
    интервала занятости, с буфером до) допустим, если [t, t + span)
    лежит внутри окна, не пересекает занятые интервалы и t >= earliest.
    Наружу отдаётся t + buffer_before - время начала самой услуги.
    """

    def __init__(
        self,
        window: Optional[TimeInterval],
        busy: Iterable[TimeInterval],
        span: timedelta,
        buffer_before: timedelta = timedelta(0),
        granularity: timedelta = timedelta(minutes=15),
        earliest: Optional[datetime] = None,
    ):
        if granularity <= timedelta(0):
            raise ValueError(f"granularity must be positive, got {granularity}")
        if span <= timedelta(0):
            raise ValueError(f"span must be positive, got {span}")

        self.window = window
        # Пересекающиеся интервалы сливаем, иначе появятся ложные окна
        self.busy: List[TimeInterval] = merge_intervals(busy)
        self.span = span
        self.buffer_before = buffer_before
        self.granularity = granularity
        self.earliest = earliest

    def __iter__(self) -> Iterator[datetime]:
        return self._generate()

    def _generate(self) -> Iterator[datetime]:
        window = self.window
        if window is None or window.is_empty():
            return

        busy = self.busy
        idx = 0
        t = window.start

        while t + self.span <= window.end:
            if self.earliest is not None and t < self.earliest:
                t += self.granularity
                continue

            # t растёт монотонно: интервалы, закончившиеся до t, больше не нужны
            while idx < len(busy) and busy[idx].end <= t:
                idx += 1

            if idx < len(busy) and busy[idx].start < t + self.span:
                t += self.granularity
                continue

            yield localize_datetime(t + self.buffer_before)
            t += self.granularity

    def first(self) -> Optional[datetime]:
        return next(iter(self), None)

    def __bool__(self) -> bool:
        return self.first() is not None
