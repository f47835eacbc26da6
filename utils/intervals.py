"""Полуоткрытые временные интервалы [start, end)"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional


@dataclass(frozen=True, order=True)
class TimeInterval:
    """Интервал [start, end) в aware datetime"""

    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def is_empty(self) -> bool:
        return self.end <= self.start

    def overlaps(self, other: "TimeInterval") -> bool:
        # Соседние интервалы ([9:00, 10:00) и [10:00, 10:30)) не пересекаются
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeInterval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def intersect(self, other: "TimeInterval") -> Optional["TimeInterval"]:
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if end <= start:
            return None
        return TimeInterval(start, end)


def merge_intervals(intervals: Iterable[TimeInterval]) -> List[TimeInterval]:
    """Сортировка и слияние пересекающихся и смежных интервалов"""
    merged: List[TimeInterval] = []
    for interval in sorted(i for i in intervals if not i.is_empty()):
        if merged and interval.start <= merged[-1].end:
            last = merged[-1]
            if interval.end > last.end:
                merged[-1] = TimeInterval(last.start, interval.end)
        else:
            merged.append(interval)
    return merged
