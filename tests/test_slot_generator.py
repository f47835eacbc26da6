"""Тесты для SlotSequence (без БД)

Критические сценарии:
- Соседние интервалы не конфликтуют
- Хвост окна: услуга должна целиком помещаться
- Буферы входят в занятость, наружу отдаётся начало услуги
- Последовательность перезапускаемая
"""

from datetime import datetime, timedelta

import pytest

from services.slot_generator import SlotSequence
from utils.datetime_utils import localize_datetime
from utils.intervals import TimeInterval

DAY = "2030-03-04"  # понедельник


def t(hhmm: str) -> datetime:
    return localize_datetime(datetime.fromisoformat(f"{DAY}T{hhmm}"))


def iv(start: str, end: str) -> TimeInterval:
    return TimeInterval(t(start), t(end))


def minutes(value: int) -> timedelta:
    return timedelta(minutes=value)


def hhmm(slots) -> list:
    return [s.strftime("%H:%M") for s in slots]


class TestSlotWalk:
    """Обход рабочего окна"""

    @pytest.mark.unit
    def test_existing_appointment_blocks_overlapping_starts(self):
        """Запись 10:00-10:45, услуга 30 мин: 09:45 нельзя, 09:30 и 10:45 можно"""
        sequence = SlotSequence(
            window=iv("09:00", "17:00"),
            busy=[iv("10:00", "10:45")],
            span=minutes(30),
        )
        slots = hhmm(sequence)

        assert "09:30" in slots
        assert "10:45" in slots
        assert "09:45" not in slots
        assert "10:00" not in slots
        assert "10:30" not in slots
        for slot in sequence:
            assert not TimeInterval(slot, slot + minutes(30)).overlaps(iv("10:00", "10:45"))

    @pytest.mark.unit
    def test_last_slot_fits_window(self):
        slots = hhmm(SlotSequence(window=iv("09:00", "17:00"), busy=[], span=minutes(30)))

        assert slots[0] == "09:00"
        assert slots[-1] == "16:30"
        assert len(slots) == 31

    @pytest.mark.unit
    def test_span_longer_than_window_is_empty(self):
        sequence = SlotSequence(window=iv("09:00", "09:20"), busy=[], span=minutes(30))
        assert list(sequence) == []
        assert not sequence

    @pytest.mark.unit
    def test_closed_day_is_empty(self):
        sequence = SlotSequence(window=None, busy=[], span=minutes(30))
        assert list(sequence) == []
        assert sequence.first() is None

    @pytest.mark.unit
    def test_granularity_respected(self):
        slots = hhmm(
            SlotSequence(
                window=iv("09:00", "11:00"), busy=[], span=minutes(60), granularity=minutes(30)
            )
        )
        assert slots == ["09:00", "09:30", "10:00"]

    @pytest.mark.unit
    def test_invalid_granularity_rejected(self):
        with pytest.raises(ValueError):
            SlotSequence(window=iv("09:00", "17:00"), busy=[], span=minutes(30), granularity=minutes(0))

    @pytest.mark.unit
    def test_overlapping_busy_intervals_merged(self):
        """Несортированные и пересекающиеся интервалы не дают ложных окон"""
        slots = hhmm(
            SlotSequence(
                window=iv("09:00", "12:00"),
                busy=[iv("10:30", "11:00"), iv("09:00", "10:00"), iv("09:45", "10:30")],
                span=minutes(30),
            )
        )
        assert slots == ["11:00", "11:15", "11:30"]


class TestBuffers:
    """Буферы до и после услуги"""

    @pytest.mark.unit
    def test_buffer_shifts_emitted_start(self):
        """Занятость 15+60+15 мин, наружу отдаётся время начала услуги"""
        sequence = SlotSequence(
            window=iv("09:00", "12:00"),
            busy=[],
            span=minutes(90),
            buffer_before=minutes(15),
        )
        slots = hhmm(sequence)

        assert slots[0] == "09:15"
        # Последний интервал занятости 10:30-12:00
        assert slots[-1] == "10:45"

    @pytest.mark.unit
    def test_buffer_counts_against_busy(self):
        sequence = SlotSequence(
            window=iv("09:00", "12:00"),
            busy=[iv("10:00", "10:30")],
            span=minutes(60),
            buffer_before=minutes(15),
        )
        slots = hhmm(sequence)

        # 09:00-10:00 помещается до записи, дальше только после 10:30
        assert slots == ["09:15", "10:45", "11:00", "11:15"]
        assert "09:30" not in slots
        assert "10:45" in slots


class TestEarliest:
    """Время в прошлом не предлагается"""

    @pytest.mark.unit
    def test_slots_before_earliest_skipped(self):
        sequence = SlotSequence(
            window=iv("09:00", "12:00"),
            busy=[],
            span=minutes(30),
            earliest=t("10:05"),
        )
        assert hhmm(sequence)[0] == "10:15"


class TestRestartable:
    """Перезапускаемость последовательности"""

    @pytest.mark.unit
    def test_iterating_twice_gives_same_result(self):
        sequence = SlotSequence(
            window=iv("09:00", "17:00"), busy=[iv("12:00", "13:00")], span=minutes(45)
        )
        assert list(sequence) == list(sequence)

    @pytest.mark.unit
    def test_first_does_not_consume(self):
        sequence = SlotSequence(window=iv("09:00", "17:00"), busy=[], span=minutes(30))
        first = sequence.first()
        assert first == t("09:00")
        assert list(sequence)[0] == first

    @pytest.mark.unit
    def test_slots_are_timezone_aware(self):
        sequence = SlotSequence(window=iv("09:00", "10:00"), busy=[], span=minutes(30))
        assert all(slot.tzinfo is not None for slot in sequence)
