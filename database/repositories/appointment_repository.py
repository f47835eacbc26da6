"""Репозиторий записей: занятость мастеров и атомарная вставка"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence

import aiosqlite

from database.base_repository import BaseRepository, connect, transaction
from database.models import (
    NON_BLOCKING_STATUSES,
    Appointment,
    AppointmentStatus,
    BookingChannel,
    PaymentStatus,
)
from services.exceptions import SlotUnavailable
from utils.datetime_utils import from_db, now_local, to_db
from utils.intervals import TimeInterval

APPOINTMENT_SELECT = """SELECT a.*,
    s.name AS service_name,
    st.first_name || ' ' || st.last_name AS stylist_name,
    TRIM(c.first_name || ' ' || c.last_name) AS client_name
    FROM appointments a
    LEFT JOIN services s ON s.id = a.service_id
    LEFT JOIN stylists st ON st.id = a.stylist_id
    LEFT JOIN clients c ON c.id = a.client_id"""

BUSY_QUERY = """SELECT id, start_time, end_time FROM appointments
    WHERE stylist_id=?
    AND status NOT IN (?, ?)
    AND start_time < ? AND end_time > ?"""


def _row_to_appointment(row) -> Appointment:
    keys = row.keys()
    return Appointment(
        id=row["id"],
        salon_id=row["salon_id"],
        client_id=row["client_id"],
        stylist_id=row["stylist_id"],
        service_id=row["service_id"],
        start_time=from_db(row["start_time"]),
        end_time=from_db(row["end_time"]),
        buffer_before=row["buffer_before"],
        buffer_after=row["buffer_after"],
        status=AppointmentStatus(row["status"]),
        channel=BookingChannel(row["channel"]),
        total_amount=row["total_amount"],
        payment_status=PaymentStatus(row["payment_status"]),
        notes=row["notes"],
        created_at=from_db(row["created_at"]),
        updated_at=from_db(row["updated_at"]),
        service_name=row["service_name"] if "service_name" in keys else None,
        stylist_name=row["stylist_name"] if "stylist_name" in keys else None,
        client_name=row["client_name"] if "client_name" in keys else None,
    )


async def _fetch_busy(
    db: aiosqlite.Connection,
    stylist_id: int,
    start: datetime,
    end: datetime,
    exclude_id: Optional[int] = None,
) -> List[TimeInterval]:
    query = BUSY_QUERY
    params = [stylist_id, *NON_BLOCKING_STATUSES, to_db(end), to_db(start)]
    if exclude_id is not None:
        query += " AND id != ?"
        params.append(exclude_id)
    query += " ORDER BY start_time"

    async with db.execute(query, params) as cursor:
        rows = await cursor.fetchall()
    return [TimeInterval(from_db(row[1]), from_db(row[2])) for row in rows]


class AppointmentRepository(BaseRepository):
    """Репозиторий для записей"""

    @staticmethod
    async def get_busy_intervals(
        stylist_id: int,
        start: datetime,
        end: datetime,
        db: Optional[aiosqlite.Connection] = None,
        exclude_id: Optional[int] = None,
    ) -> List[TimeInterval]:
        """Занятые интервалы мастера, пересекающие [start, end)

        Отменённые записи и неявки не учитываются. Без db читается
        только закоммиченное состояние (отдельное соединение).
        """
        if db is not None:
            return await _fetch_busy(db, stylist_id, start, end, exclude_id)

        async with connect() as conn:
            return await _fetch_busy(conn, stylist_id, start, end, exclude_id)

    @staticmethod
    async def insert_appointment_if_free(
        candidate: Appointment, window: Optional[TimeInterval] = None
    ) -> Appointment:
        """Атомарно вставить запись, если интервал мастера свободен

        Raises:
            SlotUnavailable: интервал пересекается с активной записью
                или выходит за рабочее окно мастера
        """
        interval = candidate.interval
        if window is not None and not window.contains(interval):
            raise SlotUnavailable(
                candidate.stylist_id, interval.start, interval.end, "outside_working_hours"
            )

        now = now_local()
        async with transaction() as db:
            busy = await _fetch_busy(db, candidate.stylist_id, interval.start, interval.end)
            if any(b.overlaps(interval) for b in busy):
                logging.info(
                    f"Slot {interval.start} - {interval.end} taken for stylist {candidate.stylist_id}"
                )
                raise SlotUnavailable(candidate.stylist_id, interval.start, interval.end)

            cursor = await db.execute(
                """INSERT INTO appointments
                (salon_id, client_id, stylist_id, service_id, start_time, end_time,
                 buffer_before, buffer_after, status, channel, total_amount,
                 payment_status, notes, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    candidate.salon_id,
                    candidate.client_id,
                    candidate.stylist_id,
                    candidate.service_id,
                    to_db(interval.start),
                    to_db(interval.end),
                    candidate.buffer_before,
                    candidate.buffer_after,
                    candidate.status.value,
                    candidate.channel.value,
                    candidate.total_amount,
                    candidate.payment_status.value,
                    candidate.notes,
                    to_db(now),
                    to_db(now),
                ),
            )
            appointment_id = cursor.lastrowid

        return await AppointmentRepository.get_appointment(appointment_id)

    @staticmethod
    async def move_if_free(
        appointment_id: int,
        stylist_id: int,
        new_interval: TimeInterval,
        window: Optional[TimeInterval] = None,
    ) -> bool:
        """Атомарно перенести запись на новый интервал

        Собственный интервал записи при проверке не учитывается.
        Returns:
            False если запись не найдена или уже не активна
        """
        if window is not None and not window.contains(new_interval):
            raise SlotUnavailable(
                stylist_id, new_interval.start, new_interval.end, "outside_working_hours"
            )

        async with transaction() as db:
            busy = await _fetch_busy(
                db, stylist_id, new_interval.start, new_interval.end, exclude_id=appointment_id
            )
            if any(b.overlaps(new_interval) for b in busy):
                raise SlotUnavailable(stylist_id, new_interval.start, new_interval.end)

            cursor = await db.execute(
                """UPDATE appointments SET start_time=?, end_time=?, updated_at=?
                WHERE id=? AND stylist_id=? AND status NOT IN (?, ?, ?)""",
                (
                    to_db(new_interval.start),
                    to_db(new_interval.end),
                    to_db(now_local()),
                    appointment_id,
                    stylist_id,
                    *NON_BLOCKING_STATUSES,
                    AppointmentStatus.COMPLETED.value,
                ),
            )
            return cursor.rowcount > 0

    @staticmethod
    async def get_appointment(appointment_id: int) -> Optional[Appointment]:
        """Получить запись по ID"""
        row = await AppointmentRepository._execute_query(
            f"{APPOINTMENT_SELECT} WHERE a.id=?", (appointment_id,), fetch_one=True
        )
        return _row_to_appointment(row) if row else None

    @staticmethod
    async def get_salon_appointments(
        salon_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Appointment]:
        """Записи салона, опционально в диапазоне дат"""
        query = f"{APPOINTMENT_SELECT} WHERE a.salon_id=?"
        params: list = [salon_id]
        if start is not None:
            query += " AND a.end_time > ?"
            params.append(to_db(start))
        if end is not None:
            query += " AND a.start_time < ?"
            params.append(to_db(end))
        query += " ORDER BY a.start_time"

        rows = await AppointmentRepository._execute_query(query, tuple(params), fetch_all=True)
        return [_row_to_appointment(row) for row in rows]

    @staticmethod
    async def get_client_appointments(
        client_id: int, upcoming_only: bool = True
    ) -> List[Appointment]:
        """Записи клиента (по умолчанию только будущие и активные)"""
        query = f"{APPOINTMENT_SELECT} WHERE a.client_id=?"
        params: list = [client_id]
        if upcoming_only:
            query += " AND a.end_time > ? AND a.status IN (?, ?)"
            params.extend(
                [
                    to_db(now_local()),
                    AppointmentStatus.PENDING.value,
                    AppointmentStatus.CONFIRMED.value,
                ]
            )
        query += " ORDER BY a.start_time"

        rows = await AppointmentRepository._execute_query(query, tuple(params), fetch_all=True)
        return [_row_to_appointment(row) for row in rows]

    @staticmethod
    async def update_status(
        appointment_id: int,
        new_status: AppointmentStatus,
        expected: Sequence[AppointmentStatus],
        notes: Optional[str] = None,
    ) -> bool:
        """Смена статуса только из ожидаемых статусов (compare-and-swap)"""
        placeholders = ", ".join("?" for _ in expected)
        query = f"""UPDATE appointments
            SET status=?, updated_at=?, notes=COALESCE(?, notes)
            WHERE id=? AND status IN ({placeholders})"""
        updated = await AppointmentRepository._execute_update(
            query,
            (
                new_status.value,
                to_db(now_local()),
                notes,
                appointment_id,
                *(status.value for status in expected),
            ),
        )
        return updated > 0

    @staticmethod
    async def set_payment_status(appointment_id: int, payment_status: PaymentStatus) -> bool:
        updated = await AppointmentRepository._execute_update(
            "UPDATE appointments SET payment_status=?, updated_at=? WHERE id=?",
            (payment_status.value, to_db(now_local()), appointment_id),
        )
        return updated > 0

    @staticmethod
    async def delete_appointment(appointment_id: int) -> bool:
        """Физическое удаление (только для администратора)"""
        deleted = await AppointmentRepository._execute_update(
            "DELETE FROM appointments WHERE id=?", (appointment_id,)
        )
        return deleted > 0

    @staticmethod
    async def cancel_stale_pending(created_before: datetime) -> List[int]:
        """Отменить pending-записи, созданные раньше created_before"""
        async with transaction() as db:
            async with db.execute(
                "SELECT id FROM appointments WHERE status=? AND created_at < ?",
                (AppointmentStatus.PENDING.value, to_db(created_before)),
            ) as cursor:
                ids = [row[0] for row in await cursor.fetchall()]

            if ids:
                placeholders = ", ".join("?" for _ in ids)
                await db.execute(
                    f"""UPDATE appointments
                    SET status=?, updated_at=?, notes=COALESCE(notes, 'hold expired')
                    WHERE id IN ({placeholders})""",
                    (AppointmentStatus.CANCELLED.value, to_db(now_local()), *ids),
                )
        return ids
