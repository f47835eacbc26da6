"""Репозиторий мастеров и их расписания"""

from typing import List, Optional

from database.base_repository import BaseRepository
from database.models import Stylist, StylistSchedule
from utils.datetime_utils import now_local, parse_hhmm


def _row_to_stylist(row) -> Stylist:
    return Stylist(
        id=row["id"],
        salon_id=row["salon_id"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
        phone=row["phone"],
        specialties=row["specialties"] or "",
        is_active=bool(row["is_active"]),
    )


class StylistRepository(BaseRepository):
    """Репозиторий для мастеров"""

    @staticmethod
    async def create_stylist(stylist: Stylist) -> int:
        """Создать мастера"""
        return await StylistRepository._execute_query(
            """INSERT INTO stylists
            (salon_id, first_name, last_name, email, phone, specialties, is_active, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                stylist.salon_id,
                stylist.first_name,
                stylist.last_name,
                stylist.email,
                stylist.phone,
                stylist.specialties,
                int(stylist.is_active),
                now_local().isoformat(),
            ),
            commit=True,
        )

    @staticmethod
    async def get_stylist(stylist_id: int) -> Optional[Stylist]:
        """Получить мастера по ID"""
        row = await StylistRepository._execute_query(
            "SELECT * FROM stylists WHERE id=?", (stylist_id,), fetch_one=True
        )
        return _row_to_stylist(row) if row else None

    @staticmethod
    async def get_salon_stylists(salon_id: int, active_only: bool = True) -> List[Stylist]:
        """Мастера салона"""
        query = "SELECT * FROM stylists WHERE salon_id=?"
        if active_only:
            query += " AND is_active=1"
        query += " ORDER BY first_name, last_name"

        rows = await StylistRepository._execute_query(query, (salon_id,), fetch_all=True)
        return [_row_to_stylist(row) for row in rows]

    @staticmethod
    async def deactivate_stylist(stylist_id: int) -> bool:
        """Мягкое удаление мастера"""
        updated = await StylistRepository._execute_update(
            "UPDATE stylists SET is_active=0 WHERE id=?", (stylist_id,)
        )
        return updated > 0

    @staticmethod
    async def set_stylist_schedule(schedule: StylistSchedule) -> None:
        """Задать рабочее время мастера на день недели"""
        await StylistRepository._execute_query(
            """INSERT INTO stylist_schedule (stylist_id, day_of_week, start_time, end_time, is_available)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(stylist_id, day_of_week) DO UPDATE SET
                start_time=excluded.start_time,
                end_time=excluded.end_time,
                is_available=excluded.is_available""",
            (
                schedule.stylist_id,
                schedule.day_of_week,
                schedule.start_time.strftime("%H:%M") if schedule.start_time else None,
                schedule.end_time.strftime("%H:%M") if schedule.end_time else None,
                int(schedule.is_available),
            ),
            commit=True,
        )

    @staticmethod
    async def get_stylist_schedule(
        stylist_id: int, day_of_week: int
    ) -> Optional[StylistSchedule]:
        """Расписание мастера на день недели (None если не настроено)"""
        row = await StylistRepository._execute_query(
            "SELECT * FROM stylist_schedule WHERE stylist_id=? AND day_of_week=?",
            (stylist_id, day_of_week),
            fetch_one=True,
        )
        if not row:
            return None

        return StylistSchedule(
            stylist_id=row["stylist_id"],
            day_of_week=row["day_of_week"],
            start_time=parse_hhmm(row["start_time"]) if row["start_time"] else None,
            end_time=parse_hhmm(row["end_time"]) if row["end_time"] else None,
            is_available=bool(row["is_available"]),
        )
