"""Репозиторий салонов и часов работы"""

import logging
from typing import List, Optional

from database.base_repository import BaseRepository
from database.models import Salon, SalonHours
from utils.datetime_utils import now_local, parse_hhmm


def _row_to_hours(row) -> SalonHours:
    return SalonHours(
        salon_id=row["salon_id"],
        day_of_week=row["day_of_week"],
        open_time=parse_hhmm(row["open_time"]) if row["open_time"] else None,
        close_time=parse_hhmm(row["close_time"]) if row["close_time"] else None,
        is_closed=bool(row["is_closed"]),
    )


class SalonRepository(BaseRepository):
    """Репозиторий для салонов"""

    @staticmethod
    async def create_salon(salon: Salon) -> int:
        """Создать салон"""
        salon_id = await SalonRepository._execute_query(
            """INSERT INTO salons (name, address, phone, email, created_at)
            VALUES (?, ?, ?, ?, ?)""",
            (salon.name, salon.address, salon.phone, salon.email, now_local().isoformat()),
            commit=True,
        )
        logging.info(f"Salon created: {salon_id} ({salon.name})")
        return salon_id

    @staticmethod
    async def get_salon(salon_id: int) -> Optional[Salon]:
        """Получить салон по ID"""
        row = await SalonRepository._execute_query(
            "SELECT * FROM salons WHERE id=?", (salon_id,), fetch_one=True
        )
        if not row:
            return None
        return Salon(
            id=row["id"],
            name=row["name"],
            address=row["address"],
            phone=row["phone"],
            email=row["email"],
        )

    @staticmethod
    async def set_salon_hours(hours: SalonHours) -> None:
        """Задать часы работы на день недели (одна запись на день)"""
        await SalonRepository._execute_query(
            """INSERT INTO salon_hours (salon_id, day_of_week, open_time, close_time, is_closed)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(salon_id, day_of_week) DO UPDATE SET
                open_time=excluded.open_time,
                close_time=excluded.close_time,
                is_closed=excluded.is_closed""",
            (
                hours.salon_id,
                hours.day_of_week,
                hours.open_time.strftime("%H:%M") if hours.open_time else None,
                hours.close_time.strftime("%H:%M") if hours.close_time else None,
                int(hours.is_closed),
            ),
            commit=True,
        )

    @staticmethod
    async def get_salon_hours(salon_id: int, day_of_week: int) -> Optional[SalonHours]:
        """Часы работы салона в день недели (None если не настроено)"""
        row = await SalonRepository._execute_query(
            "SELECT * FROM salon_hours WHERE salon_id=? AND day_of_week=?",
            (salon_id, day_of_week),
            fetch_one=True,
        )
        return _row_to_hours(row) if row else None

    @staticmethod
    async def get_week_hours(salon_id: int) -> List[SalonHours]:
        """Все настроенные дни недели салона"""
        rows = await SalonRepository._execute_query(
            "SELECT * FROM salon_hours WHERE salon_id=? ORDER BY day_of_week",
            (salon_id,),
            fetch_all=True,
        )
        return [_row_to_hours(row) for row in rows]

    @staticmethod
    async def save_salon(salon_id: int, name: str) -> None:
        """Создать салон с заданным ID или переименовать существующий"""
        await SalonRepository._execute_query(
            """INSERT INTO salons (id, name, created_at) VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET name=excluded.name""",
            (salon_id, name, now_local().isoformat()),
            commit=True,
        )
        logging.info(f"Salon {salon_id} saved as '{name}'")
