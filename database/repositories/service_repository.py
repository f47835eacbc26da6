"""Репозиторий для работы с услугами"""

from typing import List, Optional

from database.base_repository import BaseRepository
from database.models import Service
from utils.datetime_utils import now_local


def _row_to_service(row) -> Service:
    return Service(
        id=row["id"],
        salon_id=row["salon_id"],
        name=row["name"],
        description=row["description"],
        duration_minutes=row["duration_minutes"],
        price=row["price"],
        buffer_before=row["buffer_before"],
        buffer_after=row["buffer_after"],
        processing_time=row["processing_time"],
        is_active=bool(row["is_active"]),
        display_order=row["display_order"],
    )


class ServiceRepository(BaseRepository):
    """Репозиторий для услуг"""

    @staticmethod
    async def get_salon_services(salon_id: int, active_only: bool = True) -> List[Service]:
        """Получить все услуги салона"""
        query = "SELECT * FROM services WHERE salon_id=?"
        if active_only:
            query += " AND is_active=1"
        query += " ORDER BY display_order, name"

        rows = await ServiceRepository._execute_query(query, (salon_id,), fetch_all=True)
        return [_row_to_service(row) for row in rows]

    @staticmethod
    async def get_service_by_id(service_id: int) -> Optional[Service]:
        """Получить услугу по ID"""
        row = await ServiceRepository._execute_query(
            "SELECT * FROM services WHERE id=?", (service_id,), fetch_one=True
        )
        return _row_to_service(row) if row else None

    @staticmethod
    async def create_service(service: Service) -> int:
        """Создать новую услугу (после валидации)"""
        service.validate()
        return await ServiceRepository._execute_query(
            """INSERT INTO services
            (salon_id, name, description, duration_minutes, price,
             buffer_before, buffer_after, processing_time,
             is_active, display_order, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                service.salon_id,
                service.name,
                service.description,
                service.duration_minutes,
                service.price,
                service.buffer_before,
                service.buffer_after,
                service.processing_time,
                int(service.is_active),
                service.display_order,
                now_local().isoformat(),
            ),
            commit=True,
        )

    @staticmethod
    async def update_service(service_id: int, service: Service) -> bool:
        """Обновить услугу

        Уже созданные записи хранят свой интервал и буферы, их это не меняет.
        """
        service.validate()
        updated = await ServiceRepository._execute_update(
            """UPDATE services
            SET name=?, description=?, duration_minutes=?, price=?,
                buffer_before=?, buffer_after=?, processing_time=?,
                display_order=?, is_active=?
            WHERE id=?""",
            (
                service.name,
                service.description,
                service.duration_minutes,
                service.price,
                service.buffer_before,
                service.buffer_after,
                service.processing_time,
                service.display_order,
                int(service.is_active),
                service_id,
            ),
        )
        return updated > 0

    @staticmethod
    async def delete_service(service_id: int) -> bool:
        """Удалить услугу (мягкое удаление)"""
        updated = await ServiceRepository._execute_update(
            "UPDATE services SET is_active=0 WHERE id=?", (service_id,)
        )
        return updated > 0
