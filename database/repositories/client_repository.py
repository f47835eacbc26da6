"""Репозиторий клиентов"""

import logging
from typing import Optional

from database.base_repository import BaseRepository
from database.models import Client
from utils.datetime_utils import now_local


def _row_to_client(row) -> Client:
    return Client(
        id=row["id"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
        phone=row["phone"],
        telegram_id=row["telegram_id"],
        notes=row["notes"],
        preferred_stylist_id=row["preferred_stylist_id"],
    )


class ClientRepository(BaseRepository):
    """Репозиторий для клиентов"""

    @staticmethod
    async def get_client(client_id: int) -> Optional[Client]:
        row = await ClientRepository._execute_query(
            "SELECT * FROM clients WHERE id=?", (client_id,), fetch_one=True
        )
        return _row_to_client(row) if row else None

    @staticmethod
    async def get_by_telegram_id(telegram_id: int) -> Optional[Client]:
        row = await ClientRepository._execute_query(
            "SELECT * FROM clients WHERE telegram_id=?", (telegram_id,), fetch_one=True
        )
        return _row_to_client(row) if row else None

    @staticmethod
    async def get_by_email(email: str) -> Optional[Client]:
        row = await ClientRepository._execute_query(
            "SELECT * FROM clients WHERE email=?", (email.strip().lower(),), fetch_one=True
        )
        return _row_to_client(row) if row else None

    @staticmethod
    async def create_client(client: Client) -> int:
        """Создать клиента"""
        return await ClientRepository._execute_query(
            """INSERT INTO clients
            (first_name, last_name, email, phone, telegram_id, notes,
             preferred_stylist_id, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                client.first_name,
                client.last_name,
                client.email.strip().lower() if client.email else None,
                client.phone,
                client.telegram_id,
                client.notes,
                client.preferred_stylist_id,
                now_local().isoformat(),
            ),
            commit=True,
        )

    @staticmethod
    async def get_or_create(client: Client) -> Client:
        """Найти клиента по telegram_id или email, иначе создать

        Повторная запись того же клиента не создаёт дубликат.
        """
        existing = None
        if client.telegram_id is not None:
            existing = await ClientRepository.get_by_telegram_id(client.telegram_id)
        if existing is None and client.email:
            existing = await ClientRepository.get_by_email(client.email)
        if existing is not None:
            return existing

        if client.telegram_id is None and not client.email:
            client_id = await ClientRepository.create_client(client)
            return await ClientRepository.get_client(client_id)

        await ClientRepository._execute_query(
            """INSERT OR IGNORE INTO clients
            (first_name, last_name, email, phone, telegram_id, notes,
             preferred_stylist_id, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                client.first_name,
                client.last_name,
                client.email.strip().lower() if client.email else None,
                client.phone,
                client.telegram_id,
                client.notes,
                client.preferred_stylist_id,
                now_local().isoformat(),
            ),
            commit=True,
        )

        # Повторное чтение: параллельный запрос мог создать клиента раньше
        if client.telegram_id is not None:
            created = await ClientRepository.get_by_telegram_id(client.telegram_id)
        else:
            created = await ClientRepository.get_by_email(client.email)
        logging.info(f"Client registered: {created.id if created else None}")
        return created
