"""Инициализация БД и журнал событий"""

import logging

from config import DATABASE_PATH
from database.base_repository import BaseRepository
from database.migrations.migration_manager import MigrationManager
from database.migrations.versions import MIGRATIONS
from utils.datetime_utils import now_local


class Database:
    """Класс для работы с базой данных"""

    @staticmethod
    def migration_manager() -> MigrationManager:
        return MigrationManager(DATABASE_PATH, MIGRATIONS)

    @staticmethod
    async def init_db():
        """Инициализация БД: применить все миграции"""
        version = await Database.migration_manager().migrate()
        logging.info(f"Database initialized at schema version {version}")

    @staticmethod
    async def log_event(user_id: int, event: str, data: str = ""):
        """Логирование событий с обработкой ошибок"""
        try:
            await BaseRepository._execute_query(
                "INSERT INTO analytics (user_id, event, data, timestamp) VALUES (?, ?, ?, ?)",
                (user_id, event, data, now_local().isoformat()),
                commit=True,
            )
        except Exception as e:
            # Не падаем, только логируем
            logging.error(f"Failed to log event {event} for user {user_id}: {e}")

    @staticmethod
    async def get_events(event: str = None) -> list:
        """События журнала (для админки и тестов)"""
        query = "SELECT user_id, event, data, timestamp FROM analytics"
        params = ()
        if event:
            query += " WHERE event=?"
            params = (event,)
        query += " ORDER BY rowid"
        rows = await BaseRepository._execute_query(query, params, fetch_all=True)
        return [tuple(row) for row in rows]
