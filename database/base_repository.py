"""Базовый репозиторий: соединения, транзакции и общие запросы"""

import logging
import sqlite3
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Tuple

import aiosqlite

from config import DATABASE_PATH, DB_LOCK_TIMEOUT
from services.exceptions import PersistenceUnavailable


@asynccontextmanager
async def connect(**kwargs) -> AsyncIterator[aiosqlite.Connection]:
    """Соединение на одну операцию; ошибки драйвера -> PersistenceUnavailable"""
    try:
        async with aiosqlite.connect(
            DATABASE_PATH, timeout=DB_LOCK_TIMEOUT, **kwargs
        ) as db:
            db.row_factory = aiosqlite.Row
            yield db
    except sqlite3.Error as e:
        logging.error(f"Database error: {e}")
        raise PersistenceUnavailable(str(e)) from e


@asynccontextmanager
async def transaction() -> AsyncIterator[aiosqlite.Connection]:
    """Транзакция BEGIN IMMEDIATE

    Write-lock берётся ДО первого чтения, поэтому проверка и вставка
    внутри блока сериализуются относительно других писателей.
    Любое исключение (в т.ч. CancelledError) откатывает транзакцию.
    """
    # isolation_level=None: BEGIN/COMMIT управляются явно
    async with connect(isolation_level=None) as db:
        await db.execute("BEGIN IMMEDIATE")
        try:
            yield db
        except BaseException:
            await db.execute("ROLLBACK")
            raise
        else:
            await db.execute("COMMIT")


class BaseRepository:
    """Общие хелперы для репозиториев"""

    @staticmethod
    async def _execute_query(
        query: str,
        params: Tuple = (),
        fetch_one: bool = False,
        fetch_all: bool = False,
        commit: bool = False,
    ) -> Any:
        """Выполнить запрос в отдельном соединении

        Returns:
            Строку, список строк или lastrowid (для записи без fetch)
        """
        async with connect() as db:
            async with db.execute(query, params) as cursor:
                if fetch_one:
                    result = await cursor.fetchone()
                elif fetch_all:
                    result = await cursor.fetchall()
                else:
                    result = cursor.lastrowid
            if commit:
                await db.commit()
            return result

    @staticmethod
    async def _execute_update(query: str, params: Tuple = ()) -> int:
        """UPDATE/DELETE с коммитом, возвращает число затронутых строк"""
        async with connect() as db:
            cursor = await db.execute(query, params)
            await db.commit()
            return cursor.rowcount
