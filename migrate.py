"""
CLI схемы БД салона

Использование:
    python migrate.py migrate [версия]     # Применить миграции (все или до версии)
    python migrate.py rollback <версия>    # Откатить до версии
    python migrate.py status               # Какие миграции применены
    python migrate.py salon "Название"     # Создать/переименовать салон бота
"""

import argparse
import asyncio
import logging
import sqlite3
import sys
from typing import List, Optional

from config import DATABASE_PATH, DEFAULT_SALON_ID
from database.queries import Database
from database.repositories.salon_repository import SalonRepository
from services.exceptions import PersistenceUnavailable

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="migrate.py", description="Схема БД салона")
    commands = parser.add_subparsers(dest="command", required=True)

    migrate_cmd = commands.add_parser("migrate", help="применить миграции")
    migrate_cmd.add_argument("version", type=int, nargs="?")

    rollback_cmd = commands.add_parser("rollback", help="откатить до версии")
    rollback_cmd.add_argument("version", type=int)

    commands.add_parser("status", help="применённые и ожидающие миграции")

    salon_cmd = commands.add_parser("salon", help="создать или переименовать салон бота")
    salon_cmd.add_argument("name")
    return parser


async def show_status() -> int:
    manager = Database.migration_manager()
    current = await manager.get_current_version()

    print(f"📂 {DATABASE_PATH}")
    for migration in manager.migrations:
        mark = "✅" if migration.version <= current else "⏳"
        print(f"  {mark} v{migration.version:03d} {migration.description}")

    if current < manager.latest_version:
        print(f"\n⚠️  Pending: {current} -> {manager.latest_version}, run: python migrate.py migrate")
        return 1
    print("\n✅ Database is up to date")
    return 0


async def run(argv: Optional[List[str]] = None) -> int:
    """Выполнить команду, вернуть код выхода"""
    args = build_parser().parse_args(argv)
    manager = Database.migration_manager()

    try:
        if args.command == "migrate":
            current = await manager.migrate(args.version)
            print(f"✅ Schema version: {current}")
        elif args.command == "rollback":
            current = await manager.rollback(args.version)
            print(f"✅ Rolled back to version: {current}")
        elif args.command == "status":
            return await show_status()
        elif args.command == "salon":
            await Database.init_db()
            await SalonRepository.save_salon(DEFAULT_SALON_ID, args.name)
            print(f"✅ Salon #{DEFAULT_SALON_ID}: {args.name}")
    except (PersistenceUnavailable, sqlite3.Error, ValueError) as e:
        logging.error(f"Command '{args.command}' failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(run()))
