"""Миграция: канал записи, сумма и заметки в appointments"""

from database.migrations.migration_manager import Migration


class AddAppointmentDetails(Migration):
    version = 2
    description = "Add channel, total_amount and notes to appointments"

    async def upgrade(self, db):
        # Проверяем есть ли уже колонки (повторный запуск на старой БД)
        async with db.execute("PRAGMA table_info(appointments)") as cursor:
            columns = await cursor.fetchall()
            column_names = [col[1] for col in columns]

        if "channel" not in column_names:
            await db.execute(
                "ALTER TABLE appointments ADD COLUMN channel TEXT NOT NULL DEFAULT 'bot'"
            )

        if "total_amount" not in column_names:
            await db.execute(
                "ALTER TABLE appointments ADD COLUMN total_amount REAL NOT NULL DEFAULT 0"
            )

        if "notes" not in column_names:
            await db.execute("ALTER TABLE appointments ADD COLUMN notes TEXT")

        # Сумма старых записей = текущая цена услуги
        await db.execute(
            """UPDATE appointments
            SET total_amount = COALESCE(
                (SELECT price FROM services WHERE services.id = appointments.service_id), 0)
            WHERE total_amount = 0"""
        )

    async def downgrade(self, db):
        # SQLite >= 3.35 поддерживает DROP COLUMN
        await db.execute("ALTER TABLE appointments DROP COLUMN notes")
        await db.execute("ALTER TABLE appointments DROP COLUMN total_amount")
        await db.execute("ALTER TABLE appointments DROP COLUMN channel")
