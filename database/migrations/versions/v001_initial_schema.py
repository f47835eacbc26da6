"""Начальная схема базы данных салона"""

from database.migrations.migration_manager import Migration


class InitialSchema(Migration):
    version = 1
    description = "Salons, hours, stylists, schedules, services, clients, appointments"

    async def upgrade(self, db):
        await db.execute(
            """CREATE TABLE IF NOT EXISTS salons
            (id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            address TEXT,
            phone TEXT,
            email TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP)"""
        )

        await db.execute(
            """CREATE TABLE IF NOT EXISTS salon_hours
            (id INTEGER PRIMARY KEY AUTOINCREMENT,
            salon_id INTEGER NOT NULL REFERENCES salons(id),
            day_of_week INTEGER NOT NULL CHECK (day_of_week BETWEEN 0 AND 6),
            open_time TEXT,
            close_time TEXT,
            is_closed INTEGER NOT NULL DEFAULT 0,
            UNIQUE(salon_id, day_of_week))"""
        )

        await db.execute(
            """CREATE TABLE IF NOT EXISTS stylists
            (id INTEGER PRIMARY KEY AUTOINCREMENT,
            salon_id INTEGER NOT NULL REFERENCES salons(id),
            first_name TEXT NOT NULL,
            last_name TEXT NOT NULL,
            email TEXT,
            phone TEXT,
            specialties TEXT DEFAULT '',
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP)"""
        )

        await db.execute(
            """CREATE TABLE IF NOT EXISTS stylist_schedule
            (id INTEGER PRIMARY KEY AUTOINCREMENT,
            stylist_id INTEGER NOT NULL REFERENCES stylists(id),
            day_of_week INTEGER NOT NULL CHECK (day_of_week BETWEEN 0 AND 6),
            start_time TEXT,
            end_time TEXT,
            is_available INTEGER NOT NULL DEFAULT 1,
            UNIQUE(stylist_id, day_of_week))"""
        )

        await db.execute(
            """CREATE TABLE IF NOT EXISTS services
            (id INTEGER PRIMARY KEY AUTOINCREMENT,
            salon_id INTEGER NOT NULL REFERENCES salons(id),
            name TEXT NOT NULL,
            description TEXT,
            duration_minutes INTEGER NOT NULL,
            price REAL NOT NULL DEFAULT 0,
            buffer_before INTEGER NOT NULL DEFAULT 0,
            buffer_after INTEGER NOT NULL DEFAULT 0,
            processing_time INTEGER NOT NULL DEFAULT 0,
            is_active INTEGER NOT NULL DEFAULT 1,
            display_order INTEGER NOT NULL DEFAULT 0,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP)"""
        )

        await db.execute(
            """CREATE TABLE IF NOT EXISTS clients
            (id INTEGER PRIMARY KEY AUTOINCREMENT,
            first_name TEXT NOT NULL,
            last_name TEXT NOT NULL DEFAULT '',
            email TEXT UNIQUE,
            phone TEXT,
            telegram_id INTEGER UNIQUE,
            notes TEXT,
            preferred_stylist_id INTEGER REFERENCES stylists(id),
            created_at TEXT DEFAULT CURRENT_TIMESTAMP)"""
        )

        # start_time/end_time - полный интервал занятости в UTC (буферы включены)
        await db.execute(
            """CREATE TABLE IF NOT EXISTS appointments
            (id INTEGER PRIMARY KEY AUTOINCREMENT,
            salon_id INTEGER NOT NULL REFERENCES salons(id),
            client_id INTEGER NOT NULL REFERENCES clients(id),
            stylist_id INTEGER NOT NULL REFERENCES stylists(id),
            service_id INTEGER NOT NULL REFERENCES services(id),
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            buffer_before INTEGER NOT NULL DEFAULT 0,
            buffer_after INTEGER NOT NULL DEFAULT 0,
            status TEXT NOT NULL DEFAULT 'pending',
            payment_status TEXT NOT NULL DEFAULT 'pending',
            created_at TEXT NOT NULL,
            updated_at TEXT,
            CHECK (end_time > start_time))"""
        )

        await db.execute(
            """CREATE TABLE IF NOT EXISTS analytics
            (user_id INTEGER, event TEXT, data TEXT, timestamp TEXT)"""
        )

        # Индексы для производительности
        await db.execute(
            """CREATE INDEX IF NOT EXISTS idx_appointments_stylist_time
            ON appointments(stylist_id, start_time, end_time)"""
        )
        await db.execute(
            """CREATE INDEX IF NOT EXISTS idx_appointments_salon_time
            ON appointments(salon_id, start_time)"""
        )
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_appointments_client ON appointments(client_id)"
        )
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_appointments_status ON appointments(status, created_at)"
        )
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_stylists_salon ON stylists(salon_id, is_active)"
        )
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_services_active ON services(salon_id, is_active, display_order)"
        )
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_analytics_user ON analytics(user_id, event)"
        )

    async def downgrade(self, db):
        await db.execute("DROP TABLE IF EXISTS appointments")
        await db.execute("DROP TABLE IF EXISTS clients")
        await db.execute("DROP TABLE IF EXISTS services")
        await db.execute("DROP TABLE IF EXISTS stylist_schedule")
        await db.execute("DROP TABLE IF EXISTS stylists")
        await db.execute("DROP TABLE IF EXISTS salon_hours")
        await db.execute("DROP TABLE IF EXISTS salons")
        await db.execute("DROP TABLE IF EXISTS analytics")
