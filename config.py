"""Конфигурация приложения"""

import os

import pytz
from dotenv import load_dotenv

load_dotenv()

# Telegram
BOT_TOKEN = os.getenv("BOT_TOKEN")

# Админы салона (поддержка нескольких)
ADMIN_IDS_STR = os.getenv("ADMIN_IDS", "")
if not ADMIN_IDS_STR:
    raise ValueError("ADMIN_IDS not found in .env file")

ADMIN_IDS = [int(id.strip()) for id in ADMIN_IDS_STR.split(",") if id.strip()]

if not BOT_TOKEN:
    raise ValueError("BOT_TOKEN not found in .env file")
if not ADMIN_IDS:
    raise ValueError("No valid admin IDs provided")

# База данных
DATABASE_PATH = os.getenv("DATABASE_PATH", "salon.db")
DB_LOCK_TIMEOUT = float(os.getenv("DB_LOCK_TIMEOUT", "5.0"))  # секунды ожидания write-lock

# Салон по умолчанию для бота (явно передаётся во все вызовы ядра)
DEFAULT_SALON_ID = int(os.getenv("DEFAULT_SALON_ID", "1"))
DEFAULT_SALON_NAME = os.getenv("SALON_NAME", "Наш салон")  # при первом входе в /admin

# Временная зона салона (одна на весь салон)
TIMEZONE = pytz.timezone(os.getenv("SALON_TIMEZONE", "Europe/Paris"))

# Настройки слотов
DEFAULT_SLOT_GRANULARITY = 15  # минут
MIN_LEAD_MINUTES = int(os.getenv("MIN_LEAD_MINUTES", "0"))
BOOKING_DAYS_AHEAD = 14

# Неподтверждённые записи (pending) держат слот ограниченное время
PENDING_HOLD_TTL_MINUTES = int(os.getenv("PENDING_HOLD_TTL_MINUTES", "30"))
HOLD_CLEANUP_INTERVAL_MINUTES = 5

# Записи из бота подтверждаются сразу или ждут подтверждения администратора
AUTO_CONFIRM_BOT_BOOKINGS = os.getenv("AUTO_CONFIRM_BOT_BOOKINGS", "0") == "1"

# Повторы при недоступности БД (только на уровне UI)
DB_RETRY_ATTEMPTS = 3
DB_RETRY_DELAY = 0.2  # секунды

# Названия дней недели (индекс = date.weekday())
DAY_NAMES = [
    "понедельник",
    "вторник",
    "среду",
    "четверг",
    "пятницу",
    "субботу",
    "воскресенье",
]

DAY_NAMES_SHORT = ["Пн", "Вт", "Ср", "Чт", "Пт", "Сб", "Вс"]

STATUS_LABELS = {
    "pending": "⏳ ожидает",
    "confirmed": "✅ подтверждена",
    "completed": "🏁 завершена",
    "cancelled": "❌ отменена",
    "no_show": "🚫 неявка",
}
