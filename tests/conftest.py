"""Конфигурация pytest и общие фикстуры для всех тестов

Этот файл содержит:
- Настройку тестовой среды
- Mock объекты для планировщика и бота
- Фикстуры для БД и тестовых данных салона
- Автоматическую очистку после тестов
"""

import os
import sys
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any, Dict, List
from unittest.mock import AsyncMock, Mock

import pytest
from aiogram.fsm.context import FSMContext
from aiogram.fsm.storage.base import StorageKey
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import CallbackQuery, Message, User

# Добавляем корневую папку в PYTHONPATH
sys.path.insert(0, str(Path(__file__).parent.parent))

# ============================================================================
# НАСТРОЙКА ТЕСТОВОЙ СРЕДЫ
# ============================================================================

# Настройка переменных окружения ДО импорта config
os.environ["DATABASE_PATH"] = "./test_salon.db"
os.environ["BOT_TOKEN"] = "1234567890:ABCdefGHIjklMNOpqrsTUVwxyz12345678"
os.environ["ADMIN_IDS"] = "12345,67890"
os.environ["SALON_TIMEZONE"] = "Europe/Paris"
os.environ["MIN_LEAD_MINUTES"] = "0"

# Теперь можно импортировать модули проекта
from config import DATABASE_PATH  # noqa: E402
from database.models import (  # noqa: E402
    Client,
    Salon,
    SalonHours,
    Service,
    Stylist,
    StylistSchedule,
)
from database.queries import Database  # noqa: E402
from database.repositories import (  # noqa: E402
    ClientRepository,
    SalonRepository,
    ServiceRepository,
    StylistRepository,
)
from services.booking_service import BookingService  # noqa: E402
from services.notification_service import NotificationService  # noqa: E402
from utils.datetime_utils import localize_datetime, now_local  # noqa: E402


# ============================================================================
# PYTEST КОНФИГУРАЦИЯ
# ============================================================================


def pytest_configure(config):
    """Регистрация пользовательских маркеров"""
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "integration: integration test")
    config.addinivalue_line("markers", "unit: unit test")


# ============================================================================
# ОЧИСТКА БД
# ============================================================================

TABLES = (
    "appointments",
    "clients",
    "services",
    "stylist_schedule",
    "stylists",
    "salon_hours",
    "salons",
    "analytics",
)


@pytest.fixture(autouse=True)
async def cleanup_database():
    """Автоматическая очистка БД после каждого теста"""
    yield

    if not os.path.exists(DATABASE_PATH):
        return

    import aiosqlite

    try:
        async with aiosqlite.connect(DATABASE_PATH) as db:
            for table in TABLES:
                await db.execute(f"DELETE FROM {table}")
            await db.commit()
    except Exception as e:
        print(f"Warning: Failed to cleanup test database: {e}")


@pytest.fixture(scope="session", autouse=True)
def cleanup_test_db_on_exit():
    """Удаляем тестовую БД после всех тестов"""
    yield

    if os.path.exists(DATABASE_PATH):
        try:
            os.remove(DATABASE_PATH)
            print(f"\n✅ Cleaned up test database: {DATABASE_PATH}")
        except Exception as e:
            print(f"\n⚠️  Warning: Could not remove test database: {e}")


@pytest.fixture
async def init_database():
    """Инициализация тестовой БД"""
    await Database.init_db()
    yield


# ============================================================================
# MOCK SCHEDULER
# ============================================================================


class MockScheduler:
    """Mock APScheduler для тестов"""

    def __init__(self):
        self.jobs: Dict[str, Dict[str, Any]] = {}
        self.job_history: List[Dict[str, Any]] = []

    def add_job(self, func, trigger, id=None, replace_existing=False, **trigger_args):
        """Мок add_job"""
        if id:
            if id in self.jobs and not replace_existing:
                raise Exception(f"Job {id} already exists")

            self.jobs[id] = {"func": func, "trigger": trigger, **trigger_args}
            self.job_history.append({"action": "add", "id": id})
        return Mock()

    def get_job(self, job_id: str):
        """Мок get_job"""
        return self.jobs.get(job_id)

    def shutdown(self, wait=True):
        """Мок shutdown"""
        self.jobs.clear()


@pytest.fixture
def mock_scheduler():
    """Фикстура mock scheduler"""
    return MockScheduler()


# ============================================================================
# MOCK BOT
# ============================================================================


class MockBot:
    """Mock Telegram Bot для тестов"""

    def __init__(self):
        self.sent_messages: List[Dict[str, Any]] = []
        self.session = Mock()
        self.session.close = AsyncMock()

    async def send_message(self, chat_id: int, text: str, reply_markup=None, **kwargs):
        """Мок send_message"""
        self.sent_messages.append(
            {"chat_id": chat_id, "text": text, "reply_markup": reply_markup, **kwargs}
        )
        return Mock()

    def clear_history(self):
        self.sent_messages.clear()


@pytest.fixture
def mock_bot():
    """Фикстура mock bot"""
    return MockBot()


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
async def booking_service(mock_scheduler):
    """Фикстура BookingService"""
    return BookingService(mock_scheduler)


@pytest.fixture
def notification_service(mock_bot):
    return NotificationService(mock_bot)


# ============================================================================
# HELPER FIXTURES
# ============================================================================


def at(day: date, hhmm: str) -> datetime:
    """Aware datetime салона для даты и 'HH:MM'"""
    hours, minutes = map(int, hhmm.split(":"))
    return localize_datetime(datetime.combine(day, time(hours, minutes)))


@pytest.fixture
def at_time():
    """Фикстура-хелпер: at_time(day, '10:00') -> aware datetime"""
    return at


@pytest.fixture
def next_monday() -> date:
    """Понедельник не раньше чем через неделю (всегда в будущем)"""
    today = now_local().date()
    return today + timedelta(days=7 + (7 - today.weekday()) % 7)


@pytest.fixture
def morning_now(next_monday) -> datetime:
    """'Сейчас' = 06:00 в день записи: все рабочие слоты ещё в будущем"""
    return at(next_monday, "06:00")


# ============================================================================
# DATABASE SEED FIXTURES
# ============================================================================


@pytest.fixture
async def salon(init_database) -> int:
    """Салон, открыт 09:00-18:00 с понедельника по субботу, воскресенье закрыт"""
    salon_id = await SalonRepository.create_salon(Salon(id=None, name="Test Salon"))
    for day_of_week in range(6):
        await SalonRepository.set_salon_hours(
            SalonHours(salon_id, day_of_week, time(9, 0), time(18, 0))
        )
    await SalonRepository.set_salon_hours(SalonHours(salon_id, 6, is_closed=True))
    return salon_id


@pytest.fixture
async def stylist(salon) -> int:
    """Мастер, работает 09:00-17:00 с понедельника по субботу"""
    stylist_id = await StylistRepository.create_stylist(
        Stylist(id=None, salon_id=salon, first_name="Anna", last_name="Martin")
    )
    for day_of_week in range(6):
        await StylistRepository.set_stylist_schedule(
            StylistSchedule(stylist_id, day_of_week, time(9, 0), time(17, 0))
        )
    return stylist_id


@pytest.fixture
async def create_service(salon):
    """Создание услуги салона"""

    async def _create(
        name: str = "Haircut",
        duration_minutes: int = 30,
        buffer_before: int = 0,
        buffer_after: int = 0,
        processing_time: int = 0,
        price: float = 25.0,
    ) -> int:
        return await ServiceRepository.create_service(
            Service(
                id=None,
                salon_id=salon,
                name=name,
                duration_minutes=duration_minutes,
                price=price,
                buffer_before=buffer_before,
                buffer_after=buffer_after,
                processing_time=processing_time,
            )
        )

    return _create


@pytest.fixture
async def haircut(create_service) -> int:
    """Услуга 30 минут без буферов"""
    return await create_service()


@pytest.fixture
async def client(init_database) -> int:
    """Тестовый клиент"""
    created = await ClientRepository.get_or_create(
        Client(id=None, first_name="Test", last_name="Client", telegram_id=12345)
    )
    return created.id


@pytest.fixture
def book(booking_service, salon, stylist, client, morning_now):
    """Запись клиента к тестовому мастеру"""

    async def _book(service_id: int, start: datetime, **kwargs):
        kwargs.setdefault("now", morning_now)
        return await booking_service.book_slot(
            salon_id=salon,
            client_id=client,
            stylist_id=stylist,
            service_id=service_id,
            external_start=start,
            **kwargs,
        )

    return _book


# ============================================================================
# MOCK AIOGRAM OBJECTS
# ============================================================================


@pytest.fixture
def mock_user():
    """Создание mock User"""

    def _create_user(user_id: int = 12345, first_name: str = "Test") -> User:
        user = Mock(spec=User)
        user.id = user_id
        user.username = "testuser"
        user.first_name = first_name
        user.last_name = None
        user.is_bot = False
        return user

    return _create_user


@pytest.fixture
def mock_message(mock_user):
    """Создание mock Message"""

    def _create_message(text: str = "/start", user_id: int = 12345) -> Message:
        message = Mock(spec=Message)
        message.text = text
        message.message_id = 1
        message.from_user = mock_user(user_id=user_id)
        message.answer = AsyncMock(return_value=Mock(spec=Message))
        message.edit_text = AsyncMock()
        return message

    return _create_message


@pytest.fixture
def mock_callback_query(mock_user, mock_message):
    """Создание mock CallbackQuery"""

    def _create_callback(data: str = "test", user_id: int = 12345) -> CallbackQuery:
        callback = Mock(spec=CallbackQuery)
        callback.id = "callback_id_123"
        callback.data = data
        callback.from_user = mock_user(user_id=user_id)
        callback.message = mock_message(text="Test message", user_id=user_id)
        callback.answer = AsyncMock()
        return callback

    return _create_callback


@pytest.fixture
async def mock_state():
    """Создание FSMContext на MemoryStorage"""
    state = FSMContext(
        storage=MemoryStorage(),
        key=StorageKey(bot_id=123456789, chat_id=12345, user_id=12345),
    )

    yield state

    await state.clear()
