"""Запуск бота салона: БД, сервисы, планировщик, polling"""

import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from config import BOT_TOKEN, DEFAULT_SALON_ID, TIMEZONE
from database.queries import Database
from database.repositories.salon_repository import SalonRepository
from handlers import admin_handlers, booking_handlers, user_handlers
from services.booking_service import BookingService
from services.notification_service import NotificationService

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


def build_dispatcher(bot: Bot, scheduler: AsyncIOScheduler) -> Dispatcher:
    """Dispatcher с сервисами в контексте и роутерами

    Админский роутер идёт первым: его FSM-ввод услуги не должен
    перехватываться клиентскими обработчиками текста.
    """
    dp = Dispatcher(storage=MemoryStorage())
    dp["booking_service"] = BookingService(scheduler)
    dp["notification_service"] = NotificationService(bot)

    dp.include_routers(
        admin_handlers.router,
        booking_handlers.router,
        user_handlers.router,
    )

    dp.startup.register(on_startup)
    dp.shutdown.register(on_shutdown)
    return dp


async def on_startup(booking_service: BookingService):
    await Database.init_db()
    if await SalonRepository.get_salon(DEFAULT_SALON_ID) is None:
        logging.warning(
            f"Salon {DEFAULT_SALON_ID} is not configured yet: "
            "send /admin in the bot or run `python migrate.py salon <name>`"
        )

    # Брони, зависшие pending пока бот был выключен
    booking_service.start_hold_cleanup()
    expired = await booking_service.expire_pending_holds()
    booking_service.scheduler.start()
    logging.info(f"🚀 Bot started, expired holds on startup: {len(expired)}")


async def on_shutdown(booking_service: BookingService):
    booking_service.scheduler.shutdown(wait=False)
    logging.info("Bot stopped")


async def main():
    bot = Bot(token=BOT_TOKEN)
    # Задача очистки не должна пересекаться сама с собой
    scheduler = AsyncIOScheduler(
        timezone=TIMEZONE, job_defaults={"coalesce": True, "max_instances": 1}
    )
    dp = build_dispatcher(bot, scheduler)

    try:
        await dp.start_polling(bot, skip_updates=True)
    finally:
        await bot.session.close()


if __name__ == "__main__":
    asyncio.run(main())
