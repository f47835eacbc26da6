"""Сервис уведомлений администраторов салона"""

import logging

from aiogram import Bot

from config import ADMIN_IDS, STATUS_LABELS
from database.models import Appointment
from utils.datetime_utils import format_datetime


class NotificationService:
    """Сервис для отправки уведомлений через бота"""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def _send_to_admins(self, message_text: str):
        for admin_id in ADMIN_IDS:
            try:
                await self.bot.send_message(admin_id, message_text)
            except Exception as e:
                logging.error(f"Failed to notify admin {admin_id}: {e}")

    async def notify_admin_new_booking(self, appointment: Appointment):
        """Уведомление админам о новой записи"""
        await self._send_to_admins(
            "🔔 Новая запись\n\n"
            f"📅 {format_datetime(appointment.service_start)}\n"
            f"💇 {appointment.service_name or appointment.service_id}\n"
            f"✂️ {appointment.stylist_name or appointment.stylist_id}\n"
            f"👤 {appointment.client_name or appointment.client_id}\n"
            f"Статус: {STATUS_LABELS[appointment.status.value]}"
        )

    async def notify_admin_cancellation(self, appointment: Appointment):
        """Уведомление админам об отмене"""
        await self._send_to_admins(
            "❌ Отмена\n\n"
            f"📅 {format_datetime(appointment.service_start)}\n"
            f"✂️ {appointment.stylist_name or appointment.stylist_id}\n"
            f"ID записи: {appointment.id}"
        )

    async def notify_client_status(self, telegram_id: int, appointment: Appointment):
        """Сообщить клиенту об изменении статуса записи"""
        try:
            await self.bot.send_message(
                telegram_id,
                f"📋 Запись на {format_datetime(appointment.service_start)}\n"
                f"Статус: {STATUS_LABELS[appointment.status.value]}",
            )
        except Exception as e:
            logging.error(f"Failed to notify client {telegram_id}: {e}")
