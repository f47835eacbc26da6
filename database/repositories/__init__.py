"""Репозитории для работы с базой данных"""

from database.repositories.appointment_repository import AppointmentRepository
from database.repositories.client_repository import ClientRepository
from database.repositories.salon_repository import SalonRepository
from database.repositories.service_repository import ServiceRepository
from database.repositories.stylist_repository import StylistRepository

__all__ = [
    "AppointmentRepository",
    "ClientRepository",
    "SalonRepository",
    "ServiceRepository",
    "StylistRepository",
]
