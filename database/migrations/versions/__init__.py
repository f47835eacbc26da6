"""Пакет для версий миграций"""

from database.migrations.versions.v001_initial_schema import InitialSchema
from database.migrations.versions.v002_add_appointment_details import (
    AddAppointmentDetails,
)

# Все миграции по порядку версий
MIGRATIONS = [InitialSchema, AddAppointmentDetails]

__all__ = ["InitialSchema", "AddAppointmentDetails", "MIGRATIONS"]
