"""FSM состояния"""

from aiogram.fsm.state import State, StatesGroup


class BookingStates(StatesGroup):
    """Состояния процесса записи"""

    choosing_service = State()
    choosing_stylist = State()
    choosing_day = State()
    choosing_slot = State()
    confirming = State()


class AdminStates(StatesGroup):
    """Состояния для админ-панели"""

    awaiting_service_data = State()
