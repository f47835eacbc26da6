"""Тесты обработчиков бота на mock-объектах aiogram"""

import pytest
from aiogram.filters import CommandObject

from config import DEFAULT_SALON_ID, DEFAULT_SALON_NAME
from database.models import AppointmentStatus, Salon, Stylist
from database.repositories import (
    AppointmentRepository,
    SalonRepository,
    ServiceRepository,
    StylistRepository,
)
from handlers import admin_handlers, booking_handlers, user_handlers
from keyboards.admin_keyboards import appointment_actions_keyboard
from utils.states import BookingStates


@pytest.fixture
def use_test_salon(monkeypatch, salon):
    """Обработчики работают с салоном из фикстуры"""
    monkeypatch.setattr(booking_handlers, "DEFAULT_SALON_ID", salon)
    monkeypatch.setattr(admin_handlers, "DEFAULT_SALON_ID", salon)
    return salon


class TestBookingFlow:
    """Финальный шаг записи"""

    @pytest.mark.asyncio
    async def test_book_confirm_creates_appointment(
        self,
        use_test_salon,
        stylist,
        haircut,
        client,
        next_monday,
        at_time,
        mock_state,
        mock_callback_query,
        booking_service,
        notification_service,
        mock_bot,
    ):
        start = at_time(next_monday, "10:00")
        await mock_state.set_state(BookingStates.confirming)
        await mock_state.update_data(
            service_id=haircut,
            stylist_id=stylist,
            day=next_monday.isoformat(),
            start=start.isoformat(),
        )
        callback = mock_callback_query(data="book_confirm")

        await booking_handlers.book_confirm(
            callback, mock_state, booking_service, notification_service
        )

        appointments = await AppointmentRepository.get_client_appointments(client)
        assert len(appointments) == 1
        assert appointments[0].service_start == start
        assert await mock_state.get_state() is None
        # Оба администратора получили уведомление
        assert {m["chat_id"] for m in mock_bot.sent_messages} == {12345, 67890}

    @pytest.mark.asyncio
    async def test_book_confirm_taken_slot_reoffers(
        self,
        use_test_salon,
        book,
        stylist,
        haircut,
        next_monday,
        at_time,
        mock_state,
        mock_callback_query,
        booking_service,
        notification_service,
        mock_bot,
    ):
        start = at_time(next_monday, "10:00")
        await book(haircut, start)
        await mock_state.update_data(
            service_id=haircut,
            stylist_id=stylist,
            day=next_monday.isoformat(),
            start=start.isoformat(),
        )
        callback = mock_callback_query(data="book_confirm")

        await booking_handlers.book_confirm(
            callback, mock_state, booking_service, notification_service
        )

        callback.answer.assert_awaited_once()
        assert callback.answer.await_args.kwargs.get("show_alert") is True
        text = callback.message.edit_text.await_args.args[0]
        assert "Не удалось записать" in text
        assert await mock_state.get_state() == BookingStates.choosing_slot.state
        assert mock_bot.sent_messages == []

    @pytest.mark.asyncio
    async def test_book_confirm_expired_session(
        self, init_database, mock_state, mock_callback_query, booking_service, notification_service
    ):
        callback = mock_callback_query(data="book_confirm")

        await booking_handlers.book_confirm(
            callback, mock_state, booking_service, notification_service
        )

        callback.answer.assert_awaited_once()
        callback.message.edit_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_select_slot_after_service_disabled(
        self, use_test_salon, stylist, haircut, next_monday, mock_state, mock_callback_query
    ):
        await mock_state.set_state(BookingStates.choosing_slot)
        await mock_state.update_data(service_id=haircut, stylist_id=stylist)
        await ServiceRepository.delete_service(haircut)
        callback = mock_callback_query(data=f"slot:{next_monday.isoformat()}T10:00")

        await booking_handlers.select_slot(callback, mock_state)

        callback.answer.assert_awaited_once_with(
            "⌛ Сессия устарела, начните заново", show_alert=True
        )
        callback.message.edit_text.assert_not_awaited()
        assert await mock_state.get_state() is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("handler", ["back_days", "back_slots"])
    async def test_back_buttons_with_lost_session(
        self, init_database, handler, mock_state, mock_callback_query
    ):
        callback = mock_callback_query(data=handler)

        await getattr(booking_handlers, handler)(callback, mock_state)

        callback.answer.assert_awaited_once_with(
            "⌛ Сессия устарела, начните заново", show_alert=True
        )
        callback.message.edit_text.assert_not_awaited()


class TestClientCancellation:
    """Отмена записи клиентом"""

    @pytest.mark.asyncio
    async def test_cancel_own_appointment(
        self,
        book,
        haircut,
        next_monday,
        at_time,
        mock_callback_query,
        booking_service,
        notification_service,
        mock_bot,
    ):
        appointment = await book(haircut, at_time(next_monday, "10:00"))
        callback = mock_callback_query(data=f"ucancel:{appointment.id}", user_id=12345)

        await user_handlers.cancel_own_appointment(callback, booking_service, notification_service)

        stored = await AppointmentRepository.get_appointment(appointment.id)
        assert stored.status == AppointmentStatus.CANCELLED
        assert len(mock_bot.sent_messages) == 2

    @pytest.mark.asyncio
    async def test_cannot_cancel_foreign_appointment(
        self,
        book,
        haircut,
        next_monday,
        at_time,
        mock_callback_query,
        booking_service,
        notification_service,
    ):
        appointment = await book(haircut, at_time(next_monday, "10:00"))
        callback = mock_callback_query(data=f"ucancel:{appointment.id}", user_id=99999)

        await user_handlers.cancel_own_appointment(callback, booking_service, notification_service)

        stored = await AppointmentRepository.get_appointment(appointment.id)
        assert stored.status == AppointmentStatus.PENDING
        callback.answer.assert_awaited_once_with("❌ Запись не найдена", show_alert=True)


class TestAdminActions:
    """Действия администратора из календаря"""

    @pytest.mark.asyncio
    async def test_confirm_notifies_client(
        self,
        book,
        haircut,
        next_monday,
        at_time,
        mock_callback_query,
        booking_service,
        notification_service,
        mock_bot,
    ):
        appointment = await book(haircut, at_time(next_monday, "10:00"))
        callback = mock_callback_query(data=f"adm:confirm:{appointment.id}", user_id=67890)

        await admin_handlers.appointment_action(callback, booking_service, notification_service)

        stored = await AppointmentRepository.get_appointment(appointment.id)
        assert stored.status == AppointmentStatus.CONFIRMED
        # Клиент из фикстуры имеет telegram_id=12345
        assert mock_bot.sent_messages[-1]["chat_id"] == 12345

    @pytest.mark.asyncio
    async def test_non_admin_rejected(
        self,
        book,
        haircut,
        next_monday,
        at_time,
        mock_callback_query,
        booking_service,
        notification_service,
    ):
        appointment = await book(haircut, at_time(next_monday, "10:00"))
        callback = mock_callback_query(data=f"adm:delete:{appointment.id}", user_id=11111)

        await admin_handlers.appointment_action(callback, booking_service, notification_service)

        assert await AppointmentRepository.get_appointment(appointment.id) is not None

    @pytest.mark.asyncio
    async def test_action_keyboard_follows_transitions(self, book, haircut, next_monday, at_time):
        appointment = await book(haircut, at_time(next_monday, "10:00"))

        row = appointment_actions_keyboard(appointment).inline_keyboard[0]
        actions = [button.callback_data.split(":")[1] for button in row]
        assert actions == ["confirm", "cancel", "delete"]


def command(args: str) -> CommandObject:
    return CommandObject(prefix="/", command="admin", args=args)


class TestSalonSetup:
    """Настройка салона администратором с пустой БД"""

    @pytest.mark.asyncio
    async def test_fresh_install_reaches_booking(self, init_database, mock_message, mock_state):
        await admin_handlers.admin_panel(mock_message("/admin"))
        salon = await SalonRepository.get_salon(DEFAULT_SALON_ID)
        assert salon.name == DEFAULT_SALON_NAME

        await admin_handlers.add_stylist(mock_message(), command("Anna Martin"))
        stylists = await StylistRepository.get_salon_stylists(DEFAULT_SALON_ID)
        assert [s.full_name for s in stylists] == ["Anna Martin"]
        stylist_id = stylists[0].id

        for day in range(7):
            await admin_handlers.set_hours(mock_message(), command(f"{day} 09:00-18:00"))
            reply = mock_message()
            await admin_handlers.set_stylist_hours(reply, command(f"{stylist_id} {day} 09:00-17:00"))
            assert reply.answer.await_args.args[0].startswith("✅ Anna Martin")

        await admin_handlers.add_service_finish(mock_message("Cut;30;25;0;0;0"), mock_state)

        client_message = mock_message("💇 Записаться", user_id=55555)
        await booking_handlers.booking_start(client_message, mock_state)

        assert DEFAULT_SALON_NAME in client_message.answer.await_args.args[0]
        assert await mock_state.get_state() == BookingStates.choosing_service.state

    @pytest.mark.asyncio
    async def test_rename_salon(self, init_database, mock_message):
        await admin_handlers.rename_salon(mock_message(), command("Studio Lumière"))
        assert (await SalonRepository.get_salon(DEFAULT_SALON_ID)).name == "Studio Lumière"

    @pytest.mark.asyncio
    async def test_non_admin_cannot_add_stylist(self, init_database, mock_message):
        message = mock_message(user_id=11111)
        await admin_handlers.add_stylist(message, command("Intruder"))

        assert await StylistRepository.get_salon_stylists(DEFAULT_SALON_ID) == []
        message.answer.assert_not_awaited()


class TestStylistAndServiceManagement:
    """Отключение мастеров, правка и отключение услуг"""

    @pytest.mark.asyncio
    async def test_deactivate_stylist(self, use_test_salon, stylist, mock_message):
        await admin_handlers.deactivate_stylist(mock_message(), command(str(stylist)))

        assert await StylistRepository.get_salon_stylists(use_test_salon) == []
        assert (await StylistRepository.get_stylist(stylist)).is_active is False

    @pytest.mark.asyncio
    async def test_foreign_stylist_not_found(self, use_test_salon, mock_message):
        other_salon = await SalonRepository.create_salon(Salon(id=None, name="Other"))
        foreign = await StylistRepository.create_stylist(
            Stylist(id=None, salon_id=other_salon, first_name="Marc", last_name="Petit")
        )
        message = mock_message()

        await admin_handlers.deactivate_stylist(message, command(str(foreign)))

        message.answer.assert_awaited_once_with("❌ Мастер не найден")
        assert (await StylistRepository.get_stylist(foreign)).is_active is True

    @pytest.mark.asyncio
    async def test_edit_service(self, use_test_salon, haircut, mock_message):
        await admin_handlers.edit_service(
            mock_message(), command(f"{haircut} Long cut;45;30;5;5;10")
        )

        service = await ServiceRepository.get_service_by_id(haircut)
        assert service.name == "Long cut"
        assert service.duration_minutes == 45
        assert service.price == 30.0
        assert service.occupied_minutes == 65

    @pytest.mark.asyncio
    async def test_edit_service_rejects_invalid_duration(
        self, use_test_salon, haircut, mock_message
    ):
        message = mock_message()

        await admin_handlers.edit_service(message, command(f"{haircut} Broken;0;30"))

        assert message.answer.await_args.args[0].startswith("❌ Формат")
        assert (await ServiceRepository.get_service_by_id(haircut)).duration_minutes == 30

    @pytest.mark.asyncio
    async def test_deactivate_service(self, use_test_salon, haircut, mock_message):
        await admin_handlers.deactivate_service(mock_message(), command(str(haircut)))

        assert await ServiceRepository.get_salon_services(use_test_salon) == []
