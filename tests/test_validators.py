"""Тесты валидации входных данных"""

from datetime import date, time, timedelta

import pytest

from database.models import BookingChannel
from services.exceptions import InvalidService, ValidationError
from utils.datetime_utils import format_iso
from utils.validators import (
    parse_datetime,
    parse_day,
    parse_hours_range,
    parse_int,
    validate_booking_payload,
    validate_service_payload,
)


class TestScalars:
    """Простые поля"""

    @pytest.mark.unit
    def test_parse_int(self):
        assert parse_int("42", "id") == 42
        assert parse_int(7, "id", minimum=1) == 7
        for bad in (True, "4.5", None, "abc"):
            with pytest.raises(ValidationError):
                parse_int(bad, "id")
        with pytest.raises(ValidationError) as exc_info:
            parse_int(0, "id", minimum=1)
        assert exc_info.value.field == "id"

    @pytest.mark.unit
    def test_parse_day(self):
        assert parse_day("2030-03-04") == date(2030, 3, 4)
        with pytest.raises(ValidationError):
            parse_day("04.03.2030")
        with pytest.raises(ValidationError):
            parse_day("2030-02-30")

    @pytest.mark.unit
    def test_parse_hours_range(self):
        assert parse_hours_range("09:00-18:00") == (time(9, 0), time(18, 0))
        assert parse_hours_range("9:30 - 12:00") == (time(9, 30), time(12, 0))
        with pytest.raises(ValidationError):
            parse_hours_range("18:00-09:00")
        with pytest.raises(ValidationError):
            parse_hours_range("closed")


class TestDatetimes:
    """ISO-8601 и временная зона салона"""

    @pytest.mark.unit
    def test_naive_value_uses_salon_zone(self):
        dt = parse_datetime("2030-03-04T10:00")
        assert dt.tzinfo is not None
        assert dt.utcoffset() == timedelta(hours=1)
        assert format_iso(dt) == "2030-03-04T10:00+01:00"

    @pytest.mark.unit
    def test_offset_is_honoured(self):
        dt = parse_datetime("2030-03-04T09:00+00:00")
        assert dt.strftime("%H:%M") == "10:00"

    @pytest.mark.unit
    def test_summer_time(self):
        assert parse_datetime("2030-07-01T10:00").utcoffset() == timedelta(hours=2)

    @pytest.mark.unit
    def test_garbage_rejected(self):
        with pytest.raises(ValidationError):
            parse_datetime("tomorrow at ten")
        with pytest.raises(ValidationError):
            parse_datetime(12345)


class TestServicePayload:
    """Форма услуги"""

    @pytest.mark.unit
    def test_valid_payload(self):
        service = validate_service_payload(
            {
                "salon_id": "1",
                "name": " Coloring ",
                "duration_minutes": "60",
                "price": "65.5",
                "buffer_before": "10",
                "buffer_after": 15,
            }
        )
        assert service.name == "Coloring"
        assert service.price == 65.5
        assert service.occupied_minutes == 85

    @pytest.mark.unit
    def test_missing_name(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_service_payload({"salon_id": 1, "duration_minutes": 30})
        assert exc_info.value.field == "name"

    @pytest.mark.unit
    def test_zero_duration(self):
        with pytest.raises(InvalidService):
            validate_service_payload({"salon_id": 1, "name": "X", "duration_minutes": 0})

    @pytest.mark.unit
    def test_negative_buffer(self):
        with pytest.raises(InvalidService):
            validate_service_payload(
                {"salon_id": 1, "name": "X", "duration_minutes": 30, "buffer_before": "-5"}
            )

    @pytest.mark.unit
    def test_negative_price(self):
        with pytest.raises(ValidationError):
            validate_service_payload(
                {"salon_id": 1, "name": "X", "duration_minutes": 30, "price": -1}
            )


class TestBookingPayload:
    """Форма записи"""

    BASE = {
        "salon_id": 1,
        "client_id": 2,
        "stylist_id": 3,
        "service_id": 4,
        "start_time": "2030-03-04T10:00",
    }

    @pytest.mark.unit
    def test_form_booking_defaults(self):
        request = validate_booking_payload(dict(self.BASE, end_time="2030-03-04T23:00"))

        assert request.channel == BookingChannel.FORM
        assert request.auto_confirm is False
        assert request.start.strftime("%H:%M") == "10:00"
        assert not hasattr(request, "end_time")

    @pytest.mark.unit
    def test_voice_booking_auto_confirms(self):
        request = validate_booking_payload(dict(self.BASE, channel="voice"))
        assert request.auto_confirm is True

    @pytest.mark.unit
    def test_unknown_channel(self):
        with pytest.raises(ValidationError):
            validate_booking_payload(dict(self.BASE, channel="fax"))

    @pytest.mark.unit
    def test_missing_start(self):
        payload = dict(self.BASE)
        del payload["start_time"]
        with pytest.raises(ValidationError):
            validate_booking_payload(payload)
