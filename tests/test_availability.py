"""
Cálculo de disponibilidade: bloqueios, expediente, janela de reserva e
reservas existentes.
"""
from datetime import date, datetime, timedelta

import pytest

from conftest import MONDAY, NOW, SUNDAY
from reservas.core.exceptions import NotFoundError
from reservas.models.appointment import AppointmentStatus
from reservas.models.blocked_date import BlockedDate
from reservas.models.business_hours import BusinessHours
from reservas.models.service import Service
from reservas.services.availability import (
    BEYOND_BOOKING_WINDOW,
    BLOCKED_DATE,
    CLOSED_THIS_DAY,
    MIN_ADVANCE_NOT_MET,
    SLOT_UNAVAILABLE,
    calculate_availability,
)


def _by_time(result):
    return {slot.time: slot for slot in result.slots}


class TestOpenDay:
    def test_all_slots_available(self, repo, instant_service):
        result = calculate_availability(repo, instant_service.id, MONDAY, now=NOW)

        assert result.is_closed is False
        assert result.day == MONDAY
        assert [s.time for s in result.slots] == [f"{h:02d}:00" for h in range(9, 18)]
        assert all(s.available for s in result.slots)

    def test_booked_slot_is_unavailable(self, repo, instant_service, add_appointment):
        add_appointment(instant_service, "10:00", "11:00")

        slots = _by_time(calculate_availability(repo, instant_service.id, MONDAY, now=NOW))

        assert slots["10:00"].available is False
        assert slots["10:00"].reason == SLOT_UNAVAILABLE
        assert slots["09:00"].available is True
        assert slots["11:00"].available is True

    def test_pending_request_does_not_hold_the_slot(self, repo, instant_service, add_appointment):
        add_appointment(instant_service, "10:00", "11:00", status=AppointmentStatus.PENDING)

        slots = _by_time(calculate_availability(repo, instant_service.id, MONDAY, now=NOW))

        assert slots["10:00"].available is True

    def test_buffer_is_not_part_of_the_conflict(self, session, repo, location, add_appointment):
        service = Service(name="Corte", duration_minutes=30, buffer_minutes=15, price=50.0, location_id=location.id)
        session.add(service)
        session.commit()
        session.refresh(service)
        add_appointment(service, "09:00", "09:30")

        slots = _by_time(calculate_availability(repo, service.id, MONDAY, now=NOW))

        assert slots["09:00"].available is False
        assert slots["09:45"].available is True

    def test_professional_filter(self, repo, instant_service, add_appointment, professionals):
        ana, bruno = professionals
        add_appointment(instant_service, "10:00", "11:00", professional_id=ana.id)

        for_bruno = _by_time(calculate_availability(repo, instant_service.id, MONDAY, bruno.id, now=NOW))
        for_ana = _by_time(calculate_availability(repo, instant_service.id, MONDAY, ana.id, now=NOW))

        assert for_bruno["10:00"].available is True
        assert for_ana["10:00"].available is False

    def test_open_equal_close_is_open_without_slots(self, session, repo, instant_service, location):
        hours = repo.get_weekly_hours(location.id, MONDAY.weekday())
        hours.open_time = "09:00"
        hours.close_time = "09:00"
        session.add(hours)
        session.commit()

        result = calculate_availability(repo, instant_service.id, MONDAY, now=NOW)

        assert result.is_closed is False
        assert result.slots == []


class TestClosedDay:
    def test_weekly_closed_day(self, repo, instant_service):
        result = calculate_availability(repo, instant_service.id, SUNDAY, now=NOW)

        assert result.is_closed is True
        assert result.closed_reason == CLOSED_THIS_DAY
        assert result.slots == []

    def test_missing_weekly_hours_means_closed(self, session, repo, instant_service, location):
        session.delete(repo.get_weekly_hours(location.id, MONDAY.weekday()))
        session.commit()

        result = calculate_availability(repo, instant_service.id, MONDAY, now=NOW)

        assert result.is_closed is True
        assert result.closed_reason == CLOSED_THIS_DAY

    def test_blocked_date_uses_its_reason(self, session, repo, instant_service, location):
        session.add(BlockedDate(location_id=location.id, date=MONDAY, reason="Feriado"))
        session.commit()

        result = calculate_availability(repo, instant_service.id, MONDAY, now=NOW)

        assert result.is_closed is True
        assert result.closed_reason == "Feriado"
        assert result.slots == []

    def test_blocked_date_without_reason(self, session, repo, instant_service, location):
        session.add(BlockedDate(location_id=location.id, date=MONDAY))
        session.commit()

        result = calculate_availability(repo, instant_service.id, MONDAY, now=NOW)

        assert result.closed_reason == BLOCKED_DATE

    def test_blocked_date_wins_over_weekly_hours(self, session, repo, instant_service, location):
        session.add(BlockedDate(location_id=location.id, date=SUNDAY, reason="Inventário"))
        session.commit()

        result = calculate_availability(repo, instant_service.id, SUNDAY, now=NOW)

        assert result.closed_reason == "Inventário"

    def test_recurring_block_repeats_every_year(self, session, repo, instant_service, location):
        session.add(BlockedDate(location_id=location.id, date=date(2020, 6, 3), reason="Aniversário", is_recurring=True))
        session.commit()

        result = calculate_availability(repo, instant_service.id, MONDAY, now=NOW)

        assert result.is_closed is True
        assert result.closed_reason == "Aniversário"

    def test_one_off_block_does_not_repeat(self, session, repo, instant_service, location):
        session.add(BlockedDate(location_id=location.id, date=date(2020, 6, 3), reason="Obra"))
        session.commit()

        result = calculate_availability(repo, instant_service.id, MONDAY, now=NOW)

        assert result.is_closed is False

    def test_block_on_other_location_is_ignored(self, session, repo, instant_service, business):
        from reservas.models.location import Location

        other = Location(business_id=business.id, name="Norte", address="x", city="y", province="z")
        session.add(other)
        session.commit()
        session.add(BlockedDate(location_id=other.id, date=MONDAY))
        session.commit()

        assert calculate_availability(repo, instant_service.id, MONDAY, now=NOW).is_closed is False


class TestBookingWindow:
    def test_minimum_advance_notice(self, repo, instant_service):
        now = datetime(2030, 6, 3, 9, 30)

        slots = _by_time(calculate_availability(repo, instant_service.id, MONDAY, now=now))

        for early in ("09:00", "10:00", "11:00"):
            assert slots[early].available is False
            assert slots[early].reason == MIN_ADVANCE_NOT_MET
        assert slots["12:00"].available is True

    def test_exactly_min_advance_is_allowed(self, repo, instant_service):
        now = datetime(2030, 6, 3, 8, 0)

        slots = _by_time(calculate_availability(repo, instant_service.id, MONDAY, now=now))

        assert slots["10:00"].available is True
        assert slots["09:00"].reason == MIN_ADVANCE_NOT_MET

    def test_beyond_booking_window(self, repo, instant_service):
        day = NOW.date() + timedelta(days=31)

        result = calculate_availability(repo, instant_service.id, day, now=NOW)

        assert result.slots
        assert all(s.reason == BEYOND_BOOKING_WINDOW for s in result.slots)

    def test_last_day_of_window_is_bookable(self, repo, instant_service):
        day = NOW.date() + timedelta(days=30)

        result = calculate_availability(repo, instant_service.id, day, now=NOW)

        assert all(s.available for s in result.slots)


class TestErrors:
    def test_unknown_service(self, repo, location):
        with pytest.raises(NotFoundError):
            calculate_availability(repo, 999, MONDAY, now=NOW)

    def test_hours_row_is_unique_per_weekday(self, session, location):
        from sqlalchemy.exc import IntegrityError

        session.add(BusinessHours(location_id=location.id, weekday=0))
        with pytest.raises(IntegrityError):
            session.commit()
