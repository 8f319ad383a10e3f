from datetime import date

import pytest

from conftest import MONDAY
from reservas.core.exceptions import ValidationError
from reservas.models.appointment import AppointmentStatus
from reservas.services.conflict_detector import detect_conflicts, overlaps


class TestOverlaps:
    def test_touching_intervals_do_not_overlap(self):
        assert not overlaps(540, 600, 600, 660)
        assert not overlaps(600, 660, 540, 600)

    def test_one_minute_overlap(self):
        assert overlaps(540, 601, 600, 660)

    def test_containment(self):
        assert overlaps(540, 720, 600, 660)
        assert overlaps(600, 660, 540, 720)


class TestDetectConflicts:
    def test_no_bookings_no_conflicts(self, repo, instant_service):
        assert detect_conflicts(repo, instant_service.id, MONDAY, "10:00", 60) == []

    def test_back_to_back_is_free(self, repo, instant_service, add_appointment):
        add_appointment(instant_service, "10:00", "11:00")

        assert detect_conflicts(repo, instant_service.id, MONDAY, "09:00", 60) == []
        assert detect_conflicts(repo, instant_service.id, MONDAY, "11:00", 60) == []

    def test_partial_overlap_is_reported(self, repo, instant_service, add_appointment):
        existing = add_appointment(instant_service, "10:00", "11:00")

        conflicts = detect_conflicts(repo, instant_service.id, MONDAY, "10:59", 30)

        assert [c.appointment_id for c in conflicts] == [existing.id]
        assert conflicts[0].start_time == "10:00"
        assert conflicts[0].end_time == "11:00"
        assert conflicts[0].status == AppointmentStatus.CONFIRMED

    def test_payment_pending_holds_the_slot(self, repo, instant_service, add_appointment):
        add_appointment(instant_service, "10:00", "11:00", status=AppointmentStatus.PAYMENT_PENDING)

        assert len(detect_conflicts(repo, instant_service.id, MONDAY, "10:30", 60)) == 1

    @pytest.mark.parametrize(
        "status",
        [
            AppointmentStatus.PENDING,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.REJECTED,
            AppointmentStatus.EXPIRED,
            AppointmentStatus.COMPLETED,
            AppointmentStatus.NO_SHOW,
        ],
    )
    def test_non_occupying_statuses_are_ignored(self, repo, instant_service, add_appointment, status):
        add_appointment(instant_service, "10:00", "11:00", status=status)

        assert detect_conflicts(repo, instant_service.id, MONDAY, "10:00", 60) == []

    def test_other_days_and_services_are_ignored(self, repo, instant_service, approval_service, add_appointment):
        add_appointment(instant_service, "10:00", "11:00", day=date(2030, 6, 4))
        add_appointment(approval_service, "10:00", "11:00")

        assert detect_conflicts(repo, instant_service.id, MONDAY, "10:00", 60) == []

    def test_excluded_appointment_is_skipped(self, repo, instant_service, add_appointment):
        existing = add_appointment(instant_service, "10:00", "11:00")

        conflicts = detect_conflicts(
            repo, instant_service.id, MONDAY, "10:30", 60, exclude_appointment_id=existing.id
        )

        assert conflicts == []

    def test_professional_filter(self, repo, instant_service, add_appointment, professionals):
        ana, bruno = professionals
        add_appointment(instant_service, "10:00", "11:00", professional_id=ana.id)

        assert detect_conflicts(repo, instant_service.id, MONDAY, "10:00", 60, professional_id=bruno.id) == []
        assert len(detect_conflicts(repo, instant_service.id, MONDAY, "10:00", 60, professional_id=ana.id)) == 1
        # sem profissional: qualquer reserva do serviço conta
        assert len(detect_conflicts(repo, instant_service.id, MONDAY, "10:00", 60)) == 1

    def test_invalid_input(self, repo, instant_service):
        with pytest.raises(ValidationError):
            detect_conflicts(repo, instant_service.id, MONDAY, "25:00", 60)
        with pytest.raises(ValidationError):
            detect_conflicts(repo, instant_service.id, MONDAY, "10:00", 0)
