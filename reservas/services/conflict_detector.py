"""
Detecção de conflitos entre um horário candidato e as reservas existentes.

Só agendamentos CONFIRMED e PAYMENT_PENDING seguram o horário. O intervalo
é semiaberto [início, fim): uma reserva que termina às 10:00 não conflita
com outra que começa às 10:00. O buffer do serviço não entra aqui, ele só
afeta a geração de slots.
"""
import logging
from datetime import date
from typing import Iterable, List, Optional

from sqlmodel import SQLModel

from reservas.core.timeutils import end_time_for, parse_hhmm, validate_duration
from reservas.models.appointment import Appointment, AppointmentStatus
from reservas.services.repository import BookingRepository

logger = logging.getLogger(__name__)


class Conflict(SQLModel):
    appointment_id: int
    start_time: str
    end_time: str
    status: AppointmentStatus


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """True se [a_start, a_end) sobrepõe [b_start, b_end)."""
    return a_start < b_end and a_end > b_start


def find_conflicts(appointments: Iterable[Appointment], start: int, end: int) -> List[Conflict]:
    """Filtra, de uma lista já carregada, as reservas que colidem com [start, end) (minutos)."""
    conflicts: List[Conflict] = []
    for appt in appointments:
        if overlaps(start, end, parse_hhmm(appt.start_time), parse_hhmm(appt.end_time)):
            conflicts.append(
                Conflict(
                    appointment_id=appt.id,
                    start_time=appt.start_time,
                    end_time=appt.end_time,
                    status=appt.status,
                )
            )
    return conflicts


def detect_conflicts(
    repo: BookingRepository,
    service_id: int,
    day: date,
    start_time: str,
    duration_minutes: int,
    professional_id: Optional[int] = None,
    exclude_appointment_id: Optional[int] = None,
) -> List[Conflict]:
    validate_duration(duration_minutes)
    start = parse_hhmm(start_time)
    end = parse_hhmm(end_time_for(start_time, duration_minutes))

    existing = repo.list_occupying_appointments(
        service_id,
        day,
        professional_id=professional_id,
        exclude_appointment_id=exclude_appointment_id,
    )
    conflicts = find_conflicts(existing, start, end)

    if conflicts:
        logger.debug(
            "Service %s on %s at %s collides with %s",
            service_id,
            day,
            start_time,
            [c.appointment_id for c in conflicts],
        )
    return conflicts
