"""
Cálculo dos horários disponíveis de um serviço em uma data.

Ordem das regras:
    1. data bloqueada -> fechado, sem slots
    2. sem horário para o dia da semana (ou fechado) -> fechado
    3. gera os slots a partir da abertura, de (duração + buffer) em (duração + buffer)
    4. cada slot: antecedência mínima, janela máxima e conflito com reservas
"""
from datetime import date, datetime
from typing import Iterator, List, Optional, Tuple

from sqlmodel import SQLModel

from reservas.core.exceptions import NotFoundError
from reservas.core.timeutils import at, format_hhmm, now_local, parse_hhmm, validate_duration
from reservas.models.business import Business
from reservas.models.location import Location
from reservas.models.service import Service
from reservas.services import schedule_store
from reservas.services.conflict_detector import find_conflicts
from reservas.services.repository import BookingRepository

CLOSED_THIS_DAY = "closed this day"
BLOCKED_DATE = "blocked date"
MIN_ADVANCE_NOT_MET = "minimum advance notice not met"
BEYOND_BOOKING_WINDOW = "beyond booking window"
SLOT_UNAVAILABLE = "slot unavailable"


class TimeSlot(SQLModel):
    time: str
    available: bool
    reason: Optional[str] = None


class AvailabilityResult(SQLModel):
    day: date
    is_closed: bool
    closed_reason: Optional[str] = None
    slots: List[TimeSlot] = []


def generate_time_slots(
    open_time: str,
    close_time: str,
    duration_minutes: int,
    buffer_minutes: int = 0,
) -> Iterator[str]:
    """Slots candidatos: o slot cabe se início + duração <= fechamento."""
    validate_duration(duration_minutes, buffer_minutes)
    current = parse_hhmm(open_time)
    close = parse_hhmm(close_time)
    step = duration_minutes + buffer_minutes

    while current + duration_minutes <= close:
        yield format_hhmm(current)
        current += step


def resolve_service_context(repo: BookingRepository, service_id: int) -> Tuple[Service, Location, Business]:
    service = repo.get_service(service_id)
    if not service:
        raise NotFoundError("Serviço não encontrado")

    location = repo.get_location(service.location_id)
    if not location:
        raise NotFoundError("Local não encontrado")

    business = repo.get_business(location.business_id)
    if not business:
        raise NotFoundError("Negócio não encontrado")

    return service, location, business


def booking_window_violation(
    service: Service,
    business: Business,
    day: date,
    start_time: str,
    now: datetime,
) -> Optional[str]:
    """Motivo pelo qual o horário não pode ser reservado agora, ou None."""
    hours_until = (at(day, start_time) - now).total_seconds() / 3600
    if hours_until < business.min_advance_hours:
        return MIN_ADVANCE_NOT_MET

    if (day - now.date()).days > service.max_advance_days:
        return BEYOND_BOOKING_WINDOW

    return None


def calculate_availability(
    repo: BookingRepository,
    service_id: int,
    day: date,
    professional_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> AvailabilityResult:
    service, location, business = resolve_service_context(repo, service_id)
    now = now or now_local()

    blocked = schedule_store.find_blocked_date(repo, location.id, day)
    if blocked:
        return AvailabilityResult(day=day, is_closed=True, closed_reason=blocked.reason or BLOCKED_DATE)

    hours = schedule_store.get_opening_hours(repo, location.id, day)
    if not hours:
        return AvailabilityResult(day=day, is_closed=True, closed_reason=CLOSED_THIS_DAY)

    # uma consulta ao livro de reservas para o dia inteiro
    booked = repo.list_occupying_appointments(service.id, day, professional_id=professional_id)

    slots: List[TimeSlot] = []
    for slot_time in generate_time_slots(
        hours.open_time, hours.close_time, service.duration_minutes, service.buffer_minutes
    ):
        violation = booking_window_violation(service, business, day, slot_time, now)
        if violation:
            slots.append(TimeSlot(time=slot_time, available=False, reason=violation))
            continue

        start = parse_hhmm(slot_time)
        if find_conflicts(booked, start, start + service.duration_minutes):
            slots.append(TimeSlot(time=slot_time, available=False, reason=SLOT_UNAVAILABLE))
        else:
            slots.append(TimeSlot(time=slot_time, available=True))

    return AvailabilityResult(day=day, is_closed=False, slots=slots)
