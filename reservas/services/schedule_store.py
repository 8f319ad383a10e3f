from datetime import date
from typing import Optional

from reservas.models.blocked_date import BlockedDate
from reservas.models.business_hours import BusinessHours
from reservas.services.repository import BookingRepository


def _matches(blocked: BlockedDate, day: date) -> bool:
    if blocked.date == day:
        return True
    # recorrente: mesmo dia e mês em qualquer ano
    return blocked.is_recurring and (blocked.date.month, blocked.date.day) == (day.month, day.day)


def find_blocked_date(repo: BookingRepository, location_id: int, day: date) -> Optional[BlockedDate]:
    for blocked in repo.list_blocked_dates(location_id, day):
        if _matches(blocked, day):
            return blocked
    return None


def get_opening_hours(repo: BookingRepository, location_id: int, day: date) -> Optional[BusinessHours]:
    """Horário do local para o dia da semana da data, ou None se fechado/sem configuração."""
    hours = repo.get_weekly_hours(location_id, day.weekday())
    if not hours or hours.is_closed:
        return None
    return hours
