"""Helpers para horários no formato HH:MM (24h)."""
import re
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from reservas.config import get_settings
from reservas.core.exceptions import ValidationError

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> int:
    """Converte "HH:MM" em minutos desde a meia-noite."""
    if not isinstance(value, str):
        raise ValidationError(f"Horário inválido: {value!r} (esperado HH:MM)")
    match = TIME_PATTERN.match(value)
    if not match:
        raise ValidationError(f"Horário inválido: {value!r} (esperado HH:MM)")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_hhmm(minutes: int) -> str:
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise ValidationError("Horário fora do dia")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def end_time_for(start_time: str, duration_minutes: int) -> str:
    """Horário de término de uma reserva; reservas não atravessam a meia-noite."""
    end = parse_hhmm(start_time) + duration_minutes
    # 24:00 não é HH:MM válido
    if end >= MINUTES_PER_DAY:
        raise ValidationError("A reserva precisa terminar antes da meia-noite")
    return format_hhmm(end)


def validate_duration(duration_minutes: int, buffer_minutes: int = 0) -> None:
    if duration_minutes is None or duration_minutes <= 0:
        raise ValidationError("duration_minutes deve ser maior que zero")
    if buffer_minutes is None or buffer_minutes < 0:
        raise ValidationError("buffer_minutes não pode ser negativo")


def at(day: date, hhmm: str) -> datetime:
    minutes = parse_hhmm(hhmm)
    return datetime.combine(day, time(minutes // 60, minutes % 60))


def now_local() -> datetime:
    """Agora, como horário de parede (naive) no fuso configurado."""
    tz = ZoneInfo(get_settings().TIMEZONE)
    return datetime.now(tz).replace(tzinfo=None)
