from typing import Optional
from datetime import date, datetime
from sqlmodel import SQLModel, Field

from reservas.core.timeutils import now_local


class AppointmentReschedule(SQLModel, table=True):
    """Histórico imutável de remarcações (só inserção)."""

    id: Optional[int] = Field(default=None, primary_key=True)

    appointment_id: int = Field(foreign_key="appointment.id", index=True)

    old_date: date
    old_start_time: str
    new_date: date
    new_start_time: str

    reason: Optional[str] = None
    initiated_by: int = Field(foreign_key="user.id")

    created_at: datetime = Field(default_factory=now_local)
