from typing import Optional
from datetime import date, datetime
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from reservas.core.timeutils import now_local


class BlockedDateBase(SQLModel):
    date: date
    reason: Optional[str] = Field(default=None, max_length=200)

    # bloqueia o mesmo dia/mês todos os anos (feriados)
    is_recurring: bool = False


class BlockedDate(BlockedDateBase, table=True):
    __table_args__ = (
        UniqueConstraint("location_id", "date", name="uq_blocked_date_location_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    location_id: int = Field(foreign_key="location.id", index=True)

    created_at: datetime = Field(default_factory=now_local)
