from typing import Optional
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class BusinessHoursBase(SQLModel):
    is_closed: bool = False

    # "HH:MM" 24h
    open_time: str = "09:00"
    close_time: str = "18:00"


class BusinessHours(BusinessHoursBase, table=True):
    # no máximo um horário por dia da semana em cada local
    __table_args__ = (
        UniqueConstraint("location_id", "weekday", name="uq_business_hours_location_weekday"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    location_id: int = Field(foreign_key="location.id", index=True)

    # 0=segunda ... 6=domingo
    weekday: int = Field(index=True)
