from typing import Optional
from sqlmodel import SQLModel, Field


class ServiceBase(SQLModel):
    name: str
    description: Optional[str] = None

    duration_minutes: int
    buffer_minutes: int = 0  # intervalo livre depois de cada reserva

    price: float

    requires_deposit: bool = False
    deposit_amount: Optional[float] = None
    deposit_percentage: Optional[int] = None

    requires_approval: bool = True
    max_advance_days: int = 30

    active: bool = True


class Service(ServiceBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    location_id: int = Field(foreign_key="location.id", index=True)


class ServiceCreate(ServiceBase):
    location_id: int
