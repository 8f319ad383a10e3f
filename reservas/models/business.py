from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field

from reservas.core.timeutils import now_local


class Business(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    name: str
    slug: str = Field(index=True, unique=True)
    email: str

    owner_id: int = Field(foreign_key="user.id", index=True)

    # POLÍTICA DE RESERVAS
    booking_approval_hours: int = 2  # prazo para aprovar uma solicitação
    min_advance_hours: int = 2  # antecedência mínima para reservar
    cancellation_hours: int = 24  # cancelando com essa antecedência: reembolso total
    refund_percentage: int = 100  # reembolso parcial (0..100)

    created_at: datetime = Field(default_factory=now_local)
