from enum import Enum
from typing import Optional
from datetime import date, datetime
from sqlmodel import SQLModel, Field

from reservas.core.timeutils import now_local
from reservas.models.payment import PaymentStatus


class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    PAYMENT_PENDING = "PAYMENT_PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"


# status que seguram o horário contra novas reservas
OCCUPYING_STATUSES = frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.PAYMENT_PENDING})

TERMINAL_STATUSES = frozenset(
    {
        AppointmentStatus.CANCELLED,
        AppointmentStatus.REJECTED,
        AppointmentStatus.EXPIRED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.NO_SHOW,
    }
)


class Appointment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: int = Field(foreign_key="user.id", index=True)
    business_id: int = Field(foreign_key="business.id", index=True)
    service_id: int = Field(foreign_key="service.id", index=True)
    professional_id: Optional[int] = Field(default=None, foreign_key="professional.id", index=True)

    appointment_date: date = Field(index=True)
    start_time: str  # HH:MM
    end_time: str  # HH:MM (início + duração do serviço)

    # STATUS DO AGENDAMENTO
    status: AppointmentStatus = Field(default=AppointmentStatus.PENDING, index=True)

    # STATUS DO PAGAMENTO
    payment_status: PaymentStatus = Field(default=PaymentStatus.PENDING, index=True)

    # SNAPSHOT FINANCEIRO
    service_price: float
    platform_fee: float
    total_amount: float
    deposit_amount: Optional[float] = None
    total_paid: float = 0

    customer_notes: Optional[str] = None
    internal_notes: Optional[str] = None

    # APROVAÇÃO
    approval_deadline: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    # CONFLITO (solicitação aceita mesmo colidindo com outra reserva)
    has_conflict: bool = False
    conflict_notes: Optional[str] = None

    cancelled_at: Optional[datetime] = Field(default=None, index=True)
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None

    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=now_local, index=True)
    updated_at: datetime = Field(default_factory=now_local)


class AppointmentCreate(SQLModel):
    service_id: int
    appointment_date: date
    start_time: str
    professional_id: Optional[int] = None
    customer_notes: Optional[str] = Field(default=None, max_length=500)


class AppointmentApprove(SQLModel):
    internal_notes: Optional[str] = None


class AppointmentReject(SQLModel):
    reason: str


class AppointmentCancel(SQLModel):
    reason: str


class AppointmentRescheduleRequest(SQLModel):
    new_date: date
    new_start_time: str
    reason: Optional[str] = Field(default=None, max_length=500)
