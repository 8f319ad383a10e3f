from enum import Enum
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field

from reservas.core.timeutils import now_local


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"


class PaymentType(str, Enum):
    DEPOSIT = "DEPOSIT"
    FULL_PAYMENT = "FULL_PAYMENT"
    REFUND = "REFUND"
    CASH = "CASH"


class Payment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    appointment_id: int = Field(foreign_key="appointment.id", index=True)

    provider: str  # mercadopago | manual
    external_id: Optional[str] = None  # id do pagamento no gateway

    amount: float
    platform_fee: float = 0
    net_amount: float = 0

    type: PaymentType = PaymentType.FULL_PAYMENT
    status: PaymentStatus = Field(default=PaymentStatus.PENDING, index=True)

    created_at: datetime = Field(default_factory=now_local)
    paid_at: Optional[datetime] = None


class PaymentStatusUpdate(SQLModel):
    status: PaymentStatus
    amount: Optional[float] = None
    type: Optional[PaymentType] = None  # padrão: DEPOSIT se for o sinal, senão FULL_PAYMENT
    external_id: Optional[str] = None
    provider: str = "mercadopago"
