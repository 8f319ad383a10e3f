from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from reservas.core.security import ensure_business_owner, get_current_business_owner, get_current_user
from reservas.database import get_session
from reservas.models.appointment import Appointment
from reservas.models.payment import Payment, PaymentStatusUpdate
from reservas.models.user import User
from reservas.services import lifecycle
from reservas.services.repository import SqlBookingRepository


router = APIRouter(prefix="/payments", tags=["payments"])


# =========================
# STATUS DE PAGAMENTO (vindo do gateway)
# PAID em PAYMENT_PENDING confirma o agendamento
# =========================
@router.post("/{appointment_id}/status")
def update_payment_status(
    appointment_id: int,
    payload: PaymentStatusUpdate,
    session: Session = Depends(get_session),
    current_owner: User = Depends(get_current_business_owner),
):
    appt = session.get(Appointment, appointment_id)
    if not appt:
        raise HTTPException(status_code=404, detail="Agendamento não encontrado")

    ensure_business_owner(session, appt.business_id, current_owner)

    return lifecycle.record_payment(
        SqlBookingRepository(session),
        appointment_id,
        payload.status,
        amount=payload.amount,
        external_id=payload.external_id,
        provider=payload.provider,
        payment_type=payload.type,
    )


@router.get("/{appointment_id}")
def get_payment_status(
    appointment_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    appt = session.get(Appointment, appointment_id)
    if not appt:
        raise HTTPException(status_code=404, detail="Agendamento não encontrado")

    if current_user.role == "client":
        if appt.user_id != current_user.id:
            raise HTTPException(status_code=403, detail="Sem permissão")
    else:
        ensure_business_owner(session, appt.business_id, current_user)

    payments = session.exec(
        select(Payment)
        .where(Payment.appointment_id == appointment_id)
        .order_by(Payment.created_at.desc())
    ).all()

    return {
        "appointment_status": appt.status,
        "payment_status": appt.payment_status,
        "total_amount": appt.total_amount,
        "total_paid": appt.total_paid,
        "payments": payments,
    }
