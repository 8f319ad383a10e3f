from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select

from reservas.core.security import (
    ensure_business_owner,
    get_current_business_owner,
    get_current_client,
    get_current_user,
)
from reservas.database import get_session
from reservas.models.appointment import (
    Appointment,
    AppointmentApprove,
    AppointmentCancel,
    AppointmentCreate,
    AppointmentReject,
    AppointmentRescheduleRequest,
)
from reservas.models.appointment_reschedule import AppointmentReschedule
from reservas.models.business import Business
from reservas.models.user import User
from reservas.services import lifecycle
from reservas.services.repository import SqlBookingRepository


router = APIRouter(prefix="/appointments", tags=["appointments"])


def _get_owned_appointment(session: Session, appointment_id: int, current_user: User) -> Appointment:
    """Agendamento visível para o usuário: cliente dono ou dono do negócio."""
    appt = session.get(Appointment, appointment_id)
    if not appt:
        raise HTTPException(status_code=404, detail="Agendamento não encontrado")

    if current_user.role == "client":
        if appt.user_id != current_user.id:
            raise HTTPException(status_code=403, detail="Sem permissão")
        return appt

    if current_user.role == "business":
        ensure_business_owner(session, appt.business_id, current_user)
        return appt

    raise HTTPException(status_code=403, detail="Sem permissão")


def _get_business_appointment(session: Session, appointment_id: int, current_owner: User) -> Appointment:
    appt = session.get(Appointment, appointment_id)
    if not appt:
        raise HTTPException(status_code=404, detail="Agendamento não encontrado")

    ensure_business_owner(session, appt.business_id, current_owner)
    return appt


# =========================
# CRIAR AGENDAMENTO (CLIENTE)
# =========================
@router.post("/", status_code=status.HTTP_201_CREATED)
def create_appointment(
    payload: AppointmentCreate,
    session: Session = Depends(get_session),
    current_client: User = Depends(get_current_client),
):
    return lifecycle.create_appointment(
        SqlBookingRepository(session),
        user_id=current_client.id,
        service_id=payload.service_id,
        day=payload.appointment_date,
        start_time=payload.start_time,
        professional_id=payload.professional_id,
        customer_notes=payload.customer_notes,
    )


# =========================
# LISTAR AGENDAMENTOS
# - cliente: só os próprios
# - negócio: os de todos os negócios dele
# =========================
@router.get("/")
def list_appointments(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if current_user.role == "client":
        return session.exec(
            select(Appointment)
            .where(Appointment.user_id == current_user.id)
            .order_by(Appointment.appointment_date.desc())
        ).all()

    if current_user.role == "business":
        return session.exec(
            select(Appointment)
            .join(Business, Business.id == Appointment.business_id)
            .where(Business.owner_id == current_user.id)
            .order_by(Appointment.appointment_date, Appointment.start_time)
        ).all()

    raise HTTPException(status_code=403, detail="Sem permissão")


@router.get("/{appointment_id}")
def get_appointment(
    appointment_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    appt = _get_owned_appointment(session, appointment_id, current_user)

    history = session.exec(
        select(AppointmentReschedule)
        .where(AppointmentReschedule.appointment_id == appt.id)
        .order_by(AppointmentReschedule.created_at.desc())
    ).all()

    return {"appointment": appt, "reschedule_history": history}


# =========================
# APROVAR / RECUSAR (NEGÓCIO)
# =========================
@router.patch("/{appointment_id}/approve")
def approve_appointment(
    appointment_id: int,
    payload: Optional[AppointmentApprove] = None,
    session: Session = Depends(get_session),
    current_owner: User = Depends(get_current_business_owner),
):
    _get_business_appointment(session, appointment_id, current_owner)
    appt = lifecycle.approve_appointment(
        SqlBookingRepository(session),
        appointment_id,
        internal_notes=payload.internal_notes if payload else None,
    )
    return {"appointment": appt}


@router.patch("/{appointment_id}/reject")
def reject_appointment(
    appointment_id: int,
    payload: AppointmentReject,
    session: Session = Depends(get_session),
    current_owner: User = Depends(get_current_business_owner),
):
    _get_business_appointment(session, appointment_id, current_owner)
    return lifecycle.reject_appointment(SqlBookingRepository(session), appointment_id, payload.reason)


# =========================
# CANCELAR
# - cliente: os próprios
# - negócio: os da agenda dele
# =========================
@router.patch("/{appointment_id}/cancel")
def cancel_appointment(
    appointment_id: int,
    payload: AppointmentCancel,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    _get_owned_appointment(session, appointment_id, current_user)
    outcome = lifecycle.cancel_appointment(
        SqlBookingRepository(session),
        appointment_id,
        payload.reason,
        cancelled_by=current_user.role,
    )
    return {
        "appointment": outcome.appointment,
        "refund": {
            "refund_percentage": outcome.refund_percentage,
            "refund_amount": outcome.refund_amount,
        },
    }


# =========================
# REMARCAR
# =========================
@router.patch("/{appointment_id}/reschedule")
def reschedule_appointment(
    appointment_id: int,
    payload: AppointmentRescheduleRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    _get_owned_appointment(session, appointment_id, current_user)
    return lifecycle.reschedule_appointment(
        SqlBookingRepository(session),
        appointment_id,
        payload.new_date,
        payload.new_start_time,
        initiated_by=current_user.id,
        reason=payload.reason,
    )


# =========================
# FINALIZAR / NÃO COMPARECEU (NEGÓCIO)
# =========================
@router.patch("/{appointment_id}/complete")
def complete_appointment(
    appointment_id: int,
    session: Session = Depends(get_session),
    current_owner: User = Depends(get_current_business_owner),
):
    _get_business_appointment(session, appointment_id, current_owner)
    return lifecycle.complete_appointment(SqlBookingRepository(session), appointment_id)


@router.patch("/{appointment_id}/no-show")
def mark_no_show(
    appointment_id: int,
    session: Session = Depends(get_session),
    current_owner: User = Depends(get_current_business_owner),
):
    _get_business_appointment(session, appointment_id, current_owner)
    return lifecycle.mark_no_show(SqlBookingRepository(session), appointment_id)
