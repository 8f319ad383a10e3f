"""
Ciclo de vida dos agendamentos.

    PENDING          -> PAYMENT_PENDING (aprovação) | REJECTED | CANCELLED | EXPIRED
    PAYMENT_PENDING  -> CONFIRMED (pagamento) | CANCELLED
    CONFIRMED        -> COMPLETED | NO_SHOW | CANCELLED
    CANCELLED, REJECTED, EXPIRED, COMPLETED, NO_SHOW: finais

Toda mudança de status passa por um UPDATE condicional no status atual,
então duas requisições concorrentes não aplicam a mesma transição duas vezes.
Criação e remarcação travam a linha do serviço antes de checar conflitos.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, FrozenSet, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from reservas.config import get_settings
from reservas.core.exceptions import (
    AlreadyProcessedError,
    DeadlineExpiredError,
    InvalidTransitionError,
    NotFoundError,
    SlotUnavailableError,
    ValidationError,
)
from reservas.core.timeutils import at, end_time_for, now_local, parse_hhmm
from reservas.models.appointment import (
    OCCUPYING_STATUSES,
    TERMINAL_STATUSES,
    Appointment,
    AppointmentStatus,
)
from reservas.models.appointment_reschedule import AppointmentReschedule
from reservas.models.business import Business
from reservas.models.location import Location
from reservas.models.payment import Payment, PaymentStatus, PaymentType
from reservas.models.service import Service
from reservas.services import schedule_store
from reservas.services.availability import booking_window_violation, resolve_service_context
from reservas.services.conflict_detector import detect_conflicts
from reservas.services.notifications import (
    NotificationDispatcher,
    NotificationType,
    default_dispatcher,
    notify,
)
from reservas.services.repository import BookingRepository

logger = logging.getLogger(__name__)

PLATFORM_FEE_RATE = 0.01

# abaixo disso não há reembolso; acima, vale o refund_percentage do negócio
# (candidato a virar configuração por negócio)
PARTIAL_REFUND_MIN_HOURS = 4

REJECTION_REASON_MIN_LENGTH = 10
CANCELLATION_REASON_MIN_LENGTH = 5
REASON_MAX_LENGTH = 500

S = AppointmentStatus

ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    S.PENDING: frozenset({S.PAYMENT_PENDING, S.REJECTED, S.CANCELLED, S.EXPIRED}),
    S.PAYMENT_PENDING: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.COMPLETED, S.NO_SHOW, S.CANCELLED}),
    S.CANCELLED: frozenset(),
    S.REJECTED: frozenset(),
    S.EXPIRED: frozenset(),
    S.COMPLETED: frozenset(),
    S.NO_SHOW: frozenset(),
}


@dataclass
class CancellationOutcome:
    appointment: Appointment
    refund_percentage: int
    refund_amount: float


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def compute_pricing(service: Service) -> Tuple[float, float, Optional[float]]:
    """(platform_fee, total_amount, deposit_amount) de uma reserva do serviço."""
    platform_fee = round(service.price * PLATFORM_FEE_RATE, 2)
    total_amount = round(service.price + platform_fee, 2)

    deposit_amount = None
    if service.requires_deposit:
        if service.deposit_amount:
            deposit_amount = service.deposit_amount
        elif service.deposit_percentage:
            deposit_amount = round(service.price * service.deposit_percentage / 100, 2)

    return platform_fee, total_amount, deposit_amount


def refund_percentage_for(hours_until: float, business: Business) -> int:
    if hours_until >= business.cancellation_hours:
        return 100
    if hours_until >= PARTIAL_REFUND_MIN_HOURS:
        return business.refund_percentage
    return 0


def _clean_reason(reason: Optional[str], min_length: int) -> str:
    reason = (reason or "").strip()
    if len(reason) < min_length:
        raise ValidationError(f"O motivo deve ter pelo menos {min_length} caracteres")
    if len(reason) > REASON_MAX_LENGTH:
        raise ValidationError(f"O motivo deve ter no máximo {REASON_MAX_LENGTH} caracteres")
    return reason


def _get_appointment(repo: BookingRepository, appointment_id: int) -> Appointment:
    appt = repo.get_appointment(appointment_id)
    if not appt:
        raise NotFoundError("Agendamento não encontrado")
    return appt


def _duration(appt: Appointment) -> int:
    return parse_hhmm(appt.end_time) - parse_hhmm(appt.start_time)


def _validate_slot(
    repo: BookingRepository,
    service: Service,
    location: Location,
    business: Business,
    day: date,
    start_time: str,
    end_time: str,
    now: datetime,
) -> None:
    """O horário precisa estar dentro do expediente e da janela de antecedência."""
    if schedule_store.find_blocked_date(repo, location.id, day):
        raise ValidationError("Local fechado nessa data")

    hours = schedule_store.get_opening_hours(repo, location.id, day)
    if not hours:
        raise ValidationError("Local fechado nesse dia da semana")

    if parse_hhmm(start_time) < parse_hhmm(hours.open_time) or parse_hhmm(end_time) > parse_hhmm(hours.close_time):
        raise ValidationError("Fora do horário de funcionamento")

    violation = booking_window_violation(service, business, day, start_time, now)
    if violation:
        raise ValidationError(f"Horário fora da janela de reserva: {violation}")


def _commit(repo: BookingRepository) -> None:
    try:
        repo.commit()
    except IntegrityError:
        # restrição do banco violada por escrita concorrente
        repo.rollback()
        raise SlotUnavailableError("Horário indisponível")


def _transition(
    repo: BookingRepository,
    appt: Appointment,
    target: AppointmentStatus,
    now: datetime,
    **values,
) -> None:
    current = appt.status
    if not can_transition(current, target):
        raise InvalidTransitionError(f"Transição inválida: {current.value} -> {target.value}")

    if not repo.transition_status(appt.id, current, target, updated_at=now, **values):
        repo.rollback()
        raise AlreadyProcessedError("Este agendamento já foi processado")

    logger.info("Appointment %s: %s -> %s", appt.id, current.value, target.value)


# =========================
# CRIAR
# =========================
def create_appointment(
    repo: BookingRepository,
    user_id: int,
    service_id: int,
    day: date,
    start_time: str,
    professional_id: Optional[int] = None,
    customer_notes: Optional[str] = None,
    now: Optional[datetime] = None,
    reject_on_conflict: Optional[bool] = None,
    dispatcher: NotificationDispatcher = default_dispatcher,
) -> Appointment:
    parse_hhmm(start_time)
    now = now or now_local()
    if reject_on_conflict is None:
        reject_on_conflict = get_settings().REJECT_CONFLICTING_REQUESTS

    service, location, business = resolve_service_context(repo, service_id)
    if not service.active:
        raise ValidationError("Este serviço não está disponível")

    end_time = end_time_for(start_time, service.duration_minutes)
    _validate_slot(repo, service, location, business, day, start_time, end_time, now)

    repo.lock_service(service.id)
    conflicts = detect_conflicts(
        repo, service.id, day, start_time, service.duration_minutes, professional_id=professional_id
    )

    status = S.PENDING if service.requires_approval else S.CONFIRMED

    # Solicitação PENDING não ocupa o horário: passa com a marca de conflito
    # para o negócio decidir na aprovação. Reserva que já nasce ocupando, não.
    if conflicts and (status in OCCUPYING_STATUSES or reject_on_conflict):
        repo.rollback()
        raise SlotUnavailableError("Horário indisponível")

    platform_fee, total_amount, deposit_amount = compute_pricing(service)

    appt = Appointment(
        user_id=user_id,
        business_id=business.id,
        service_id=service.id,
        professional_id=professional_id,
        appointment_date=day,
        start_time=start_time,
        end_time=end_time,
        status=status,
        service_price=service.price,
        platform_fee=platform_fee,
        total_amount=total_amount,
        deposit_amount=deposit_amount,
        customer_notes=customer_notes,
        approval_deadline=now + timedelta(hours=business.booking_approval_hours),
        has_conflict=bool(conflicts),
        conflict_notes=f"Conflito detectado com {len(conflicts)} agendamento(s)" if conflicts else None,
        confirmed_at=now if status == S.CONFIRMED else None,
        created_at=now,
        updated_at=now,
    )
    repo.add(appt)
    _commit(repo)
    repo.refresh(appt)

    if conflicts:
        logger.warning(
            "Appointment %s created with %d conflict(s) on service %s %s %s",
            appt.id, len(conflicts), service.id, day, start_time,
        )
    logger.info("Appointment %s created as %s", appt.id, appt.status.value)

    event = NotificationType.APPOINTMENT_REQUEST if status == S.PENDING else NotificationType.APPOINTMENT_CONFIRMED
    notify(dispatcher, appt.id, event)
    return appt


# =========================
# APROVAR / RECUSAR (NEGÓCIO)
# =========================
def approve_appointment(
    repo: BookingRepository,
    appointment_id: int,
    internal_notes: Optional[str] = None,
    now: Optional[datetime] = None,
    dispatcher: NotificationDispatcher = default_dispatcher,
) -> Appointment:
    now = now or now_local()
    appt = _get_appointment(repo, appointment_id)

    if appt.status != S.PENDING:
        raise AlreadyProcessedError("Este agendamento já foi processado")

    if appt.approval_deadline and now > appt.approval_deadline:
        raise DeadlineExpiredError("O prazo de aprovação expirou")

    # aprovado, o agendamento passa a ocupar o horário
    repo.lock_service(appt.service_id)
    conflicts = detect_conflicts(
        repo,
        appt.service_id,
        appt.appointment_date,
        appt.start_time,
        _duration(appt),
        professional_id=appt.professional_id,
        exclude_appointment_id=appt.id,
    )
    if conflicts:
        repo.rollback()
        raise SlotUnavailableError("Horário indisponível")

    values = {"approved_at": now}
    if internal_notes is not None:
        values["internal_notes"] = internal_notes
    _transition(repo, appt, S.PAYMENT_PENDING, now, **values)
    repo.commit()
    repo.refresh(appt)

    notify(dispatcher, appt.id, NotificationType.APPOINTMENT_APPROVED)
    return appt


def reject_appointment(
    repo: BookingRepository,
    appointment_id: int,
    reason: str,
    now: Optional[datetime] = None,
    dispatcher: NotificationDispatcher = default_dispatcher,
) -> Appointment:
    reason = _clean_reason(reason, REJECTION_REASON_MIN_LENGTH)
    now = now or now_local()
    appt = _get_appointment(repo, appointment_id)

    if appt.status != S.PENDING:
        raise AlreadyProcessedError("Este agendamento já foi processado")

    _transition(repo, appt, S.REJECTED, now, rejected_at=now, rejection_reason=reason)
    repo.commit()
    repo.refresh(appt)

    notify(dispatcher, appt.id, NotificationType.APPOINTMENT_REJECTED)
    return appt


# =========================
# CANCELAR
# =========================
def cancel_appointment(
    repo: BookingRepository,
    appointment_id: int,
    reason: str,
    cancelled_by: str = "client",
    now: Optional[datetime] = None,
    dispatcher: NotificationDispatcher = default_dispatcher,
) -> CancellationOutcome:
    reason = _clean_reason(reason, CANCELLATION_REASON_MIN_LENGTH)
    now = now or now_local()
    appt = _get_appointment(repo, appointment_id)

    if appt.status == S.CANCELLED:
        raise AlreadyProcessedError("Este agendamento já foi cancelado")
    if appt.status in TERMINAL_STATUSES:
        raise InvalidTransitionError(f"Não é possível cancelar um agendamento {appt.status.value}")

    business = repo.get_business(appt.business_id)
    if not business:
        raise NotFoundError("Negócio não encontrado")

    hours_until = (at(appt.appointment_date, appt.start_time) - now).total_seconds() / 3600
    refund_percentage = refund_percentage_for(hours_until, business)

    refund_amount = 0.0
    if repo.has_paid_payment(appt.id):
        refund_amount = round(appt.total_paid * refund_percentage / 100, 2)

    _transition(
        repo,
        appt,
        S.CANCELLED,
        now,
        cancelled_at=now,
        cancellation_reason=reason,
        cancelled_by=cancelled_by,
    )
    repo.commit()
    repo.refresh(appt)

    notify(dispatcher, appt.id, NotificationType.APPOINTMENT_CANCELLED)
    return CancellationOutcome(
        appointment=appt,
        refund_percentage=refund_percentage,
        refund_amount=refund_amount,
    )


# =========================
# REMARCAR
# =========================
def reschedule_appointment(
    repo: BookingRepository,
    appointment_id: int,
    new_day: date,
    new_start_time: str,
    initiated_by: int,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
    dispatcher: NotificationDispatcher = default_dispatcher,
) -> Appointment:
    parse_hhmm(new_start_time)
    now = now or now_local()
    appt = _get_appointment(repo, appointment_id)

    if appt.status in TERMINAL_STATUSES:
        raise InvalidTransitionError(f"Não é possível remarcar um agendamento {appt.status.value}")

    service, location, business = resolve_service_context(repo, appt.service_id)
    new_end_time = end_time_for(new_start_time, service.duration_minutes)
    _validate_slot(repo, service, location, business, new_day, new_start_time, new_end_time, now)

    repo.lock_service(service.id)
    conflicts = detect_conflicts(
        repo,
        service.id,
        new_day,
        new_start_time,
        service.duration_minutes,
        professional_id=appt.professional_id,
        exclude_appointment_id=appt.id,
    )
    if conflicts:
        repo.rollback()
        raise SlotUnavailableError("O horário selecionado não está disponível")

    repo.add(
        AppointmentReschedule(
            appointment_id=appt.id,
            old_date=appt.appointment_date,
            old_start_time=appt.start_time,
            new_date=new_day,
            new_start_time=new_start_time,
            reason=reason,
            initiated_by=initiated_by,
            created_at=now,
        )
    )

    appt.appointment_date = new_day
    appt.start_time = new_start_time
    appt.end_time = new_end_time
    appt.updated_at = now
    repo.add(appt)
    _commit(repo)
    repo.refresh(appt)

    logger.info("Appointment %s rescheduled to %s %s", appt.id, new_day, new_start_time)
    notify(dispatcher, appt.id, NotificationType.APPOINTMENT_RESCHEDULED)
    return appt


# =========================
# PAGAMENTO (status vindo do gateway)
# =========================
def record_payment(
    repo: BookingRepository,
    appointment_id: int,
    status: PaymentStatus,
    amount: Optional[float] = None,
    external_id: Optional[str] = None,
    provider: str = "mercadopago",
    payment_type: Optional[PaymentType] = None,
    now: Optional[datetime] = None,
    dispatcher: NotificationDispatcher = default_dispatcher,
) -> Appointment:
    if payment_type == PaymentType.REFUND:
        raise ValidationError("Reembolsos saem do cancelamento, não do registro de pagamento")
    now = now or now_local()
    appt = _get_appointment(repo, appointment_id)

    if appt.status not in OCCUPYING_STATUSES:
        raise InvalidTransitionError("Este agendamento não aceita pagamento neste momento")

    if amount is None:
        amount = appt.total_amount
    if amount <= 0:
        raise ValidationError("O valor do pagamento deve ser positivo")

    if payment_type is None:
        # primeiro pagamento abaixo do total em serviço com sinal: é o sinal
        partial = appt.deposit_amount is not None and not appt.total_paid and amount < appt.total_amount
        payment_type = PaymentType.DEPOSIT if partial else PaymentType.FULL_PAYMENT

    repo.add(
        Payment(
            appointment_id=appt.id,
            provider=provider,
            external_id=external_id,
            amount=amount,
            platform_fee=appt.platform_fee,
            net_amount=round(amount - appt.platform_fee, 2),
            type=payment_type,
            status=status,
            created_at=now,
            paid_at=now if status == PaymentStatus.PAID else None,
        )
    )

    confirmed = False
    if status == PaymentStatus.PAID:
        total_paid = round(appt.total_paid + amount, 2)
        if appt.status == S.PAYMENT_PENDING:
            _transition(
                repo,
                appt,
                S.CONFIRMED,
                now,
                confirmed_at=now,
                payment_status=PaymentStatus.PAID,
                total_paid=total_paid,
            )
            confirmed = True
        else:
            appt.payment_status = PaymentStatus.PAID
            appt.total_paid = total_paid
            appt.updated_at = now
            repo.add(appt)
    else:
        appt.payment_status = status
        appt.updated_at = now
        repo.add(appt)

    repo.commit()
    repo.refresh(appt)

    if confirmed:
        notify(dispatcher, appt.id, NotificationType.PAYMENT_CONFIRMED)
    return appt


# =========================
# FINALIZAR / NÃO COMPARECEU
# =========================
def complete_appointment(repo: BookingRepository, appointment_id: int, now: Optional[datetime] = None) -> Appointment:
    now = now or now_local()
    appt = _get_appointment(repo, appointment_id)
    _transition(repo, appt, S.COMPLETED, now, completed_at=now)
    repo.commit()
    repo.refresh(appt)
    return appt


def mark_no_show(repo: BookingRepository, appointment_id: int, now: Optional[datetime] = None) -> Appointment:
    now = now or now_local()
    appt = _get_appointment(repo, appointment_id)
    _transition(repo, appt, S.NO_SHOW, now)
    repo.commit()
    repo.refresh(appt)
    return appt


def expire_overdue_requests(repo: BookingRepository, now: Optional[datetime] = None) -> int:
    """Expira solicitações PENDING cujo prazo de aprovação passou."""
    now = now or now_local()
    expired = 0
    for appt in repo.list_overdue_pending(now):
        if repo.transition_status(appt.id, S.PENDING, S.EXPIRED, updated_at=now):
            expired += 1
    repo.commit()
    if expired:
        logger.info("Expired %d pending appointment(s)", expired)
    return expired
