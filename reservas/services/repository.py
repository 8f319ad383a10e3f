"""
Acesso a dados do motor de reservas.

O detector de conflitos, o cálculo de disponibilidade e o ciclo de vida
recebem um BookingRepository explícito em vez de abrir sessões por conta
própria, então podem ser testados com qualquer implementação.
"""
from datetime import date, datetime
from typing import List, Optional, Protocol

from sqlalchemy import update
from sqlmodel import Session, or_, select

from reservas.models.appointment import OCCUPYING_STATUSES, Appointment, AppointmentStatus
from reservas.models.blocked_date import BlockedDate
from reservas.models.business import Business
from reservas.models.business_hours import BusinessHours
from reservas.models.location import Location
from reservas.models.payment import Payment, PaymentStatus
from reservas.models.service import Service


class BookingRepository(Protocol):
    def get_service(self, service_id: int) -> Optional[Service]: ...

    def lock_service(self, service_id: int) -> Optional[Service]: ...

    def get_location(self, location_id: int) -> Optional[Location]: ...

    def get_business(self, business_id: int) -> Optional[Business]: ...

    def get_weekly_hours(self, location_id: int, weekday: int) -> Optional[BusinessHours]: ...

    def list_blocked_dates(self, location_id: int, day: date) -> List[BlockedDate]: ...

    def list_occupying_appointments(
        self,
        service_id: int,
        day: date,
        professional_id: Optional[int] = None,
        exclude_appointment_id: Optional[int] = None,
    ) -> List[Appointment]: ...

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]: ...

    def list_overdue_pending(self, now: datetime) -> List[Appointment]: ...

    def has_paid_payment(self, appointment_id: int) -> bool: ...

    def transition_status(
        self,
        appointment_id: int,
        expected: AppointmentStatus,
        new_status: AppointmentStatus,
        **values,
    ) -> bool: ...

    def add(self, obj) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def refresh(self, obj) -> None: ...


class SqlBookingRepository:
    """BookingRepository sobre uma Session do SQLModel."""

    def __init__(self, session: Session):
        self.session = session

    def get_service(self, service_id: int) -> Optional[Service]:
        return self.session.get(Service, service_id)

    def lock_service(self, service_id: int) -> Optional[Service]:
        # SELECT ... FOR UPDATE: serializa criação/remarcação por serviço até o commit
        if self.session.get_bind().dialect.name == "sqlite":
            self._begin_immediate()
        return self.session.exec(
            select(Service).where(Service.id == service_id).with_for_update()
        ).first()

    def _begin_immediate(self) -> None:
        """SQLite ignora FOR UPDATE e o pysqlite só abre transação na primeira escrita.

        BEGIN IMMEDIATE pega o lock de escrita do banco já na leitura do livro
        de reservas; a outra requisição espera até o commit/rollback desta.
        """
        connection = self.session.connection()
        if not connection.connection.driver_connection.in_transaction:
            connection.exec_driver_sql("BEGIN IMMEDIATE")

    def get_location(self, location_id: int) -> Optional[Location]:
        return self.session.get(Location, location_id)

    def get_business(self, business_id: int) -> Optional[Business]:
        return self.session.get(Business, business_id)

    def get_weekly_hours(self, location_id: int, weekday: int) -> Optional[BusinessHours]:
        return self.session.exec(
            select(BusinessHours).where(
                BusinessHours.location_id == location_id,
                BusinessHours.weekday == weekday,
            )
        ).first()

    def list_blocked_dates(self, location_id: int, day: date) -> List[BlockedDate]:
        """Bloqueios da data exata e todos os recorrentes do local."""
        return list(
            self.session.exec(
                select(BlockedDate)
                .where(
                    BlockedDate.location_id == location_id,
                    or_(BlockedDate.date == day, BlockedDate.is_recurring == True),  # noqa: E712
                )
                .order_by(BlockedDate.date)
            ).all()
        )

    def list_occupying_appointments(
        self,
        service_id: int,
        day: date,
        professional_id: Optional[int] = None,
        exclude_appointment_id: Optional[int] = None,
    ) -> List[Appointment]:
        statement = select(Appointment).where(
            Appointment.service_id == service_id,
            Appointment.appointment_date == day,
            Appointment.status.in_(list(OCCUPYING_STATUSES)),
        )
        if professional_id is not None:
            statement = statement.where(Appointment.professional_id == professional_id)
        if exclude_appointment_id is not None:
            statement = statement.where(Appointment.id != exclude_appointment_id)

        return list(self.session.exec(statement.order_by(Appointment.start_time)).all())

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        return self.session.get(Appointment, appointment_id)

    def list_overdue_pending(self, now: datetime) -> List[Appointment]:
        return list(
            self.session.exec(
                select(Appointment).where(
                    Appointment.status == AppointmentStatus.PENDING,
                    Appointment.approval_deadline != None,  # noqa: E711
                    Appointment.approval_deadline < now,
                )
            ).all()
        )

    def has_paid_payment(self, appointment_id: int) -> bool:
        paid = self.session.exec(
            select(Payment).where(
                Payment.appointment_id == appointment_id,
                Payment.status == PaymentStatus.PAID,
            )
        ).first()
        return paid is not None

    def transition_status(
        self,
        appointment_id: int,
        expected: AppointmentStatus,
        new_status: AppointmentStatus,
        **values,
    ) -> bool:
        """UPDATE condicional: só muda se o status ainda for o esperado.

        Retorna False quando outra requisição já processou o agendamento.
        """
        result = self.session.exec(
            update(Appointment)
            .where(Appointment.id == appointment_id, Appointment.status == expected)
            .values(status=new_status, **values)
        )
        return result.rowcount == 1

    def add(self, obj) -> None:
        self.session.add(obj)

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    def refresh(self, obj) -> None:
        self.session.refresh(obj)
