"""
Contrato com o disparador de notificações (e-mail, in-app).

A entrega em si é externa; o motor só emite o evento. Falha no disparo
nunca desfaz a transição do agendamento.
"""
import logging
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)


class NotificationType(str, Enum):
    APPOINTMENT_REQUEST = "APPOINTMENT_REQUEST"
    APPOINTMENT_CONFIRMED = "APPOINTMENT_CONFIRMED"
    APPOINTMENT_APPROVED = "APPOINTMENT_APPROVED"
    APPOINTMENT_REJECTED = "APPOINTMENT_REJECTED"
    PAYMENT_CONFIRMED = "PAYMENT_CONFIRMED"
    APPOINTMENT_CANCELLED = "APPOINTMENT_CANCELLED"
    APPOINTMENT_RESCHEDULED = "APPOINTMENT_RESCHEDULED"


class NotificationDispatcher(Protocol):
    def dispatch(self, appointment_id: int, event: NotificationType) -> None: ...


class LoggingNotificationDispatcher:
    """Dispatcher padrão: só registra o evento no log."""

    def dispatch(self, appointment_id: int, event: NotificationType) -> None:
        logger.info("Notification %s queued for appointment %s", event.value, appointment_id)


default_dispatcher = LoggingNotificationDispatcher()


def notify(dispatcher: NotificationDispatcher, appointment_id: int, event: NotificationType) -> None:
    try:
        dispatcher.dispatch(appointment_id, event)
    except Exception:
        logger.exception("Failed to dispatch %s for appointment %s", event.value, appointment_id)
