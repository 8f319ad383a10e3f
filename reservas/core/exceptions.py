"""
Erros de domínio do motor de reservas.

Os routers não conhecem essas classes: o handler registrado em main.py
traduz cada família para um status HTTP.
"""


class BookingError(Exception):
    """Base de todos os erros do motor de reservas."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    """Entrada malformada ou fora das regras do negócio (400)."""


class NotFoundError(BookingError):
    """Serviço, local, negócio ou agendamento inexistente (404)."""


class StateConflictError(BookingError):
    """O estado atual impede a operação; o chamador pode tentar com outra entrada (409)."""


class AlreadyProcessedError(StateConflictError):
    pass


class SlotUnavailableError(StateConflictError):
    pass


class DeadlineExpiredError(StateConflictError):
    pass


class InvalidTransitionError(StateConflictError):
    pass
