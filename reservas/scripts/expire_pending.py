"""Expira solicitações cujo prazo de aprovação passou (rodar via cron)."""
from sqlmodel import Session

from reservas.database import engine
from reservas.logging_config import setup_logging
from reservas.services.lifecycle import expire_overdue_requests
from reservas.services.repository import SqlBookingRepository


def main():
    setup_logging()
    with Session(engine) as session:
        expired = expire_overdue_requests(SqlBookingRepository(session))
    print(f"{expired} solicitação(ões) expirada(s)")


if __name__ == "__main__":
    main()
