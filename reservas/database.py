from sqlmodel import Session, SQLModel, create_engine

from reservas.config import get_settings

settings = get_settings()

# sqlite precisa liberar o uso da conexão fora da thread que a criou
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, echo=settings.DB_ECHO, connect_args=connect_args)


def create_db_and_tables():
    # registra todas as tabelas no metadata antes do create_all
    from reservas.models import (  # noqa: F401
        appointment,
        appointment_reschedule,
        blocked_date,
        business,
        business_hours,
        location,
        payment,
        professional,
        service,
        user,
    )

    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
