from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from reservas.core.security import create_access_token
from reservas.database import get_session
from reservas.main import app
from reservas.models.appointment import Appointment, AppointmentStatus
from reservas.models.appointment_reschedule import AppointmentReschedule  # noqa: F401
from reservas.models.blocked_date import BlockedDate  # noqa: F401
from reservas.models.business import Business
from reservas.models.business_hours import BusinessHours
from reservas.models.location import Location
from reservas.models.payment import Payment  # noqa: F401
from reservas.models.professional import Professional
from reservas.models.service import Service
from reservas.models.user import User
from reservas.services.repository import SqlBookingRepository

# sábado 01/06/2030 08:00; MONDAY é a segunda seguinte
NOW = datetime(2030, 6, 1, 8, 0)
MONDAY = date(2030, 6, 3)
SUNDAY = date(2030, 6, 9)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def repo(session):
    return SqlBookingRepository(session)


def _save(session, obj):
    session.add(obj)
    session.commit()
    session.refresh(obj)
    return obj


@pytest.fixture
def owner(session):
    return _save(session, User(name="Dona", email="dona@salao.com", role="business"))


@pytest.fixture
def client_user(session):
    return _save(session, User(name="Cliente", email="cliente@gmail.com", role="client"))


@pytest.fixture
def business(session, owner):
    return _save(
        session,
        Business(
            name="Salão Centro",
            slug="salao-centro",
            email="dona@salao.com",
            owner_id=owner.id,
            booking_approval_hours=2,
            min_advance_hours=2,
            cancellation_hours=24,
            refund_percentage=50,
        ),
    )


@pytest.fixture
def location(session, business):
    location = _save(
        session,
        Location(
            business_id=business.id,
            name="Centro",
            address="Av. Corrientes 1234",
            city="Buenos Aires",
            province="CABA",
        ),
    )
    # segunda a sábado 09-18, domingo fechado
    for weekday in range(7):
        session.add(
            BusinessHours(
                location_id=location.id,
                weekday=weekday,
                is_closed=weekday == 6,
                open_time="09:00",
                close_time="18:00",
            )
        )
    session.commit()
    return location


@pytest.fixture
def professionals(session, business):
    return [
        _save(session, Professional(business_id=business.id, first_name="Ana", last_name="Silva")),
        _save(session, Professional(business_id=business.id, first_name="Bruno", last_name="Costa")),
    ]


@pytest.fixture
def instant_service(session, location):
    """Serviço sem aprovação: a reserva já nasce CONFIRMED."""
    return _save(
        session,
        Service(
            name="Manicure",
            duration_minutes=60,
            price=100.0,
            requires_approval=False,
            location_id=location.id,
        ),
    )


@pytest.fixture
def approval_service(session, location):
    return _save(
        session,
        Service(
            name="Coloração",
            duration_minutes=60,
            price=200.0,
            requires_deposit=True,
            deposit_percentage=30,
            location_id=location.id,
        ),
    )


@pytest.fixture
def add_appointment(session, business, client_user):
    """Insere um agendamento direto no banco, sem passar pelas regras."""

    def _add(service, start_time, end_time, status=AppointmentStatus.CONFIRMED, day=MONDAY, professional_id=None):
        return _save(
            session,
            Appointment(
                user_id=client_user.id,
                business_id=business.id,
                service_id=service.id,
                professional_id=professional_id,
                appointment_date=day,
                start_time=start_time,
                end_time=end_time,
                status=status,
                service_price=service.price,
                platform_fee=0,
                total_amount=service.price,
            ),
        )

    return _add


@pytest.fixture
def api(session):
    def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def owner_headers(owner):
    return {"Authorization": f"Bearer {create_access_token({'sub': owner.email})}"}


@pytest.fixture
def client_headers(client_user):
    return {"Authorization": f"Bearer {create_access_token({'sub': client_user.email})}"}
