from fastapi import APIRouter, Depends, status
from sqlmodel import Session, select

from reservas.core.security import ensure_location_owner, get_current_business_owner
from reservas.core.timeutils import validate_duration
from reservas.database import get_session
from reservas.models.location import Location
from reservas.models.business import Business
from reservas.models.service import Service, ServiceCreate
from reservas.models.user import User


router = APIRouter(
    prefix="/services",
    tags=["services"]
)


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_service(
    payload: ServiceCreate,
    session: Session = Depends(get_session),
    current_owner: User = Depends(get_current_business_owner),
):
    validate_duration(payload.duration_minutes, payload.buffer_minutes)
    ensure_location_owner(session, payload.location_id, current_owner)

    service = Service.model_validate(payload)

    session.add(service)
    session.commit()
    session.refresh(service)

    return service


@router.get("/")
def list_my_services(
    session: Session = Depends(get_session),
    current_owner: User = Depends(get_current_business_owner),
):
    services = session.exec(
        select(Service)
        .join(Location, Location.id == Service.location_id)
        .join(Business, Business.id == Location.business_id)
        .where(Business.owner_id == current_owner.id)
    ).all()

    return services
