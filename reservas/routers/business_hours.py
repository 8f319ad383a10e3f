from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from reservas.core.exceptions import ValidationError
from reservas.core.security import ensure_location_owner, get_current_business_owner
from reservas.core.timeutils import parse_hhmm
from reservas.database import get_session
from reservas.models.business_hours import BusinessHours, BusinessHoursBase
from reservas.models.user import User

router = APIRouter(prefix="/business-hours", tags=["business-hours"])


@router.get("/{location_id}")
def list_business_hours(
    location_id: int,
    session: Session = Depends(get_session),
    current_owner: User = Depends(get_current_business_owner),
):
    ensure_location_owner(session, location_id, current_owner)
    return session.exec(
        select(BusinessHours)
        .where(BusinessHours.location_id == location_id)
        .order_by(BusinessHours.weekday)
    ).all()


@router.put("/{location_id}/{weekday}")
def upsert_business_hours(
    location_id: int,
    weekday: int,
    payload: BusinessHoursBase,
    session: Session = Depends(get_session),
    current_owner: User = Depends(get_current_business_owner),
):
    """
    weekday: 0=segunda ... 6=domingo
    """
    if weekday < 0 or weekday > 6:
        raise HTTPException(status_code=400, detail="weekday deve ser 0..6")

    # formato HH:MM sempre, mesmo com o dia fechado
    open_minutes = parse_hhmm(payload.open_time)
    close_minutes = parse_hhmm(payload.close_time)

    if not payload.is_closed and close_minutes < open_minutes:
        raise ValidationError("close_time não pode ser anterior a open_time")

    ensure_location_owner(session, location_id, current_owner)

    existing = session.exec(
        select(BusinessHours).where(
            BusinessHours.location_id == location_id,
            BusinessHours.weekday == weekday,
        )
    ).first()

    if existing:
        existing.is_closed = payload.is_closed
        existing.open_time = payload.open_time
        existing.close_time = payload.close_time
        session.add(existing)
        session.commit()
        session.refresh(existing)
        return existing

    new = BusinessHours(
        location_id=location_id,
        weekday=weekday,
        is_closed=payload.is_closed,
        open_time=payload.open_time,
        close_time=payload.close_time,
    )
    session.add(new)
    session.commit()
    session.refresh(new)
    return new
