from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from reservas.database import get_session
from reservas.services.availability import AvailabilityResult, calculate_availability
from reservas.services.conflict_detector import Conflict, detect_conflicts
from reservas.services.repository import SqlBookingRepository

router = APIRouter(prefix="/availability", tags=["availability"])


# =========================
# HORÁRIOS DO DIA (serviço + data)
# GET /availability?service_id=1&day=2026-02-14
# =========================
@router.get("/", response_model=AvailabilityResult)
def get_availability(
    service_id: int,
    day: date,
    professional_id: Optional[int] = None,
    session: Session = Depends(get_session),
):
    return calculate_availability(
        SqlBookingRepository(session), service_id, day, professional_id=professional_id
    )


@router.get("/conflicts", response_model=List[Conflict])
def get_conflicts(
    service_id: int,
    day: date,
    start_time: str,
    duration_minutes: int,
    professional_id: Optional[int] = None,
    exclude_appointment_id: Optional[int] = None,
    session: Session = Depends(get_session),
):
    return detect_conflicts(
        SqlBookingRepository(session),
        service_id,
        day,
        start_time,
        duration_minutes,
        professional_id=professional_id,
        exclude_appointment_id=exclude_appointment_id,
    )
