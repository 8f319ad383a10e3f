from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select

from reservas.core.security import ensure_location_owner, get_current_business_owner
from reservas.database import get_session
from reservas.models.blocked_date import BlockedDate, BlockedDateBase
from reservas.models.user import User

router = APIRouter(prefix="/blocked-dates", tags=["blocked-dates"])


@router.get("/{location_id}")
def list_blocked_dates(
    location_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    session: Session = Depends(get_session),
    current_owner: User = Depends(get_current_business_owner),
):
    ensure_location_owner(session, location_id, current_owner)

    statement = select(BlockedDate).where(BlockedDate.location_id == location_id)
    if start_date:
        statement = statement.where(BlockedDate.date >= start_date)
    if end_date:
        statement = statement.where(BlockedDate.date <= end_date)

    return session.exec(statement.order_by(BlockedDate.date)).all()


@router.post("/{location_id}", status_code=status.HTTP_201_CREATED)
def create_blocked_date(
    location_id: int,
    payload: BlockedDateBase,
    session: Session = Depends(get_session),
    current_owner: User = Depends(get_current_business_owner),
):
    ensure_location_owner(session, location_id, current_owner)

    existing = session.exec(
        select(BlockedDate).where(
            BlockedDate.location_id == location_id,
            BlockedDate.date == payload.date,
        )
    ).first()

    if existing:
        raise HTTPException(status_code=409, detail="Essa data já está bloqueada")

    block = BlockedDate(
        location_id=location_id,
        date=payload.date,
        reason=payload.reason,
        is_recurring=payload.is_recurring,
    )

    session.add(block)
    session.commit()
    session.refresh(block)
    return block


@router.delete("/entry/{block_id}")
def delete_blocked_date(
    block_id: int,
    session: Session = Depends(get_session),
    current_owner: User = Depends(get_current_business_owner),
):
    block = session.get(BlockedDate, block_id)
    if not block:
        raise HTTPException(status_code=404, detail="Bloqueio não encontrado")

    ensure_location_owner(session, block.location_id, current_owner)

    session.delete(block)
    session.commit()
    return {"message": "Bloqueio removido"}
