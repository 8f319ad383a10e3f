from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlmodel import Session, select

from reservas.config import get_settings
from reservas.database import get_session
from reservas.models.business import Business
from reservas.models.location import Location
from reservas.models.user import User


# =========================
# TOKEN JWT
# (login e cadastro ficam no provedor de identidade; aqui só validamos o token)
# =========================

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    settings = get_settings()
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


# =========================
# USUÁRIO AUTENTICADO
# =========================

def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
) -> User:
    settings = get_settings()

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Não foi possível validar as credenciais",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        email: str = payload.get("sub")

        if email is None:
            raise credentials_exception

    except JWTError:
        raise credentials_exception

    user = session.exec(
        select(User).where(User.email == email)
    ).first()

    if user is None:
        raise credentials_exception

    return user


# =========================
# SOMENTE DONO DE NEGÓCIO
# =========================

def get_current_business_owner(
    current_user: User = Depends(get_current_user),
) -> User:

    if current_user.role != "business":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Apenas donos de negócio podem acessar esta rota"
        )

    return current_user


# =========================
# SOMENTE CLIENTE
# =========================

def get_current_client(
    current_user: User = Depends(get_current_user),
) -> User:

    if current_user.role != "client":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Apenas clientes podem acessar esta rota"
        )

    return current_user


def ensure_business_owner(session: Session, business_id: int, user: User) -> Business:
    business = session.get(Business, business_id)
    if not business:
        raise HTTPException(status_code=404, detail="Negócio não encontrado")

    if business.owner_id != user.id:
        raise HTTPException(status_code=403, detail="Sem permissão")

    return business


def ensure_location_owner(session: Session, location_id: int, user: User) -> Location:
    location = session.get(Location, location_id)
    if not location:
        raise HTTPException(status_code=404, detail="Local não encontrado")

    ensure_business_owner(session, location.business_id, user)
    return location
