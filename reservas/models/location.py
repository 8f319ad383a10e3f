from typing import Optional
from sqlmodel import SQLModel, Field


class Location(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    business_id: int = Field(foreign_key="business.id", index=True)

    name: str
    address: str
    city: str
    province: str
    postal_code: Optional[str] = None

    is_active: bool = True
