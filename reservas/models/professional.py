from typing import Optional
from sqlmodel import SQLModel, Field


class Professional(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    business_id: int = Field(foreign_key="business.id", index=True)

    first_name: str
    last_name: str

    is_active: bool = True
