from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as date_parser
from pydantic import BaseModel, Field, constr, field_validator


class UserCreate(BaseModel):
    email: constr(strip_whitespace=True, to_lower=True, min_length=3, max_length=254)
    name: constr(strip_whitespace=True, max_length=100) = ""
    password: constr(min_length=6)


class UserLogin(BaseModel):
    email: constr(strip_whitespace=True, to_lower=True)
    password: str


class UserOut(BaseModel):
    id: str
    email: str
    name: str

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class ProjectCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=120)
    budget: float = Field(..., ge=0, allow_inf_nan=False)


class ProjectOut(BaseModel):
    id: str
    name: str
    budget: Optional[float] = None
    notified_over_budget: bool
    last_over_budget_notified_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MemberInvite(BaseModel):
    email: constr(strip_whitespace=True, to_lower=True, min_length=3)


class ExpenseCreate(BaseModel):
    amount: float = Field(..., ge=0, allow_inf_nan=False)
    category: Optional[str] = None
    description: Optional[str] = None
    date: Optional[datetime] = None

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, value):
        # the front end posts bare "YYYY-MM-DD" dates
        if isinstance(value, str):
            if not value.strip():
                return None
            value = date_parser.isoparse(value)
        if isinstance(value, datetime) and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class ExpenseOut(BaseModel):
    id: str
    project_id: str
    amount: float
    category: str
    description: str
    date: datetime

    class Config:
        from_attributes = True


class ExpenseTotal(BaseModel):
    total: float


class CategoryTotal(BaseModel):
    category: str
    total: float
