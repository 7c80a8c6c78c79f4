from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------- Events ----------
class EventCreate(CamelModel):
    name: str = Field(min_length=1)
    date: str = Field(min_length=1)
    thumbnail_url: str = Field(min_length=1)


class EventOut(CamelModel):
    id: int
    name: str
    date: str
    thumbnail_url: str
    created_at: Optional[datetime] = None


# ---------- Riders ----------
class RiderCreate(CamelModel):
    name: str = Field(min_length=1)
    event_id: int
    price: int = Field(default=80, ge=0)
    thumbnail_url: str = ""
    video_url: str = Field(min_length=1)


class RiderOut(CamelModel):
    id: int
    event_id: int
    name: str
    price: int
    thumbnail_url: str
    video_url: str
    created_at: Optional[datetime] = None


# ---------- Purchases ----------
class PurchaseCreate(CamelModel):
    email: str = Field(min_length=3)
    rider_id: int
    payment_method: str
    amount: int = Field(ge=0)


class PurchaseOut(CamelModel):
    id: int
    email: str
    rider_id: int
    payment_method: str
    amount: int
    created_at: Optional[datetime] = None


class CheckoutRequest(CamelModel):
    email: str
    rider_id: int
    payment_method: str
    quantity: int = 1


# ---------- CSV import ----------
class CsvImportRequest(CamelModel):
    csv: str


class ImportRowOut(CamelModel):
    name: str
    event_name: str
    event_id: Optional[int] = None
    price: float
    video_url: str
    thumbnail_url: str
    valid: bool
    error: str = ""


class ImportResultOut(CamelModel):
    success: int
    failed: int
    rows: List[ImportRowOut] = []


# ---------- Stats ----------
class SalesStat(CamelModel):
    event_id: int
    event_name: str
    sales_count: int
    revenue: int


# ---------- Auth ----------
class LoginRequest(CamelModel):
    username: str
    password: str


class UserOut(CamelModel):
    id: int
    username: str
