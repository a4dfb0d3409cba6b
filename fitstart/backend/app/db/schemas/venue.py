from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field
from ..models.venue import VenueCategory


class VenueBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    category: VenueCategory
    description: str = ""
    address: str = Field(min_length=1, max_length=512)
    phone: str | None = None
    open_time: str = Field(max_length=5)
    close_time: str = Field(max_length=5)
    open_days: str = "Monday - Sunday"
    hourly_rate: Decimal = Field(ge=0)
    currency: str = Field(default="INR", min_length=3, max_length=3)


class VenueCreate(VenueBase):
    pass


class VenueUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    category: VenueCategory | None = None
    description: str | None = None
    address: str | None = None
    phone: str | None = None
    open_time: str | None = Field(default=None, max_length=5)
    close_time: str | None = Field(default=None, max_length=5)
    open_days: str | None = None
    hourly_rate: Decimal | None = Field(default=None, ge=0)


class Venue(VenueBase):
    id: int
    owner_id: int | None = None
    is_active: bool
    is_verified: bool
    booking_count: int
    rating_average: float
    rating_count: int
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class VenuePage(BaseModel):
    success: bool = True
    count: int
    total: int
    page: int
    pages: int
    data: list[Venue]


class FavoriteToggle(BaseModel):
    success: bool = True
    is_favorite: bool
