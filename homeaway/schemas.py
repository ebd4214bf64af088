from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .models import BlockedPeriod, Booking, PriceBreakdown, Profile, Property, Review


class ProfileCreateRequest(BaseModel):
    username: str = Field(..., min_length=2, max_length=30)
    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    profile_image: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    username: Optional[str] = Field(default=None, min_length=2, max_length=30)
    first_name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    profile_image: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    username: str
    first_name: str
    last_name: str
    email: str
    profile_image: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, profile: Profile) -> "ProfileResponse":
        return cls(
            id=profile.id,
            username=profile.username,
            first_name=profile.first_name,
            last_name=profile.last_name,
            email=profile.email,
            profile_image=profile.profile_image,
            created_at=profile.created_at,
            updated_at=profile.updated_at,
        )


class PropertyCreateRequest(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    tagline: str = Field(..., min_length=1, max_length=100)
    category: str = Field(..., min_length=1)
    country: str = Field(..., min_length=2)
    description: str = Field(..., min_length=10, max_length=1000)
    price: float = Field(..., ge=1, le=10000)
    guests: int = Field(default=1, ge=1, le=20)
    bedrooms: int = Field(default=1, ge=0, le=10)
    beds: int = Field(default=1, ge=1, le=20)
    baths: int = Field(default=1, ge=0, le=10)
    amenities: List[str] = Field(default_factory=list)
    image: Optional[str] = None


class PropertyResponse(BaseModel):
    id: str
    profile_id: str
    name: str
    tagline: str
    category: str
    country: str
    description: str
    price: float
    guests: int
    bedrooms: int
    beds: int
    baths: int
    amenities: List[str]
    image: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, prop: Property) -> "PropertyResponse":
        return cls(
            id=prop.id,
            profile_id=prop.profile_id,
            name=prop.name,
            tagline=prop.tagline,
            category=prop.category,
            country=prop.country,
            description=prop.description,
            price=prop.price,
            guests=prop.guests,
            bedrooms=prop.bedrooms,
            beds=prop.beds,
            baths=prop.baths,
            amenities=list(prop.amenities),
            image=prop.image,
            created_at=prop.created_at,
        )


class PropertyDetailsResponse(PropertyResponse):
    rating: float = 0.0
    review_count: int = 0


class PropertyListQuery(BaseModel):
    search: Optional[str] = None
    category: Optional[str] = None


class BlockedPeriodResponse(BaseModel):
    from_: date = Field(serialization_alias="from")
    to: date

    @classmethod
    def from_domain(cls, period: BlockedPeriod) -> "BlockedPeriodResponse":
        return cls(from_=period.from_, to=period.to)


class CalendarResponse(BaseModel):
    property_id: str
    blocked_periods: List[BlockedPeriodResponse]
    disabled_dates: dict[str, bool]


class QuoteQuery(BaseModel):
    check_in: Optional[date] = None
    check_out: Optional[date] = None


class PriceBreakdownResponse(BaseModel):
    total_nights: int
    sub_total: float
    cleaning: float
    service: float
    tax: float
    order_total: float

    @classmethod
    def from_domain(cls, totals: PriceBreakdown) -> "PriceBreakdownResponse":
        return cls(
            total_nights=totals.total_nights,
            sub_total=totals.sub_total,
            cleaning=totals.cleaning,
            service=totals.service,
            tax=totals.tax,
            order_total=totals.order_total,
        )


class BookingCreateRequest(BaseModel):
    property_id: str = Field(..., min_length=1)
    check_in: date
    check_out: date


class BookingResponse(BaseModel):
    id: str
    profile_id: str
    property_id: str
    check_in: date
    check_out: date
    total_nights: int
    order_total: float
    created_at: datetime

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            profile_id=booking.profile_id,
            property_id=booking.property_id,
            check_in=booking.check_in,
            check_out=booking.check_out,
            total_nights=booking.total_nights,
            order_total=booking.order_total,
            created_at=booking.created_at,
        )


class ReviewCreateRequest(BaseModel):
    property_id: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=10, max_length=1000)


class ReviewResponse(BaseModel):
    id: str
    profile_id: str
    property_id: str
    rating: int
    comment: str
    created_at: datetime

    @classmethod
    def from_domain(cls, review: Review) -> "ReviewResponse":
        return cls(
            id=review.id,
            profile_id=review.profile_id,
            property_id=review.property_id,
            rating=review.rating,
            comment=review.comment,
            created_at=review.created_at,
        )


class AdminStatsResponse(BaseModel):
    users: int
    properties: int
    bookings: int


class ErrorDetail(BaseModel):
    code: str
    message: str
    field: Optional[str] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail
