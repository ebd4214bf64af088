from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional, Union

DateLike = Union[date, datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Profile:
    id: str
    identity_id: str
    username: str
    first_name: str
    last_name: str
    email: str
    profile_image: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass
class Property:
    id: str
    profile_id: str
    name: str
    tagline: str
    category: str
    country: str
    description: str
    price: float
    guests: int = 1
    bedrooms: int = 1
    beds: int = 1
    baths: int = 1
    amenities: list[str] = field(default_factory=list)
    image: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class Booking:
    id: str
    profile_id: str
    property_id: str
    check_in: date
    check_out: date
    total_nights: int
    order_total: float
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class Review:
    id: str
    profile_id: str
    property_id: str
    rating: int
    comment: str
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class DateRange:
    from_: Optional[DateLike] = None
    to: Optional[DateLike] = None


@dataclass(frozen=True)
class BlockedPeriod:
    from_: DateLike
    to: DateLike


@dataclass(frozen=True)
class PriceBreakdown:
    total_nights: int
    sub_total: float
    cleaning: float
    service: float
    tax: float
    order_total: float


@dataclass
class RateLimitRecord:
    count: int
    reset_time: int

    def increment(self) -> None:
        self.count += 1
