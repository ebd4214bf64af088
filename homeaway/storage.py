from __future__ import annotations

from datetime import date
from threading import RLock
from typing import Dict, Optional

from .availability import overlaps
from .models import Booking, Profile, Property, Review


class InMemoryStorage:
    """Thread-safe in-memory storage for profiles, properties, bookings and reviews."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._profiles: Dict[str, Profile] = {}
        self._properties: Dict[str, Property] = {}
        self._bookings: Dict[str, Booking] = {}
        self._reviews: Dict[str, Review] = {}
        self._identity_flags: Dict[str, dict[str, bool]] = {}

    @property
    def lock(self) -> RLock:
        return self._lock

    # Profiles

    def get_profile(self, profile_id: str) -> Optional[Profile]:
        with self._lock:
            return self._profiles.get(profile_id)

    def find_profile_by_identity(self, identity_id: str) -> Optional[Profile]:
        with self._lock:
            return next((p for p in self._profiles.values() if p.identity_id == identity_id), None)

    def find_profile_by_username(self, username: str) -> Optional[Profile]:
        with self._lock:
            return next((p for p in self._profiles.values() if p.username == username), None)

    def save_profile(self, profile: Profile) -> None:
        with self._lock:
            self._profiles[profile.id] = profile

    def list_profiles(self) -> list[Profile]:
        with self._lock:
            return list(self._profiles.values())

    # Identity metadata

    def get_identity_flags(self, identity_id: str) -> dict[str, bool]:
        with self._lock:
            return dict(self._identity_flags.get(identity_id, {}))

    def update_identity_flags(self, identity_id: str, **flags: bool) -> None:
        with self._lock:
            self._identity_flags.setdefault(identity_id, {}).update(flags)

    # Properties

    def get_property(self, property_id: str) -> Optional[Property]:
        with self._lock:
            return self._properties.get(property_id)

    def save_property(self, prop: Property) -> None:
        with self._lock:
            self._properties[prop.id] = prop

    def list_properties(self) -> list[Property]:
        with self._lock:
            return list(self._properties.values())

    def delete_property(self, property_id: str) -> None:
        with self._lock:
            self._properties.pop(property_id, None)
            for booking_id in [b.id for b in self._bookings.values() if b.property_id == property_id]:
                del self._bookings[booking_id]
            for review_id in [r.id for r in self._reviews.values() if r.property_id == property_id]:
                del self._reviews[review_id]

    # Bookings

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        with self._lock:
            return self._bookings.get(booking_id)

    def create_booking(self, booking: Booking) -> Booking:
        with self._lock:
            self._bookings[booking.id] = booking
            return booking

    def delete_booking(self, booking_id: str) -> None:
        with self._lock:
            self._bookings.pop(booking_id, None)

    def list_bookings(
        self,
        *,
        profile_id: Optional[str] = None,
        property_id: Optional[str] = None,
    ) -> list[Booking]:
        with self._lock:
            bookings = list(self._bookings.values())
        if profile_id is not None:
            bookings = [b for b in bookings if b.profile_id == profile_id]
        if property_id is not None:
            bookings = [b for b in bookings if b.property_id == property_id]
        return sorted(bookings, key=lambda b: b.check_in)

    def find_overlapping_bookings(self, property_id: str, check_in: date, check_out: date) -> list[Booking]:
        return [
            booking
            for booking in self.list_bookings(property_id=property_id)
            if overlaps(booking.check_in, booking.check_out, check_in, check_out)
        ]

    # Reviews

    def get_review(self, review_id: str) -> Optional[Review]:
        with self._lock:
            return self._reviews.get(review_id)

    def save_review(self, review: Review) -> None:
        with self._lock:
            self._reviews[review.id] = review

    def delete_review(self, review_id: str) -> None:
        with self._lock:
            self._reviews.pop(review_id, None)

    def list_reviews(
        self,
        *,
        profile_id: Optional[str] = None,
        property_id: Optional[str] = None,
    ) -> list[Review]:
        with self._lock:
            reviews = list(self._reviews.values())
        if profile_id is not None:
            reviews = [r for r in reviews if r.profile_id == profile_id]
        if property_id is not None:
            reviews = [r for r in reviews if r.property_id == property_id]
        return sorted(reviews, key=lambda r: r.created_at, reverse=True)
