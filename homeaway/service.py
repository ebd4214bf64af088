from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Callable, Optional
from uuid import uuid4

from .availability import (
    ensure_available,
    generate_blocked_periods,
    generate_disabled_dates,
    utc_today,
    validate_date_range,
)
from .errors import PROFILE_REQUIRED, AuthorizationError, ConflictError, NotFoundError, ValidationError
from .identity import Identity
from .models import BlockedPeriod, Booking, PriceBreakdown, Profile, Property, Review
from .pricing import calculate_totals
from .storage import InMemoryStorage

logger = logging.getLogger(__name__)


def _generate_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"


def require_profile(identity: Identity) -> Identity:
    if not identity.has_profile:
        raise AuthorizationError(PROFILE_REQUIRED)
    return identity


class ProfileService:
    def __init__(self, storage: InMemoryStorage) -> None:
        self._storage = storage

    def create_profile(
        self,
        identity: Identity,
        *,
        username: str,
        first_name: str,
        last_name: str,
        profile_image: Optional[str] = None,
    ) -> Profile:
        with self._storage.lock:
            if self._storage.find_profile_by_identity(identity.id):
                raise ConflictError("profile already exists")
            if self._storage.find_profile_by_username(username):
                raise ConflictError("username is already taken", field="username")

            profile = Profile(
                id=_generate_id("profile"),
                identity_id=identity.id,
                username=username,
                first_name=first_name,
                last_name=last_name,
                email=identity.email_address,
                profile_image=profile_image,
            )
            self._storage.save_profile(profile)
            self._storage.update_identity_flags(identity.id, has_profile=True)

        logger.info("Profile created", extra={"profile_id": profile.id, "identity_id": identity.id})
        return profile

    def get_profile(self, identity: Identity) -> Profile:
        profile = self._storage.find_profile_by_identity(identity.id)
        if not profile:
            raise NotFoundError("profile not found")
        return profile

    def update_profile(
        self,
        identity: Identity,
        *,
        username: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        profile_image: Optional[str] = None,
    ) -> Profile:
        with self._storage.lock:
            profile = self.get_profile(identity)
            if username is not None and username != profile.username:
                if self._storage.find_profile_by_username(username):
                    raise ConflictError("username is already taken", field="username")
                profile.username = username
            if first_name is not None:
                profile.first_name = first_name
            if last_name is not None:
                profile.last_name = last_name
            if profile_image is not None:
                profile.profile_image = profile_image
            profile.updated_at = datetime.now(timezone.utc)
            self._storage.save_profile(profile)
        return profile


class PropertyService:
    def __init__(self, storage: InMemoryStorage) -> None:
        self._storage = storage

    def create_property(self, identity: Identity, **fields) -> Property:
        require_profile(identity)
        prop = Property(id=_generate_id("property"), profile_id=identity.id, **fields)
        self._storage.save_property(prop)
        logger.info("Property created", extra={"property_id": prop.id, "profile_id": identity.id})
        return prop

    def get_property(self, property_id: str) -> Property:
        prop = self._storage.get_property(property_id)
        if not prop:
            raise NotFoundError("property not found")
        return prop

    def search_properties(self, *, search: Optional[str] = None, category: Optional[str] = None) -> list[Property]:
        needle = (search or "").strip().lower()
        results = []
        for prop in self._storage.list_properties():
            if category and prop.category != category:
                continue
            if needle and needle not in prop.name.lower() and needle not in prop.tagline.lower():
                continue
            results.append(prop)
        return sorted(results, key=lambda p: p.created_at, reverse=True)

    def list_rentals(self, identity: Identity) -> list[Property]:
        return [p for p in self._storage.list_properties() if p.profile_id == identity.id]

    def delete_property(self, identity: Identity, property_id: str) -> None:
        with self._storage.lock:
            prop = self._storage.get_property(property_id)
            if not prop or prop.profile_id != identity.id:
                raise NotFoundError("property not found")
            self._storage.delete_property(property_id)
        logger.info("Property deleted", extra={"property_id": property_id, "profile_id": identity.id})

    def rating(self, property_id: str) -> tuple[float, int]:
        reviews = self._storage.list_reviews(property_id=property_id)
        if not reviews:
            return 0.0, 0
        return round(sum(r.rating for r in reviews) / len(reviews), 1), len(reviews)

    def stats(self) -> dict[str, int]:
        return {
            "users": len(self._storage.list_profiles()),
            "properties": len(self._storage.list_properties()),
            "bookings": len(self._storage.list_bookings()),
        }


class BookingService:
    def __init__(self, storage: InMemoryStorage, today: Callable[[], date] = utc_today) -> None:
        self._storage = storage
        self._today = today

    def create_booking(
        self,
        identity: Identity,
        *,
        property_id: str,
        check_in: date,
        check_out: date,
    ) -> Booking:
        require_profile(identity)
        with self._storage.lock:
            prop = self._storage.get_property(property_id)
            if not prop:
                raise NotFoundError("property not found")
            if check_in < self._today():
                raise ValidationError("check-in date cannot be in the past", field="check_in")

            ensure_available(
                self._storage.find_overlapping_bookings(property_id, check_in, check_out),
                check_in,
                check_out,
            )

            totals = calculate_totals(check_in=check_in, check_out=check_out, price=prop.price)
            booking = self._storage.create_booking(
                Booking(
                    id=_generate_id("booking"),
                    profile_id=identity.id,
                    property_id=property_id,
                    check_in=check_in,
                    check_out=check_out,
                    total_nights=totals.total_nights,
                    order_total=totals.order_total,
                )
            )

        logger.info(
            "Booking created",
            extra={"booking_id": booking.id, "property_id": property_id, "profile_id": identity.id},
        )
        return booking

    def list_bookings(self, identity: Identity) -> list[Booking]:
        return self._storage.list_bookings(profile_id=identity.id)

    def cancel_booking(self, identity: Identity, booking_id: str) -> None:
        with self._storage.lock:
            booking = self._storage.get_booking(booking_id)
            if not booking or booking.profile_id != identity.id:
                raise NotFoundError("booking not found")
            self._storage.delete_booking(booking_id)
        logger.info(
            "Booking cancelled",
            extra={"booking_id": booking_id, "property_id": booking.property_id, "profile_id": identity.id},
        )

    def calendar(self, property_id: str) -> tuple[list[BlockedPeriod], dict[str, bool]]:
        if not self._storage.get_property(property_id):
            raise NotFoundError("property not found")
        today = self._today()
        periods = generate_blocked_periods(self._storage.list_bookings(property_id=property_id), today)
        return periods, generate_disabled_dates(periods, today=today)

    def quote(
        self,
        property_id: str,
        *,
        check_in: Optional[date] = None,
        check_out: Optional[date] = None,
    ) -> PriceBreakdown:
        prop = self._storage.get_property(property_id)
        if not prop:
            raise NotFoundError("property not found")
        if check_in is not None and check_out is not None:
            validate_date_range(check_in, check_out)
        return calculate_totals(check_in=check_in, check_out=check_out, price=prop.price)


class ReviewService:
    def __init__(self, storage: InMemoryStorage) -> None:
        self._storage = storage

    def create_review(self, identity: Identity, *, property_id: str, rating: int, comment: str) -> Review:
        require_profile(identity)
        with self._storage.lock:
            prop = self._storage.get_property(property_id)
            if not prop:
                raise NotFoundError("property not found")
            if prop.profile_id == identity.id:
                raise ValidationError("you cannot review your own property", field="property_id")
            if self._storage.list_reviews(profile_id=identity.id, property_id=property_id):
                raise ConflictError("you have already reviewed this property")

            review = Review(
                id=_generate_id("review"),
                profile_id=identity.id,
                property_id=property_id,
                rating=rating,
                comment=comment,
            )
            self._storage.save_review(review)

        logger.info("Review created", extra={"review_id": review.id, "property_id": property_id})
        return review

    def list_property_reviews(self, property_id: str) -> list[Review]:
        return self._storage.list_reviews(property_id=property_id)

    def list_own_reviews(self, identity: Identity) -> list[Review]:
        return self._storage.list_reviews(profile_id=identity.id)

    def delete_review(self, identity: Identity, review_id: str) -> None:
        with self._storage.lock:
            review = self._storage.get_review(review_id)
            if not review or review.profile_id != identity.id:
                raise NotFoundError("review not found")
            self._storage.delete_review(review_id)
