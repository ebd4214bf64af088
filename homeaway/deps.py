from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request

from .config import Settings, get_settings
from .identity import Identity, current_identity, require_admin, require_identity
from .service import BookingService, ProfileService, PropertyService, ReviewService
from .storage import InMemoryStorage


def get_storage() -> InMemoryStorage:
    if not hasattr(get_storage, "_instance"):
        get_storage._instance = InMemoryStorage()
    return get_storage._instance  # type: ignore[attr-defined]


def get_profile_service(storage: InMemoryStorage = Depends(get_storage)) -> ProfileService:
    return ProfileService(storage=storage)


def get_property_service(storage: InMemoryStorage = Depends(get_storage)) -> PropertyService:
    return PropertyService(storage=storage)


def get_booking_service(storage: InMemoryStorage = Depends(get_storage)) -> BookingService:
    return BookingService(storage=storage)


def get_review_service(storage: InMemoryStorage = Depends(get_storage)) -> ReviewService:
    return ReviewService(storage=storage)


def get_optional_identity(request: Request, storage: InMemoryStorage = Depends(get_storage)) -> Optional[Identity]:
    return current_identity(request.headers, storage)


def get_identity(identity: Optional[Identity] = Depends(get_optional_identity)) -> Identity:
    return require_identity(identity)


def get_admin_identity(
    identity: Optional[Identity] = Depends(get_optional_identity),
    settings: Settings = Depends(get_settings),
) -> Identity:
    return require_admin(identity, settings.admin_user_id)
