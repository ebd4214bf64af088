from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .deps import (
    get_admin_identity,
    get_booking_service,
    get_identity,
    get_profile_service,
    get_property_service,
    get_review_service,
)
from .errors import AppError, ValidationError, handle_error
from .identity import Identity
from .rate_limit import RateLimited, RateLimitSweeper, default_limiter
from .schemas import (
    AdminStatsResponse,
    BlockedPeriodResponse,
    BookingCreateRequest,
    BookingResponse,
    CalendarResponse,
    ErrorResponse,
    PriceBreakdownResponse,
    ProfileCreateRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    PropertyCreateRequest,
    PropertyDetailsResponse,
    PropertyListQuery,
    PropertyResponse,
    QuoteQuery,
    ReviewCreateRequest,
    ReviewResponse,
)
from .security import CORS_ALLOWED_HEADERS, CORS_EXPOSED_HEADERS, CORS_MAX_AGE, CORS_METHODS, SecurityHeadersMiddleware
from .service import BookingService, ProfileService, PropertyService, ReviewService

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    sweeper = RateLimitSweeper(default_limiter, interval=settings.rate_limit_sweep_interval)
    sweeper.start()
    try:
        yield
    finally:
        sweeper.stop()


ERROR_RESPONSES = {
    status_code: {"model": ErrorResponse}
    for status_code in (
        status.HTTP_400_BAD_REQUEST,
        status.HTTP_401_UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN,
        status.HTTP_404_NOT_FOUND,
        status.HTTP_409_CONFLICT,
        status.HTTP_429_TOO_MANY_REQUESTS,
    )
}

app = FastAPI(title=settings.app_name, version="1.0.0", lifespan=lifespan, responses=ERROR_RESPONSES)

app.add_middleware(SecurityHeadersMiddleware, production=settings.is_production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=CORS_METHODS,
    allow_headers=CORS_ALLOWED_HEADERS,
    expose_headers=CORS_EXPOSED_HEADERS,
    max_age=CORS_MAX_AGE,
)


def _error_response(request: Request, error: AppError) -> JSONResponse:
    headers = dict(error.headers or {})
    limited = getattr(request.state, "rate_limit", None)
    if limited is not None:
        for name, value in limited.headers().items():
            headers.setdefault(name, value)
    return JSONResponse(status_code=error.status_code, content=error.to_dict(), headers=headers or None)


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    logger.warning("Request failed", extra={"code": exc.code, "error_message": exc.message})
    return _error_response(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    error = ValidationError(first.get("msg", "invalid request"), field=".".join(location) or None)
    return _error_response(request, error)


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    return _error_response(request, handle_error(exc))


# Profiles


@app.post(
    "/v1/profile",
    response_model=ProfileResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(RateLimited("AUTH", "auth"))],
)
async def create_profile(
    payload: ProfileCreateRequest,
    identity: Identity = Depends(get_identity),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    profile = service.create_profile(
        identity,
        username=payload.username,
        first_name=payload.first_name,
        last_name=payload.last_name,
        profile_image=payload.profile_image,
    )
    return ProfileResponse.from_domain(profile)


@app.get("/v1/profile", response_model=ProfileResponse, dependencies=[Depends(RateLimited("STANDARD"))])
async def get_profile(
    identity: Identity = Depends(get_identity),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    return ProfileResponse.from_domain(service.get_profile(identity))


@app.put("/v1/profile", response_model=ProfileResponse, dependencies=[Depends(RateLimited("STANDARD"))])
async def update_profile(
    payload: ProfileUpdateRequest,
    identity: Identity = Depends(get_identity),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    profile = service.update_profile(identity, **payload.model_dump(exclude_unset=True))
    return ProfileResponse.from_domain(profile)


# Properties


@app.post(
    "/v1/properties",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(RateLimited("STRICT", "property"))],
)
async def create_property(
    payload: PropertyCreateRequest,
    identity: Identity = Depends(get_identity),
    service: PropertyService = Depends(get_property_service),
) -> PropertyResponse:
    prop = service.create_property(identity, **payload.model_dump())
    return PropertyResponse.from_domain(prop)


@app.get("/v1/properties", response_model=List[PropertyResponse], dependencies=[Depends(RateLimited("LENIENT"))])
async def search_properties(
    query: PropertyListQuery = Depends(),
    service: PropertyService = Depends(get_property_service),
) -> List[PropertyResponse]:
    properties = service.search_properties(search=query.search, category=query.category)
    return [PropertyResponse.from_domain(prop) for prop in properties]


@app.get("/v1/rentals", response_model=List[PropertyResponse], dependencies=[Depends(RateLimited("STANDARD"))])
async def list_rentals(
    identity: Identity = Depends(get_identity),
    service: PropertyService = Depends(get_property_service),
) -> List[PropertyResponse]:
    return [PropertyResponse.from_domain(prop) for prop in service.list_rentals(identity)]


@app.get(
    "/v1/properties/{property_id}",
    response_model=PropertyDetailsResponse,
    dependencies=[Depends(RateLimited("LENIENT"))],
)
async def get_property(
    property_id: str,
    service: PropertyService = Depends(get_property_service),
) -> PropertyDetailsResponse:
    prop = service.get_property(property_id)
    rating, review_count = service.rating(property_id)
    details = PropertyResponse.from_domain(prop).model_dump()
    return PropertyDetailsResponse(**details, rating=rating, review_count=review_count)


@app.delete(
    "/v1/properties/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(RateLimited("STANDARD"))],
)
async def delete_property(
    property_id: str,
    identity: Identity = Depends(get_identity),
    service: PropertyService = Depends(get_property_service),
) -> None:
    service.delete_property(identity, property_id)


@app.get(
    "/v1/properties/{property_id}/calendar",
    response_model=CalendarResponse,
    dependencies=[Depends(RateLimited("LENIENT"))],
)
async def get_calendar(
    property_id: str,
    service: BookingService = Depends(get_booking_service),
) -> CalendarResponse:
    periods, disabled = service.calendar(property_id)
    return CalendarResponse(
        property_id=property_id,
        blocked_periods=[BlockedPeriodResponse.from_domain(period) for period in periods],
        disabled_dates=disabled,
    )


@app.get(
    "/v1/properties/{property_id}/quote",
    response_model=PriceBreakdownResponse,
    dependencies=[Depends(RateLimited("LENIENT"))],
)
async def get_quote(
    property_id: str,
    query: QuoteQuery = Depends(),
    service: BookingService = Depends(get_booking_service),
) -> PriceBreakdownResponse:
    totals = service.quote(property_id, check_in=query.check_in, check_out=query.check_out)
    return PriceBreakdownResponse.from_domain(totals)


@app.get(
    "/v1/properties/{property_id}/reviews",
    response_model=List[ReviewResponse],
    dependencies=[Depends(RateLimited("STANDARD"))],
)
async def list_property_reviews(
    property_id: str,
    service: ReviewService = Depends(get_review_service),
) -> List[ReviewResponse]:
    return [ReviewResponse.from_domain(review) for review in service.list_property_reviews(property_id)]


# Bookings


@app.post(
    "/v1/bookings",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(RateLimited("PAYMENT", "booking"))],
)
async def create_booking(
    payload: BookingCreateRequest,
    identity: Identity = Depends(get_identity),
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    booking = service.create_booking(
        identity,
        property_id=payload.property_id,
        check_in=payload.check_in,
        check_out=payload.check_out,
    )
    return BookingResponse.from_domain(booking)


@app.get("/v1/bookings", response_model=List[BookingResponse], dependencies=[Depends(RateLimited("STANDARD"))])
async def list_bookings(
    identity: Identity = Depends(get_identity),
    service: BookingService = Depends(get_booking_service),
) -> List[BookingResponse]:
    return [BookingResponse.from_domain(booking) for booking in service.list_bookings(identity)]


@app.delete(
    "/v1/bookings/{booking_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(RateLimited("STANDARD"))],
)
async def cancel_booking(
    booking_id: str,
    identity: Identity = Depends(get_identity),
    service: BookingService = Depends(get_booking_service),
) -> None:
    service.cancel_booking(identity, booking_id)


# Reviews


@app.post(
    "/v1/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(RateLimited("STRICT", "review"))],
)
async def create_review(
    payload: ReviewCreateRequest,
    identity: Identity = Depends(get_identity),
    service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    review = service.create_review(
        identity,
        property_id=payload.property_id,
        rating=payload.rating,
        comment=payload.comment,
    )
    return ReviewResponse.from_domain(review)


@app.get("/v1/reviews", response_model=List[ReviewResponse], dependencies=[Depends(RateLimited("STANDARD"))])
async def list_own_reviews(
    identity: Identity = Depends(get_identity),
    service: ReviewService = Depends(get_review_service),
) -> List[ReviewResponse]:
    return [ReviewResponse.from_domain(review) for review in service.list_own_reviews(identity)]


@app.delete(
    "/v1/reviews/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(RateLimited("STANDARD"))],
)
async def delete_review(
    review_id: str,
    identity: Identity = Depends(get_identity),
    service: ReviewService = Depends(get_review_service),
) -> None:
    service.delete_review(identity, review_id)


# Admin


@app.get("/v1/admin/stats", response_model=AdminStatsResponse, dependencies=[Depends(RateLimited("STANDARD"))])
async def admin_stats(
    _: Identity = Depends(get_admin_identity),
    service: PropertyService = Depends(get_property_service),
) -> AdminStatsResponse:
    return AdminStatsResponse(**service.stats())
