import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from redis import Redis

from .. import cache, schemas
from ..config import settings
from ..database import get_redis_client
from ..dependencies import get_booking_ledger, get_listing_store
from ..exceptions import InvalidDateRangeError, ListingNotFoundError
from ..ledger import BookingLedger
from ..models import BookingStatus
from ..store import DETAIL_REVIEW_COUNT, SqlListingStore

router = APIRouter(prefix="/listings", tags=["Listings"])


@router.get("/featured", response_model=List[schemas.ListingRead])
def read_featured_listings(
        size: int = Query(default=10, ge=1, le=50),
        store: SqlListingStore = Depends(get_listing_store)
):
    """
    A random sample of priced listings for the landing page.
    """
    return store.featured_listings(size=size)


@router.get("/options", response_model=schemas.SearchOptions)
def read_search_options(
        store: SqlListingStore = Depends(get_listing_store),
        redis_client: Optional[Redis] = Depends(get_redis_client)
):
    """
    Distinct markets and property types, used to populate the search form.
    """
    cached_options = cache.get_cached(redis_client, cache.OPTIONS_KEY)
    if cached_options:
        return cached_options

    options = store.search_options()
    cache.set_cached(redis_client, cache.OPTIONS_KEY, options.model_dump(), settings.LISTING_CACHE_TTL_SECONDS)
    return options


@router.get("/search", response_model=List[schemas.ListingRead])
def search_listings(
        location: str,
        property_type: Optional[str] = None,
        bedrooms: Optional[int] = Query(default=None, ge=0),
        min_price: Optional[Decimal] = Query(default=None, ge=0),
        max_price: Optional[Decimal] = Query(default=None, ge=0),
        guests: Optional[int] = Query(default=None, ge=1),
        check_in: Optional[datetime.date] = None,
        check_out: Optional[datetime.date] = None,
        store: SqlListingStore = Depends(get_listing_store)
):
    """
    Search listings in a market. When both dates are given, only listings
    free for the whole stay are returned.
    """
    if check_in and check_out and check_in >= check_out:
        raise InvalidDateRangeError("Check-out date must be after check-in date.")

    filters = schemas.SearchFilters(
        location=location,
        property_type=property_type or None,
        bedrooms=bedrooms,
        min_price=min_price,
        max_price=max_price,
        guests=guests,
        check_in=check_in,
        check_out=check_out,
    )
    return store.search_listings(filters)


@router.post("/", response_model=schemas.ListingRead, status_code=status.HTTP_201_CREATED)
def create_listing(
        listing: schemas.ListingCreate,
        store: SqlListingStore = Depends(get_listing_store),
        redis_client: Optional[Redis] = Depends(get_redis_client)
):
    created = store.create_listing(listing)
    # A new market or property type changes the search options
    cache.invalidate(redis_client, cache.OPTIONS_KEY)
    return created


@router.get("/{listing_id}", response_model=schemas.ListingDetail)
def read_listing(
        listing_id: str,
        store: SqlListingStore = Depends(get_listing_store),
        redis_client: Optional[Redis] = Depends(get_redis_client)
):
    cache_key = cache.listing_key(listing_id)
    cached_listing = cache.get_cached(redis_client, cache_key)
    if cached_listing:
        return cached_listing

    listing = store.get_listing(listing_id)
    if listing is None:
        raise ListingNotFoundError(listing_id)

    detail = schemas.ListingDetail(
        **listing.model_dump(exclude={"bookings", "reviews"}),
        reviews=listing.reviews[:DETAIL_REVIEW_COUNT],
        booked_periods=[
            schemas.BookedPeriod(arrival_date=booking.arrival_date, departure_date=booking.departure_date)
            for booking in listing.bookings
            if booking.status == BookingStatus.CONFIRMED
        ],
    )
    cache.set_cached(redis_client, cache_key, detail.model_dump(), settings.LISTING_CACHE_TTL_SECONDS)
    return detail


@router.get("/{listing_id}/availability", response_model=schemas.AvailabilityRead)
def check_listing_availability(
        listing_id: str,
        arrival: datetime.date,
        departure: datetime.date,
        ledger: BookingLedger = Depends(get_booking_ledger)
):
    """
    Pre-submission availability check. Never served from cache.
    """
    return schemas.AvailabilityRead(
        listing_id=listing_id,
        arrival_date=arrival,
        departure_date=departure,
        available=ledger.check_availability(listing_id, arrival, departure),
    )
