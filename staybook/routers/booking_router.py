from typing import Optional

from fastapi import APIRouter, Depends, status
from redis import Redis

from .. import cache, schemas
from ..database import get_redis_client
from ..dependencies import get_booking_ledger, get_listing_store
from ..exceptions import BookingNotFoundError
from ..ledger import BookingLedger
from ..store import SqlListingStore

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/", response_model=schemas.BookingConfirmation, status_code=status.HTTP_201_CREATED)
def create_booking(
        booking: schemas.BookingRequest,
        ledger: BookingLedger = Depends(get_booking_ledger),
        redis_client: Optional[Redis] = Depends(get_redis_client)
):
    """
    Book a listing for a date range. Rejections are raised by the ledger and
    rendered by the registered exception handlers.
    """
    confirmation = ledger.create_booking(booking)

    # The cached listing detail carries its booked periods
    cache.invalidate(redis_client, cache.listing_key(booking.listing_id))
    return confirmation


@router.get("/{booking_id}", response_model=schemas.BookingRead)
def read_booking(
        booking_id: str,
        store: SqlListingStore = Depends(get_listing_store)
):
    db_booking = store.get_booking(booking_id)
    if db_booking is None:
        raise BookingNotFoundError(booking_id)
    return db_booking
