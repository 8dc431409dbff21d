import datetime
import logging

from . import schemas
from .availability import is_available
from .crud import new_id
from .exceptions import (
    CapacityExceededError,
    DateConflictError,
    InvalidDateRangeError,
    ListingNotFoundError,
    WriteConflictError,
)
from .models import BookingStatus
from .pricing import PricingPolicy, quote
from .store import AppendStatus, ListingStore

logger = logging.getLogger("booking_service")

DEFAULT_WRITE_ATTEMPTS = 3


class BookingLedger:
    """
    Validates, prices and records bookings against a ListingStore.

    Every check that can reject a request runs before the store is written to,
    so a rejected request leaves no booking or client record behind.
    """

    def __init__(self, store: ListingStore, policy: PricingPolicy = PricingPolicy(),
                 max_write_attempts: int = DEFAULT_WRITE_ATTEMPTS):
        if max_write_attempts < 1:
            raise ValueError("max_write_attempts must be at least 1")
        self.store = store
        self.policy = policy
        self.max_write_attempts = max_write_attempts

    def _get_listing(self, listing_id: str) -> schemas.Listing:
        listing = self.store.get_listing(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        return listing

    def check_availability(self, listing_id: str, arrival: datetime.date, departure: datetime.date) -> bool:
        listing = self._get_listing(listing_id)
        return is_available(listing.bookings, arrival, departure)

    def create_booking(self, request: schemas.BookingRequest) -> schemas.BookingConfirmation:
        listing = self._get_listing(request.listing_id)

        if request.arrival_date >= request.departure_date:
            raise InvalidDateRangeError()

        if request.guest_count < 1:
            raise CapacityExceededError("A booking needs at least one guest.")
        if listing.accommodates is not None and request.guest_count > listing.accommodates:
            raise CapacityExceededError(
                f"This property accommodates at most {listing.accommodates} guests."
            )

        if not is_available(listing.bookings, request.arrival_date, request.departure_date):
            raise DateConflictError()

        terms = quote(listing.price, request.arrival_date, request.departure_date, self.policy)

        booking = schemas.NewBooking(
            id=new_id(),
            listing_id=listing.id,
            arrival_date=request.arrival_date,
            departure_date=request.departure_date,
            guest_count=request.guest_count,
            total_cost=terms.total_cost,
            deposit_paid=terms.deposit,
            balance_amount_due=terms.balance_due,
            balance_due_date=terms.balance_due_date,
            status=BookingStatus.CONFIRMED,
            special_requirements=request.special_requirements,
        )

        # The store assigns the client id, existing clients are matched by email
        recorded = self._append(booking, request.client)

        logger.info(
            f"Booking {booking.id} confirmed for listing {listing.id} "
            f"({request.arrival_date} to {request.departure_date}, {terms.nights} nights)."
        )

        return schemas.BookingConfirmation(
            booking_id=booking.id,
            client_id=recorded.client_id,
            listing_id=listing.id,
            listing_name=listing.name,
            arrival_date=booking.arrival_date,
            departure_date=booking.departure_date,
            guest_count=booking.guest_count,
            nights=terms.nights,
            nightly_price=terms.nightly_price,
            total_cost=terms.total_cost,
            deposit_paid=terms.deposit,
            balance_amount_due=terms.balance_due,
            balance_due_date=terms.balance_due_date,
            status=booking.status,
        )

    def _append(self, booking: schemas.NewBooking, client: schemas.ClientInfo) -> schemas.BookingRead:
        for attempt in range(1, self.max_write_attempts + 1):
            try:
                result = self.store.append_booking_if_available(booking.listing_id, booking, client)
            except WriteConflictError:
                logger.warning(
                    f"Write conflict on listing {booking.listing_id} "
                    f"(attempt {attempt}/{self.max_write_attempts}), retrying..."
                )
                continue

            if result.status is AppendStatus.CONFLICT:
                raise DateConflictError()
            return result.booking

        # Unresolved races are treated as unavailable
        logger.error(
            f"Giving up on booking {booking.id} for listing {booking.listing_id} "
            f"after {self.max_write_attempts} conflicting writes."
        )
        raise DateConflictError()
