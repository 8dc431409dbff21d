from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from staybook import schemas
from staybook.exceptions import (
    CapacityExceededError,
    DateConflictError,
    InvalidDateRangeError,
    ListingNotFoundError,
    PersistenceError,
    WriteConflictError,
)
from staybook.ledger import BookingLedger
from staybook.models import BookingStatus
from staybook.store import AppendResult, AppendStatus, ListingStore


# --- Helper functions ---
def make_listing(bookings=(), price=Decimal("100.00"), accommodates=4) -> schemas.Listing:
    return schemas.Listing(
        id="listing-1",
        name="Harbour Flat",
        market="Sydney",
        property_type="Apartment",
        accommodates=accommodates,
        price=price,
        bookings=list(bookings),
    )


def make_existing(arrival: date, departure: date) -> schemas.BookingRead:
    return schemas.BookingRead(
        id="existing",
        listing_id="listing-1",
        client_id="client-0",
        arrival_date=arrival,
        departure_date=departure,
        guest_count=2,
        total_cost=Decimal("0"),
        deposit_paid=Decimal("0"),
        balance_amount_due=Decimal("0"),
        balance_due_date=arrival,
        status=BookingStatus.CONFIRMED,
    )


def make_request(arrival=date(2024, 6, 1), departure=date(2024, 6, 4), guest_count=2) -> schemas.BookingRequest:
    return schemas.BookingRequest(
        listing_id="listing-1",
        client=schemas.ClientInfo(name="Ada Guest", email="ada@example.com"),
        arrival_date=arrival,
        departure_date=departure,
        guest_count=guest_count,
        special_requirements="Late check-in",
    )


def appended(booking: schemas.NewBooking, client_id: str = "client-1") -> AppendResult:
    recorded = schemas.BookingRead(**booking.model_dump(), client_id=client_id)
    return AppendResult(status=AppendStatus.APPENDED, booking=recorded)


@pytest.fixture
def store():
    mock_store = MagicMock(spec=ListingStore)
    mock_store.get_listing.return_value = make_listing()
    mock_store.append_booking_if_available.side_effect = lambda listing_id, booking, client: appended(booking)
    return mock_store


# --- create_booking ---

def test_create_booking_prices_and_records(store):
    confirmation = BookingLedger(store).create_booking(make_request())

    assert confirmation.nights == 3
    assert confirmation.total_cost == Decimal("300.00")
    assert confirmation.deposit_paid == Decimal("60.00")
    assert confirmation.balance_amount_due == Decimal("240.00")
    assert confirmation.balance_due_date == date(2024, 5, 25)
    assert confirmation.status == BookingStatus.CONFIRMED
    assert confirmation.client_id == "client-1"
    assert confirmation.listing_name == "Harbour Flat"

    store.append_booking_if_available.assert_called_once()
    listing_id, booking, client = store.append_booking_if_available.call_args.args
    assert listing_id == "listing-1"
    assert booking.id == confirmation.booking_id
    assert booking.special_requirements == "Late check-in"
    assert client.email == "ada@example.com"


def test_create_booking_listing_not_found(store):
    store.get_listing.return_value = None

    with pytest.raises(ListingNotFoundError):
        BookingLedger(store).create_booking(make_request())
    store.append_booking_if_available.assert_not_called()


def test_create_booking_same_day_range_is_invalid(store):
    with pytest.raises(InvalidDateRangeError):
        BookingLedger(store).create_booking(make_request(date(2024, 6, 1), date(2024, 6, 1)))
    store.append_booking_if_available.assert_not_called()


@pytest.mark.parametrize("guest_count", [0, 5])
def test_create_booking_capacity(store, guest_count):
    with pytest.raises(CapacityExceededError):
        BookingLedger(store).create_booking(make_request(guest_count=guest_count))
    store.append_booking_if_available.assert_not_called()


def test_create_booking_without_declared_capacity_accepts_any_party(store):
    store.get_listing.return_value = make_listing(accommodates=None)

    confirmation = BookingLedger(store).create_booking(make_request(guest_count=12))
    assert confirmation.guest_count == 12


def test_create_booking_conflict_detected_before_write(store):
    store.get_listing.return_value = make_listing([make_existing(date(2024, 7, 1), date(2024, 7, 5))])

    with pytest.raises(DateConflictError):
        BookingLedger(store).create_booking(make_request(date(2024, 7, 3), date(2024, 7, 6)))
    store.append_booking_if_available.assert_not_called()


def test_create_booking_back_to_back_succeeds(store):
    store.get_listing.return_value = make_listing([make_existing(date(2024, 7, 1), date(2024, 7, 5))])

    confirmation = BookingLedger(store).create_booking(make_request(date(2024, 7, 5), date(2024, 7, 8)))
    assert confirmation.arrival_date == date(2024, 7, 5)


def test_create_booking_store_reports_conflict(store):
    store.append_booking_if_available.side_effect = None
    store.append_booking_if_available.return_value = AppendResult.conflict()

    with pytest.raises(DateConflictError):
        BookingLedger(store).create_booking(make_request())


def test_create_booking_retries_write_conflicts(store):
    attempts = []

    def flaky_append(listing_id, booking, client):
        attempts.append(booking.id)
        if len(attempts) < 3:
            raise WriteConflictError(listing_id)
        return appended(booking)

    store.append_booking_if_available.side_effect = flaky_append

    confirmation = BookingLedger(store, max_write_attempts=3).create_booking(make_request())

    assert len(attempts) == 3
    # The same booking is retried, not re-priced under a new id
    assert set(attempts) == {confirmation.booking_id}


def test_create_booking_exhausted_retries_surface_as_date_conflict(store):
    store.append_booking_if_available.side_effect = WriteConflictError("listing-1")

    with pytest.raises(DateConflictError):
        BookingLedger(store, max_write_attempts=3).create_booking(make_request())
    assert store.append_booking_if_available.call_count == 3


def test_create_booking_persistence_failure_is_not_retried(store):
    store.append_booking_if_available.side_effect = PersistenceError()

    with pytest.raises(PersistenceError):
        BookingLedger(store).create_booking(make_request())
    assert store.append_booking_if_available.call_count == 1


def test_ledger_requires_at_least_one_attempt(store):
    with pytest.raises(ValueError):
        BookingLedger(store, max_write_attempts=0)


# --- check_availability ---

def test_check_availability(store):
    store.get_listing.return_value = make_listing([make_existing(date(2024, 7, 1), date(2024, 7, 5))])
    ledger = BookingLedger(store)

    assert ledger.check_availability("listing-1", date(2024, 7, 3), date(2024, 7, 6)) is False
    assert ledger.check_availability("listing-1", date(2024, 7, 5), date(2024, 7, 8)) is True
    store.append_booking_if_available.assert_not_called()


def test_check_availability_is_idempotent(store):
    ledger = BookingLedger(store)

    results = [ledger.check_availability("listing-1", date(2024, 6, 1), date(2024, 6, 4)) for _ in range(3)]
    assert results == [True, True, True]


def test_check_availability_unknown_listing(store):
    store.get_listing.return_value = None

    with pytest.raises(ListingNotFoundError):
        BookingLedger(store).check_availability("missing", date(2024, 6, 1), date(2024, 6, 4))


def test_check_availability_invalid_range(store):
    with pytest.raises(InvalidDateRangeError):
        BookingLedger(store).check_availability("listing-1", date(2024, 6, 4), date(2024, 6, 1))
