import abc
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import crud, schemas
from .availability import is_available
from .exceptions import ListingExistsError, ListingNotFoundError, PersistenceError, WriteConflictError

logger = logging.getLogger("listing_store")

# Reviews carried by search results and the homepage sample; the detail page shows more
SUMMARY_REVIEW_COUNT = 3
DETAIL_REVIEW_COUNT = 5


class AppendStatus(Enum):
    APPENDED = "appended"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class AppendResult:
    status: AppendStatus
    # The booking as recorded, set when status is APPENDED
    booking: Optional[schemas.BookingRead] = None

    @classmethod
    def conflict(cls) -> "AppendResult":
        return cls(status=AppendStatus.CONFLICT)


class ListingStore(abc.ABC):
    """Storage the booking ledger reads listings from and appends bookings to."""

    @abc.abstractmethod
    def get_listing(self, listing_id: str) -> Optional[schemas.Listing]:
        ...

    @abc.abstractmethod
    def append_booking_if_available(self, listing_id: str, booking: schemas.NewBooking,
                                    client: schemas.ClientInfo) -> AppendResult:
        """
        Appends `booking` to the listing and to the client's history only if no
        confirmed booking overlaps it at write time. Both writes happen, or neither.

        Raises WriteConflictError when the listing changed underneath the write.
        Raises PersistenceError when the underlying store fails.
        """

    @abc.abstractmethod
    def search_listings(self, filters: schemas.SearchFilters) -> List[schemas.ListingRead]:
        ...


class SqlListingStore(ListingStore):
    """
    ListingStore over a SQLAlchemy session.

    The append is a single transaction guarded by a compare-and-swap on
    `listings.version`, so two writers that both saw the listing free cannot
    both commit.
    """

    def __init__(self, db: Session, search_limit: int = 20):
        self.db = db
        self.search_limit = search_limit

    def get_listing(self, listing_id: str) -> Optional[schemas.Listing]:
        try:
            db_listing = crud.get_listing(self.db, listing_id)
            if db_listing is None:
                return None
            return schemas.Listing.model_validate(db_listing)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to load listing {listing_id}: {e}")
            raise PersistenceError() from e

    def append_booking_if_available(self, listing_id: str, booking: schemas.NewBooking,
                                    client: schemas.ClientInfo) -> AppendResult:
        try:
            seen_version = crud.get_listing_version(self.db, listing_id)
            if seen_version is None:
                raise ListingNotFoundError(listing_id)

            existing = crud.get_confirmed_bookings(self.db, listing_id)
            if not is_available(existing, booking.arrival_date, booking.departure_date):
                self.db.rollback()
                return AppendResult.conflict()

            if not crud.bump_listing_version(self.db, listing_id, seen_version):
                self.db.rollback()
                raise WriteConflictError(listing_id)

            db_client = crud.get_or_create_client(self.db, client)
            db_booking = crud.add_booking(self.db, booking, client_id=db_client.id)
            self.db.commit()
            self.db.refresh(db_booking)
            recorded = schemas.BookingRead.model_validate(db_booking)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to append booking {booking.id} to listing {listing_id}: {e}")
            raise PersistenceError() from e

        logger.info(f"Appended booking {booking.id} to listing {listing_id} (version {seen_version + 1}).")
        return AppendResult(status=AppendStatus.APPENDED, booking=recorded)

    def search_listings(self, filters: schemas.SearchFilters) -> List[schemas.ListingRead]:
        try:
            listings = crud.search_listings(self.db, filters, limit=self.search_limit)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Listing search failed: {e}")
            raise PersistenceError() from e
        return [self._summary(listing) for listing in listings]

    # --- Reads used by the HTTP layer ---

    def create_listing(self, listing: schemas.ListingCreate) -> schemas.ListingRead:
        try:
            if listing.id and crud.get_listing(self.db, listing.id) is not None:
                raise ListingExistsError(listing.id)
            db_listing = crud.create_listing(self.db, listing)
        except IntegrityError as e:
            # Lost a race with another insert of the same id
            self.db.rollback()
            raise ListingExistsError(listing.id) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create listing {listing.id}: {e}")
            raise PersistenceError() from e
        logger.info(f"Created listing {db_listing.id}.")
        return schemas.ListingRead.model_validate(db_listing)

    def featured_listings(self, size: int = 10) -> List[schemas.ListingRead]:
        try:
            listings = crud.get_featured_listings(self.db, size)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to load featured listings: {e}")
            raise PersistenceError() from e
        return [self._summary(listing) for listing in listings]

    def search_options(self) -> schemas.SearchOptions:
        try:
            return schemas.SearchOptions(
                markets=crud.get_markets(self.db),
                property_types=crud.get_property_types(self.db),
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to load search options: {e}")
            raise PersistenceError() from e

    def get_booking(self, booking_id: str) -> Optional[schemas.BookingRead]:
        try:
            db_booking = crud.get_booking(self.db, booking_id)
            return schemas.BookingRead.model_validate(db_booking) if db_booking else None
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to load booking {booking_id}: {e}")
            raise PersistenceError() from e

    def get_client_history(self, client_id: str) -> Optional[List[schemas.ClientBookingRead]]:
        try:
            if crud.get_client(self.db, client_id) is None:
                return None
            history = crud.get_client_history(self.db, client_id)
            return [schemas.ClientBookingRead.model_validate(entry) for entry in history]
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to load booking history of client {client_id}: {e}")
            raise PersistenceError() from e

    @staticmethod
    def _summary(db_listing) -> schemas.ListingRead:
        listing = schemas.ListingRead.model_validate(db_listing)
        return listing.model_copy(update={"reviews": listing.reviews[:SUMMARY_REVIEW_COUNT]})
