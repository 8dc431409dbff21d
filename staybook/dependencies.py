from fastapi import Depends
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .ledger import BookingLedger
from .pricing import PricingPolicy
from .store import SqlListingStore


def get_listing_store(db: Session = Depends(get_db)) -> SqlListingStore:
    return SqlListingStore(db, search_limit=settings.SEARCH_RESULT_LIMIT)


def get_booking_ledger(store: SqlListingStore = Depends(get_listing_store)) -> BookingLedger:
    return BookingLedger(
        store,
        policy=PricingPolicy.from_settings(settings),
        max_write_attempts=settings.BOOKING_WRITE_ATTEMPTS,
    )
