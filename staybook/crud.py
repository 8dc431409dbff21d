import datetime
import uuid
from typing import List, Optional

from sqlalchemy import exists, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from . import models, schemas


def new_id() -> str:
    return uuid.uuid4().hex


# --- Listings ---

def get_listing(db: Session, listing_id: str) -> Optional[models.Listing]:
    return db.query(models.Listing).filter(models.Listing.id == listing_id).first()


def create_listing(db: Session, listing: schemas.ListingCreate) -> models.Listing:
    data = listing.model_dump(exclude={"reviews"})
    data["id"] = data["id"] or new_id()
    db_listing = models.Listing(**data)
    db_listing.reviews = [models.ListingReview(**review.model_dump()) for review in listing.reviews]
    db.add(db_listing)
    db.commit()
    db.refresh(db_listing)
    return db_listing


def get_listing_version(db: Session, listing_id: str) -> Optional[int]:
    # Column query, so a Listing already in the identity map cannot hand back a stale version
    return db.query(models.Listing.version).filter(models.Listing.id == listing_id).scalar()


def bump_listing_version(db: Session, listing_id: str, expected_version: int) -> bool:
    """
    Compare-and-swap on the listing version.

    Returns False when another transaction bumped the version after
    `expected_version` was read. Does NOT commit.
    """
    result = db.execute(
        update(models.Listing)
        .where(models.Listing.id == listing_id, models.Listing.version == expected_version)
        .values(version=expected_version + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def overlapping_booking_clause(check_in: datetime.date, check_out: datetime.date):
    # Existing arrival before new departure AND existing departure after new arrival
    return exists().where(
        models.Booking.listing_id == models.Listing.id,
        models.Booking.status == models.BookingStatus.CONFIRMED,
        models.Booking.arrival_date < check_out,
        models.Booking.departure_date > check_in,
    )


def search_listings(db: Session, filters: schemas.SearchFilters, limit: int = 20) -> List[models.Listing]:
    query = db.query(models.Listing).options(selectinload(models.Listing.reviews)).filter(
        models.Listing.market == filters.location,
        models.Listing.review_score.isnot(None),
        models.Listing.price.isnot(None),
    )

    if filters.property_type:
        query = query.filter(models.Listing.property_type == filters.property_type)
    if filters.bedrooms is not None:
        query = query.filter(models.Listing.bedrooms == filters.bedrooms)
    if filters.min_price is not None:
        query = query.filter(models.Listing.price >= filters.min_price)
    if filters.max_price is not None:
        query = query.filter(models.Listing.price <= filters.max_price)
    if filters.guests:
        query = query.filter(models.Listing.accommodates >= filters.guests)

    # Dates only filter when both ends are given
    if filters.check_in and filters.check_out:
        query = query.filter(~overlapping_booking_clause(filters.check_in, filters.check_out))

    return query.order_by(models.Listing.name).limit(limit).all()


def get_featured_listings(db: Session, size: int = 10) -> List[models.Listing]:
    return (
        db.query(models.Listing)
        .options(selectinload(models.Listing.reviews))
        .filter(models.Listing.review_score.isnot(None), models.Listing.price.isnot(None))
        .order_by(func.random())
        .limit(size)
        .all()
    )


def get_markets(db: Session) -> List[str]:
    rows = db.query(models.Listing.market).filter(models.Listing.market.isnot(None)).distinct().all()
    return sorted(row[0] for row in rows)


def get_property_types(db: Session) -> List[str]:
    rows = (
        db.query(models.Listing.property_type)
        .filter(models.Listing.property_type.isnot(None))
        .distinct()
        .all()
    )
    return sorted(row[0] for row in rows)


# --- Bookings ---

def get_confirmed_bookings(db: Session, listing_id: str) -> List[models.Booking]:
    return db.query(models.Booking).filter(
        models.Booking.listing_id == listing_id,
        models.Booking.status == models.BookingStatus.CONFIRMED,
    ).all()


def get_booking(db: Session, booking_id: str) -> Optional[models.Booking]:
    return db.query(models.Booking).filter(models.Booking.id == booking_id).first()


def add_booking(db: Session, booking: schemas.NewBooking, client_id: str) -> models.Booking:
    """
    Adds the booking and the matching client history entry to the session.
    Note: Does NOT commit. The caller owns the transaction.
    """
    db_booking = models.Booking(**booking.model_dump(), client_id=client_id)

    db_history = models.ClientBooking(
        client_id=client_id,
        booking_id=booking.id,
        listing_id=booking.listing_id,
        arrival_date=booking.arrival_date,
        departure_date=booking.departure_date,
        total_cost=booking.total_cost,
        guest_count=booking.guest_count,
        special_requirements=booking.special_requirements,
        status=booking.status,
    )

    db.add(db_booking)
    db.add(db_history)
    return db_booking


# --- Clients ---

def get_client(db: Session, client_id: str) -> Optional[models.Client]:
    return db.query(models.Client).filter(models.Client.id == client_id).first()


def get_client_by_email(db: Session, email: str) -> Optional[models.Client]:
    return db.query(models.Client).filter(models.Client.email == email).first()


def get_or_create_client(db: Session, client: schemas.ClientInfo) -> models.Client:
    """
    Matches an existing client by email and refreshes its contact details from
    `client`, otherwise adds a new one.

    The insert runs in a savepoint: if a concurrent transaction registered the
    same email first, the unique constraint fails only the savepoint and the
    other transaction's client is used instead.
    Note: Does NOT commit.
    """
    db_client = get_client_by_email(db, client.email)
    if db_client is None:
        try:
            with db.begin_nested():
                db_client = models.Client(id=new_id(), **client.model_dump())
                db.add(db_client)
            return db_client
        except IntegrityError:
            db_client = get_client_by_email(db, client.email)
            if db_client is None:
                raise

    # Fields left out of the request keep their stored values
    for field, value in client.model_dump(exclude_none=True).items():
        setattr(db_client, field, value)
    return db_client


def get_client_history(db: Session, client_id: str, skip: int = 0, limit: int = 100) -> List[models.ClientBooking]:
    return (
        db.query(models.ClientBooking)
        .filter(models.ClientBooking.client_id == client_id)
        .order_by(models.ClientBooking.arrival_date)
        .offset(skip)
        .limit(limit)
        .all()
    )
