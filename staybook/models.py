import datetime
from enum import Enum as PyEnum

from sqlalchemy import Column, Integer, String, Text, Date, TIMESTAMP, Numeric, Float, ForeignKey, Index, JSON
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from .database import Base


class BookingStatus(str, PyEnum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


# --- Listing Model (bookable property) ---
class Listing(Base):
    __tablename__ = "listings"

    id = Column(String(64), primary_key=True, index=True)

    name = Column(String(255), nullable=False)
    summary = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    market = Column(String(255), index=True, nullable=False)
    property_type = Column(String(100), index=True, nullable=True)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Float, nullable=True)
    accommodates = Column(Integer, nullable=True)

    price = Column(Numeric(10, 2), nullable=True)
    cleaning_fee = Column(Numeric(10, 2), nullable=True)
    review_score = Column(Integer, nullable=True)

    amenities = Column(JSON, default=list, nullable=False)
    picture_url = Column(String(500), nullable=True)

    # Bumped on every booking append; the conditional write compares against it
    version = Column(Integer, default=0, nullable=False)

    created_at = Column(TIMESTAMP, default=datetime.datetime.utcnow)

    bookings = relationship("Booking", back_populates="listing", order_by="Booking.arrival_date")
    reviews = relationship("ListingReview", back_populates="listing",
                           order_by="ListingReview.review_date")


class ListingReview(Base):
    __tablename__ = "listing_reviews"

    id = Column(Integer, primary_key=True, index=True)
    listing_id = Column(String(64), ForeignKey("listings.id"), nullable=False, index=True)

    reviewer_name = Column(String(255), nullable=False)
    review_date = Column(Date, nullable=False)
    comments = Column(Text, nullable=False)

    listing = relationship("Listing", back_populates="reviews")


class Client(Base):
    __tablename__ = "clients"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    daytime_phone = Column(String(50), nullable=True)
    mobile_phone = Column(String(50), nullable=True)
    postal_address = Column(Text, nullable=True)
    home_address = Column(Text, nullable=True)

    created_at = Column(TIMESTAMP, default=datetime.datetime.utcnow)

    history = relationship("ClientBooking", back_populates="client", order_by="ClientBooking.arrival_date")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(64), primary_key=True, index=True)

    listing_id = Column(String(64), ForeignKey("listings.id"), nullable=False)
    client_id = Column(String(64), ForeignKey("clients.id"), nullable=False, index=True)

    arrival_date = Column(Date, nullable=False)
    departure_date = Column(Date, nullable=False)
    guest_count = Column(Integer, nullable=False)

    total_cost = Column(Numeric(10, 2), nullable=False)
    deposit_paid = Column(Numeric(10, 2), nullable=False)
    balance_amount_due = Column(Numeric(10, 2), nullable=False)
    balance_due_date = Column(Date, nullable=False)

    status = Column(SQLEnum(BookingStatus), default=BookingStatus.CONFIRMED, nullable=False)
    special_requirements = Column(Text, nullable=True)

    created_at = Column(TIMESTAMP, default=datetime.datetime.utcnow)

    listing = relationship("Listing", back_populates="bookings")
    client = relationship("Client")

    # Overlap lookups always filter by listing and date range
    __table_args__ = (
        Index("ix_bookings_listing_dates", "listing_id", "arrival_date", "departure_date"),
    )


# --- Entry in a client's booking history ---
class ClientBooking(Base):
    __tablename__ = "client_bookings"

    id = Column(Integer, primary_key=True, index=True)

    client_id = Column(String(64), ForeignKey("clients.id"), nullable=False, index=True)
    booking_id = Column(String(64), ForeignKey("bookings.id"), nullable=False, unique=True)
    listing_id = Column(String(64), nullable=False)

    arrival_date = Column(Date, nullable=False)
    departure_date = Column(Date, nullable=False)
    total_cost = Column(Numeric(10, 2), nullable=False)
    guest_count = Column(Integer, nullable=False)
    special_requirements = Column(Text, nullable=True)
    status = Column(SQLEnum(BookingStatus), default=BookingStatus.CONFIRMED, nullable=False)

    client = relationship("Client", back_populates="history")
    booking = relationship("Booking")
