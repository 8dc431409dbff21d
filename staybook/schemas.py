import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from .models import BookingStatus


# --- Listings ---

class ReviewBase(BaseModel):
    reviewer_name: str
    review_date: datetime.date
    comments: str


class ReviewCreate(ReviewBase):
    pass


class ReviewRead(ReviewBase):
    class Config:
        from_attributes = True


class ListingBase(BaseModel):
    name: str
    summary: Optional[str] = None
    description: Optional[str] = None
    market: str
    property_type: Optional[str] = None
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[float] = Field(default=None, ge=0)
    accommodates: Optional[int] = Field(default=None, ge=1)
    price: Optional[Decimal] = Field(default=None, ge=0)
    cleaning_fee: Optional[Decimal] = Field(default=None, ge=0)
    review_score: Optional[int] = Field(default=None, ge=0, le=100)
    amenities: List[str] = []
    picture_url: Optional[str] = None


class ListingCreate(ListingBase):
    # Generated by the store when omitted
    id: Optional[str] = None
    reviews: List[ReviewCreate] = []


class ListingRead(ListingBase):
    id: str
    # Oldest first; search results and the homepage carry only the first few
    reviews: List[ReviewRead] = []

    class Config:
        from_attributes = True


class BookedPeriod(BaseModel):
    arrival_date: datetime.date
    departure_date: datetime.date

    class Config:
        from_attributes = True


class ListingDetail(ListingRead):
    booked_periods: List[BookedPeriod] = []


class SearchFilters(BaseModel):
    location: str
    property_type: Optional[str] = None
    bedrooms: Optional[int] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    guests: Optional[int] = None
    check_in: Optional[datetime.date] = None
    check_out: Optional[datetime.date] = None


class SearchOptions(BaseModel):
    markets: List[str]
    property_types: List[str]


class AvailabilityRead(BaseModel):
    listing_id: str
    arrival_date: datetime.date
    departure_date: datetime.date
    available: bool


# --- Clients ---

class ClientInfo(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    daytime_phone: Optional[str] = None
    mobile_phone: Optional[str] = None
    postal_address: Optional[str] = None
    home_address: Optional[str] = None


class ClientBookingRead(BaseModel):
    booking_id: str
    listing_id: str
    arrival_date: datetime.date
    departure_date: datetime.date
    total_cost: Decimal
    guest_count: int
    special_requirements: Optional[str] = None
    status: BookingStatus

    class Config:
        from_attributes = True


# --- Bookings ---

class BookingRequest(BaseModel):
    listing_id: str
    client: ClientInfo
    arrival_date: datetime.date
    departure_date: datetime.date
    # Range checks happen in the ledger so they map onto booking errors
    guest_count: int
    special_requirements: Optional[str] = None


class NewBooking(BaseModel):
    """A fully priced booking, ready to be appended to a listing."""
    id: str
    listing_id: str
    arrival_date: datetime.date
    departure_date: datetime.date
    guest_count: int
    total_cost: Decimal
    deposit_paid: Decimal
    balance_amount_due: Decimal
    balance_due_date: datetime.date
    status: BookingStatus = BookingStatus.CONFIRMED
    special_requirements: Optional[str] = None


class BookingRead(BaseModel):
    id: str
    listing_id: str
    client_id: str
    arrival_date: datetime.date
    departure_date: datetime.date
    guest_count: int
    total_cost: Decimal
    deposit_paid: Decimal
    balance_amount_due: Decimal
    balance_due_date: datetime.date
    status: BookingStatus
    special_requirements: Optional[str] = None
    created_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True


class Listing(ListingRead):
    """Listing record as the ledger sees it, with its bookings."""
    bookings: List[BookingRead] = []


class BookingConfirmation(BaseModel):
    booking_id: str
    client_id: str
    listing_id: str
    listing_name: str
    arrival_date: datetime.date
    departure_date: datetime.date
    guest_count: int
    nights: int
    nightly_price: Decimal
    total_cost: Decimal
    deposit_paid: Decimal
    balance_amount_due: Decimal
    balance_due_date: datetime.date
    status: BookingStatus
