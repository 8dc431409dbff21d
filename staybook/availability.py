import datetime
from typing import Iterable

from .exceptions import InvalidDateRangeError
from .models import BookingStatus


def overlaps(arrival_a: datetime.date, departure_a: datetime.date,
             arrival_b: datetime.date, departure_b: datetime.date) -> bool:
    """
    Half-open overlap test for [arrival_a, departure_a) and [arrival_b, departure_b).

    A stay that departs on the day another arrives does not overlap it.
    """
    return arrival_a < departure_b and arrival_b < departure_a


def is_available(existing_bookings: Iterable, arrival: datetime.date, departure: datetime.date) -> bool:
    """
    Returns True if no confirmed booking in `existing_bookings` overlaps
    the proposed [arrival, departure) stay.

    Bookings only need `arrival_date`, `departure_date` and `status`, so ORM
    rows and schema records are both accepted.
    """
    if arrival >= departure:
        raise InvalidDateRangeError()

    for booking in existing_bookings:
        if booking.status != BookingStatus.CONFIRMED:
            continue
        if overlaps(booking.arrival_date, booking.departure_date, arrival, departure):
            return False
    return True
