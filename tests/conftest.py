# Imports for testing tools
import datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Import your application code
from staybook.main import app
from staybook.database import Base, get_db, get_redis_client
from staybook import models


# --- Test Database Setup ---
@pytest.fixture(scope="function")
def engine(tmp_path):
    """A file-backed SQLite database per test, so worker threads can share it."""
    test_engine = create_engine(
        f"sqlite:///{tmp_path / 'test_booking.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Provides a database session for each test."""
    session = session_factory()
    yield session
    session.close()


# --- Test data helpers ---
@pytest.fixture
def listing_factory(db_session):
    """Creates listings with sensible defaults."""
    counter = {"n": 0}

    def create(**overrides) -> models.Listing:
        counter["n"] += 1
        data = {
            "id": f"listing-{counter['n']}",
            "name": f"Harbour Flat {counter['n']}",
            "market": "Sydney",
            "property_type": "Apartment",
            "bedrooms": 2,
            "bathrooms": 1.0,
            "accommodates": 4,
            "price": Decimal("100.00"),
            "cleaning_fee": Decimal("25.00"),
            "review_score": 95,
        }
        data.update(overrides)
        listing = models.Listing(**data)
        db_session.add(listing)
        db_session.commit()
        return listing

    return create


@pytest.fixture
def review_factory(db_session):
    """Adds `count` reviews to a listing, one day apart, oldest first."""
    def create(listing_id: str, count: int) -> None:
        for n in range(count):
            db_session.add(models.ListingReview(
                listing_id=listing_id,
                reviewer_name=f"Reviewer {n}",
                review_date=datetime.date(2023, 1, 1) + datetime.timedelta(days=n),
                comments=f"Stay number {n} was lovely.",
            ))
        db_session.commit()

    return create


@pytest.fixture
def booking_factory(db_session):
    """Records an existing booking directly in the database."""
    counter = {"n": 0}

    def create(listing_id: str, arrival: datetime.date, departure: datetime.date,
               status: models.BookingStatus = models.BookingStatus.CONFIRMED) -> models.Booking:
        counter["n"] += 1
        client = models.Client(id=f"client-{counter['n']}", name="Existing Guest",
                               email=f"guest{counter['n']}@example.com")
        booking = models.Booking(
            id=f"booking-{counter['n']}",
            listing_id=listing_id,
            client_id=client.id,
            arrival_date=arrival,
            departure_date=departure,
            guest_count=2,
            total_cost=Decimal("0.00"),
            deposit_paid=Decimal("0.00"),
            balance_amount_due=Decimal("0.00"),
            balance_due_date=arrival - datetime.timedelta(days=7),
            status=status,
        )
        db_session.add(client)
        db_session.add(booking)
        db_session.commit()
        return booking

    return create


# --- Mocking External Services ---
@pytest.fixture(scope="function", autouse=True)
def mock_init_db(mocker):
    """
    Table creation on app startup targets the configured database; tests
    create their own tables instead.
    """
    mocker.patch("staybook.main.init_db")


@pytest.fixture
def redis_client():
    """A Redis stand-in that always misses."""
    mock_redis = MagicMock()
    mock_redis.get.return_value = None
    return mock_redis


# --- API Test Client Fixture ---
@pytest.fixture(scope="function")
def client(db_session, redis_client):
    """Provides a TestClient for the booking service."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis_client] = lambda: redis_client

    with TestClient(app) as c:
        yield c

    # Clean up overrides
    app.dependency_overrides.clear()
