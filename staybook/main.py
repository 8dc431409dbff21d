import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import settings
from .database import init_db, redis_pool
from .exceptions import register_exception_handlers
from .routers import booking_router, client_router, listing_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

# Setup logger
logger = logging.getLogger("booking_service")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages application startup and shutdown events.
    """
    logger.info("Booking Service starting up...")

    # Create tables if they don't exist
    init_db()

    if redis_pool is None:
        logger.info("REDIS_URL not set, listing cache disabled.")
    else:
        logger.info("Listing cache enabled with Redis.")

    yield  # The application is now running

    # --- Code to run on shutdown ---
    logger.info("Booking Service shutting down...")
    if redis_pool is not None:
        redis_pool.disconnect()


app = FastAPI(
    title="StayBook API",
    description="Listing search and availability-checked bookings.",
    version="1.0.0",
    lifespan=lifespan
)

register_exception_handlers(app)

app.include_router(listing_router.router)
app.include_router(booking_router.router)
app.include_router(client_router.router)


@app.get("/")
def read_root():
    return {"message": "Welcome to the StayBook API"}
