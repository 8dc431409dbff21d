from typing import List

from fastapi import APIRouter, Depends

from .. import schemas
from ..dependencies import get_listing_store
from ..exceptions import ClientNotFoundError
from ..store import SqlListingStore

router = APIRouter(prefix="/clients", tags=["Clients"])


@router.get("/{client_id}/bookings", response_model=List[schemas.ClientBookingRead])
def read_client_bookings(
        client_id: str,
        store: SqlListingStore = Depends(get_listing_store)
):
    """
    Get the booking history of a client.
    """
    history = store.get_client_history(client_id)
    if history is None:
        raise ClientNotFoundError(client_id)
    return history
