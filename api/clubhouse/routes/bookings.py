"""Booking routes: create and list."""

from fastapi import APIRouter, Depends, HTTPException, status

from clubhouse.core.dependencies import Caller, get_current_user
from clubhouse.core.errors import ConflictError, NotFoundError
from clubhouse.core.store import KeyValueStore, get_store
from clubhouse.schemas import BookingCreate, BookingOut
from clubhouse.services.bookings import create_booking as admit_booking
from clubhouse.services.bookings import list_user_bookings

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingOut)
async def create_booking(
    body: BookingCreate,
    caller: Caller = Depends(get_current_user),
    store: KeyValueStore = Depends(get_store),
):
    try:
        booking = await admit_booking(
            store,
            user_id=caller.user_id,
            court_id=body.court_id,
            date=body.date,
            start_time=body.start_time,
            end_time=body.end_time,
            notes=body.notes,
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message) from None
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from None

    return BookingOut.model_validate(booking)


@router.get("", response_model=list[BookingOut])
async def list_my_bookings(
    caller: Caller = Depends(get_current_user),
    store: KeyValueStore = Depends(get_store),
):
    return await list_user_bookings(store, caller.user_id)
