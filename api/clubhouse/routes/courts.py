"""Court catalog routes: list, create (admin) and slot availability."""

import logging
import uuid
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from clubhouse.core.dependencies import Caller, require_admin
from clubhouse.core.errors import NotFoundError
from clubhouse.core.store import KeyValueStore, get_store
from clubhouse.models.court import COURT_CATALOG_PARTITION, court_catalog_sort_key, court_key
from clubhouse.schemas import AvailabilityOut, CourtCreate, CourtOut, SlotRequest
from clubhouse.services.booking_rules import check_availability

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/courts", tags=["courts"])


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.get("", response_model=list[CourtOut])
async def list_courts(store: KeyValueStore = Depends(get_store)):
    courts = await store.query_index("GSI1", COURT_CATALOG_PARTITION, "COURT#")
    return [court for court in courts if court.get("is_active")]


@router.get("/{court_id}/availability", response_model=AvailabilityOut)
async def get_court_availability(
    court_id: str,
    query_date: str = Query(..., alias="date", description="Date in YYYY-MM-DD format"),
    start_time: str = Query(..., description="HH:MM"),
    end_time: str = Query(..., description="HH:MM"),
    store: KeyValueStore = Depends(get_store),
):
    """Would a booking for this court and time range be admitted right now?

    404 if the court does not exist or is inactive.
    """
    try:
        slot = SlotRequest(date=query_date, start_time=start_time, end_time=end_time)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from None

    try:
        availability = await check_availability(store, court_id, slot.date, slot.start_time, slot.end_time)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message) from None

    return AvailabilityOut(
        court_id=court_id,
        date=slot.date,
        start_time=slot.start_time,
        end_time=slot.end_time,
        available=availability.available,
    )


# ---------------------------------------------------------------------------
# Admin endpoints
# ---------------------------------------------------------------------------


@router.post("", response_model=CourtOut, status_code=status.HTTP_201_CREATED)
async def create_court(
    body: CourtCreate,
    caller: Caller = Depends(require_admin),
    store: KeyValueStore = Depends(get_store),
):
    court_id = str(uuid.uuid4())
    now = datetime.now(UTC).isoformat()
    pk, sk = court_key(court_id)

    court = {
        "pk": pk,
        "sk": sk,
        "gsi1pk": COURT_CATALOG_PARTITION,
        "gsi1sk": court_catalog_sort_key(court_id),
        "court_id": court_id,
        "name": body.name,
        "type": body.type.value,
        "hourly_rate": body.hourly_rate,
        "description": body.description,
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    }
    await store.put(court)
    logger.info("Court %s (%s) created by %s", court_id, body.name, caller.user_id)
    return court
