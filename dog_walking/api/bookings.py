from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, Response

from dog_walking.api.dependencies import get_database
from dog_walking.models.entities import (
    Booking,
    BookingRequest,
    CancelResult,
    CancelStatus,
    FullBooking,
    to_booking,
)
from dog_walking.services.db_service import Database

router = APIRouter()

@router.post("/booking", response_model=Booking)
async def create_booking(req: BookingRequest, db: Database = Depends(get_database)):
    return await db.create_booking(to_booking(req))

@router.get("/bookings", response_model=List[FullBooking])
async def get_bookings(sort: bool = False, db: Database = Depends(get_database)):
    """Upcoming, non-canceled bookings as of the time of the request."""
    return await db.list_upcoming_bookings(datetime.now(timezone.utc), sort=sort)

@router.put("/booking/{booking_id}/cancel", response_model=CancelResult)
async def cancel_booking(booking_id: str, response: Response, db: Database = Depends(get_database)):
    result = await db.cancel_booking(booking_id)
    if result.status == CancelStatus.NOT_FOUND:
        response.status_code = 404
    return result
