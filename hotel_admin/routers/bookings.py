from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging

from ..database import get_db
from ..models.booking import Booking
from ..models.user import AppUser
from ..permissions import Capability, require
from ..schemas.booking import (
    BookingCreate, BookingResponse, BookingRoomResponse, BookingSearch,
    BookingStatus, BookingUpdate, CustomerResponse
)
from ..services.booking_service import BookingService
from ..utils.dependencies import get_current_user
from ..utils.rate_limiter import get_rate_limit, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


def to_booking_response(booking: Booking) -> BookingResponse:
    """Flatten a booking with its hotel, customer and line items."""
    return BookingResponse(
        id=booking.id,
        confirmation_id=booking.confirmation_id,
        hotel_id=booking.hotel_id,
        hotel_name=booking.hotel.name if booking.hotel else "",
        customer=CustomerResponse.model_validate(booking.customer) if booking.customer else None,
        check_in=booking.check_in,
        check_out=booking.check_out,
        nights=booking.nights,
        total_price=booking.total_price,
        notes=booking.notes,
        status=booking.status,
        rooms=[
            BookingRoomResponse(
                room_type_id=item.room_type_id,
                room_type_name=item.room_type.name if item.room_type else "",
                room_id=item.room_id,
                quantity=item.quantity
            )
            for item in booking.rooms
        ],
        created_at=booking.created_at,
        updated_at=booking.updated_at
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=BookingResponse)
@router.post("/", status_code=status.HTTP_201_CREATED, response_model=BookingResponse)
@limiter.limit(get_rate_limit("booking_create"))
async def create_booking(
    request: Request,
    booking_data: BookingCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    """Create a booking with its line items and inventory slots."""
    booking, _ = BookingService(db).create_booking(booking_data, current_user)
    return to_booking_response(booking)


@router.get("/search", response_model=List[BookingResponse])
@router.get("/search/", response_model=List[BookingResponse])
@limiter.limit(get_rate_limit("search"))
async def search_bookings(
    request: Request,
    confirmation_id: Optional[str] = Query(None),
    name: Optional[str] = Query(None),
    phone: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    hotel_name: Optional[str] = Query(None),
    stay_date: Optional[date] = Query(None, alias="date"),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    require(current_user, Capability.VIEW)
    criteria = BookingSearch(
        confirmation_id=confirmation_id,
        name=name,
        phone=phone,
        email=email,
        hotel_name=hotel_name,
        stay_date=stay_date,
        status=booking_status
    )
    return [to_booking_response(b) for b in BookingService(db).search_bookings(criteria)]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    require(current_user, Capability.VIEW)
    return to_booking_response(BookingService(db).get_booking(booking_id))


@router.put("/{booking_id}", response_model=BookingResponse)
@limiter.limit(get_rate_limit("booking_update"))
async def update_booking(
    request: Request,
    booking_id: str,
    booking_data: BookingUpdate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    """Change dates, hotel or rooms; the booking's slots are reallocated."""
    service = BookingService(db)
    service.update_booking(booking_id, booking_data, current_user)
    return to_booking_response(service.get_booking(booking_id))


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str,
    reason: Optional[str] = Query(None, max_length=500),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    service = BookingService(db)
    service.cancel_booking(booking_id, current_user, reason=reason)
    return to_booking_response(service.get_booking(booking_id))


@router.delete("/{booking_id}")
@limiter.limit(get_rate_limit("booking_delete"))
async def delete_booking(
    request: Request,
    booking_id: str,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    BookingService(db).delete_booking(booking_id, current_user)
    return {"message": "Booking deleted", "id": booking_id}
