from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from ..database import get_db
from ..models.user import AppUser
from ..permissions import Capability, require
from ..schemas.catalog import HotelCreate, HotelResponse, HotelUpdate, RoomTypeResponse
from ..services.catalog_admin_service import CatalogAdminService
from ..services.catalog_service import CatalogService, RoomTypeCapacity
from ..utils.dependencies import get_current_user

router = APIRouter(prefix="/api/hotels", tags=["Hotels"])


def to_room_type_response(item: RoomTypeCapacity) -> RoomTypeResponse:
    rt = item.room_type
    return RoomTypeResponse(
        id=rt.id,
        hotel_id=rt.hotel_id,
        name=rt.name,
        description=rt.description,
        base_price=rt.base_price or 0,
        max_occupancy=rt.max_occupancy or 1,
        total_rooms=rt.total_rooms,
        capacity=item.capacity,
        is_active=rt.is_active
    )


@router.get("", response_model=List[HotelResponse])
@router.get("/", response_model=List[HotelResponse])
async def list_hotels(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    require(current_user, Capability.VIEW)
    return CatalogService(db).list_hotels(include_inactive=include_inactive)


@router.get("/{hotel_id}/room-types", response_model=List[RoomTypeResponse])
async def list_room_types(
    hotel_id: str,
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    """Room types of the hotel with their resolved capacity."""
    require(current_user, Capability.VIEW)
    room_types = CatalogService(db).list_room_types(hotel_id, include_inactive=include_inactive)
    return [to_room_type_response(item) for item in room_types]


@router.post("", response_model=HotelResponse, status_code=201)
@router.post("/", response_model=HotelResponse, status_code=201)
async def create_hotel(
    hotel_data: HotelCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    return CatalogAdminService(db).create_hotel(hotel_data, current_user)


@router.put("/{hotel_id}", response_model=HotelResponse)
async def update_hotel(
    hotel_id: str,
    hotel_data: HotelUpdate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    return CatalogAdminService(db).update_hotel(hotel_id, hotel_data, current_user)


@router.delete("/{hotel_id}", response_model=HotelResponse)
async def deactivate_hotel(
    hotel_id: str,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    """Hotels are never deleted, only taken out of the catalog."""
    return CatalogAdminService(db).deactivate_hotel(hotel_id, current_user)
