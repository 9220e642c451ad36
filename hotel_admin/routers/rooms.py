from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from ..database import get_db
from ..models.user import AppUser
from ..permissions import Capability, require
from ..schemas.catalog import RoomBulkCreate, RoomCreate, RoomResponse, RoomUpdate
from ..services.catalog_admin_service import CatalogAdminService
from ..utils.dependencies import get_current_user

router = APIRouter(prefix="/api/rooms", tags=["Rooms"])


@router.get("", response_model=List[RoomResponse])
@router.get("/", response_model=List[RoomResponse])
async def list_rooms(
    hotel_id: str = Query(..., min_length=1),
    room_type_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    require(current_user, Capability.VIEW)
    return CatalogAdminService(db).list_rooms(hotel_id, room_type_id)


@router.post("", response_model=RoomResponse, status_code=201)
@router.post("/", response_model=RoomResponse, status_code=201)
async def create_room(
    room_data: RoomCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    return CatalogAdminService(db).create_room(room_data, current_user)


@router.post("/bulk", response_model=List[RoomResponse], status_code=201)
async def bulk_create_rooms(
    bulk_data: RoomBulkCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    """Add rooms prefix + 001..N in one go."""
    return CatalogAdminService(db).bulk_create_rooms(bulk_data, current_user)


@router.patch("/{room_id}", response_model=RoomResponse)
async def update_room(
    room_id: str,
    room_data: RoomUpdate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    return CatalogAdminService(db).update_room(room_id, room_data, current_user)
