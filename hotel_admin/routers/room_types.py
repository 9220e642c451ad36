from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import AppUser
from ..schemas.catalog import RoomTypeCreate, RoomTypeResponse, RoomTypeUpdate
from ..services.catalog_admin_service import CatalogAdminService
from ..services.catalog_service import CatalogService
from ..utils.dependencies import get_current_user
from .hotels import to_room_type_response

router = APIRouter(prefix="/api/room-types", tags=["Room types"])


def _with_capacity(db: Session, room_type_id: str) -> RoomTypeResponse:
    return to_room_type_response(CatalogService(db).room_type_capacity(room_type_id))


@router.post("", response_model=RoomTypeResponse, status_code=201)
@router.post("/", response_model=RoomTypeResponse, status_code=201)
async def create_room_type(
    room_type_data: RoomTypeCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    """Create a room type, optionally with its rooms from a number range."""
    room_type = CatalogAdminService(db).create_room_type(room_type_data, current_user)
    return _with_capacity(db, room_type.id)


@router.put("/{room_type_id}", response_model=RoomTypeResponse)
async def update_room_type(
    room_type_id: str,
    room_type_data: RoomTypeUpdate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    CatalogAdminService(db).update_room_type(room_type_id, room_type_data, current_user)
    return _with_capacity(db, room_type_id)


@router.delete("/{room_type_id}", response_model=RoomTypeResponse)
async def deactivate_room_type(
    room_type_id: str,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    CatalogAdminService(db).deactivate_room_type(room_type_id, current_user)
    return _with_capacity(db, room_type_id)
