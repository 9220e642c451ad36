from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ..database import get_db
from ..models.user import AppUser, ROLE_LABELS, UserRole
from ..permissions import Capability, capabilities_for, require
from ..schemas.user import UserCreate, UserResponse, UserUpdate
from ..services.user_service import UserService
from ..utils.dependencies import get_current_user

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", response_model=List[UserResponse])
@router.get("/", response_model=List[UserResponse])
async def list_users(
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    require(current_user, Capability.MANAGE_USERS)
    return UserService(db).list_users()


@router.get("/me")
async def get_me(current_user: AppUser = Depends(get_current_user)):
    """Current user with the capabilities the UI should enable."""
    try:
        role_label = ROLE_LABELS.get(UserRole(current_user.role), current_user.role)
    except ValueError:
        role_label = current_user.role
    return {
        "id": current_user.id,
        "email": current_user.email,
        "full_name": current_user.full_name,
        "role": current_user.role,
        "role_label": role_label,
        "capabilities": sorted(
            c.value for c in capabilities_for(current_user.role, getattr(current_user, "permissions", None))
        ),
    }


@router.post("", response_model=UserResponse, status_code=201)
@router.post("/", response_model=UserResponse, status_code=201)
async def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    return UserService(db).create_user(user_data, current_user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    return UserService(db).update_user(user_id, user_data, current_user)


@router.patch("/{user_id}/toggle-active", response_model=UserResponse)
async def toggle_user_active(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    return UserService(db).toggle_active(user_id, current_user)
