from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ..database import get_db
from ..models.user import AppUser
from ..permissions import Capability, require
from ..schemas.user import RoleCreate, RoleResponse, RoleUpdate
from ..services.user_service import UserService
from ..utils.dependencies import get_current_user

router = APIRouter(prefix="/api/roles", tags=["Roles"])


@router.get("", response_model=List[RoleResponse])
@router.get("/", response_model=List[RoleResponse])
async def list_roles(
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    require(current_user, Capability.VIEW)
    return UserService(db).list_roles()


@router.get("/capabilities", response_model=List[str])
async def list_capabilities(current_user: AppUser = Depends(get_current_user)):
    """Permission names a role can be granted."""
    return [c.value for c in Capability]


@router.post("", response_model=RoleResponse, status_code=201)
@router.post("/", response_model=RoleResponse, status_code=201)
async def create_role(
    role_data: RoleCreate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    return UserService(db).create_role(role_data, current_user)


@router.put("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: str,
    role_data: RoleUpdate,
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    return UserService(db).update_role(role_id, role_data, current_user)
