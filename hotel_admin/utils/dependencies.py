from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from typing import Optional

from ..database import get_db
from ..models.user import AppUser, Role
from .logging_config import user_id_var
from .security import verify_access_token

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> AppUser:
    """
    Resolve the bearer token to an active AppUser.

    The token's `sub` claim is the identity-provider id stored in
    AppUser.auth_id. The permissions of the user's Role row are attached
    as `user.permissions` for the policy checks.
    """
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise unauthorized

    payload = verify_access_token(credentials.credentials)
    if payload is None:
        raise unauthorized

    user = db.query(AppUser).filter(AppUser.auth_id == payload["sub"]).first()
    if user is None:
        raise unauthorized
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")

    role = db.query(Role).filter(Role.name == user.role).first()
    user.permissions = list(role.permissions or []) if role else []
    user_id_var.set(user.id)
    return user
