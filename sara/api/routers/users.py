from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from sara.api.deps import get_db, get_current_user, require_roles
from sara.db.models.user import User as UserModel
from sara.schemas.pagination import PaginatedResponse
from sara.schemas.user import User, UserCreate, UserUpdate
from sara.services import user as user_service

router = APIRouter(prefix="/users", tags=["users"])

admin_only = require_roles("admin")


@router.post("", response_model=User, status_code=status.HTTP_201_CREATED)
def create_account(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    _admin: UserModel = Depends(admin_only),
):
    """
    Create an account on behalf of someone (admin only).

    Without ``role_id`` the account is a tenant. Landlords and tenants
    normally register themselves through ``/auth/signup``.
    """
    return User.model_validate(user_service.create_user(db, user_data))


@router.get("", response_model=PaginatedResponse[User])
def list_accounts(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(100, ge=1, le=1000, description="Number of items per page"),
    name: str | None = Query(None, description="Case-insensitive partial match on the name"),
    db: Session = Depends(get_db),
    _admin: UserModel = Depends(admin_only),
):
    """Every account on the platform, sorted by name (admin only)."""
    users, total = user_service.get_all_users(db, page=page, page_size=page_size, name=name)
    return PaginatedResponse[User].build(users, total, page, page_size, schema=User)


@router.get("/{user_id}", response_model=User)
def read_account(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    """An account's profile. Landlords and tenants may only read their own."""
    return User.model_validate(user_service.get_user(db, user_id, current_user))


@router.put("/{user_id}", response_model=User)
def edit_account(
    user_id: int,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    """
    Edit email, name, RUT and, for admins, the role of another account.

    Landlords and tenants may only edit their own profile and never their role.
    Nobody can change their own role.
    """
    return User.model_validate(user_service.update_user(db, user_id, user_data, current_user))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_account(
    user_id: int,
    db: Session = Depends(get_db),
    _admin: UserModel = Depends(admin_only),
):
    """
    Delete an account (admin only).

    Refused for admins, and for landlords or tenants that still have
    contracts or properties.
    """
    user_service.delete_user(db, user_id)
