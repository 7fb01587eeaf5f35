from sqlalchemy.orm import Session

import sara.repositories.contract as contract_repo
import sara.repositories.role as role_repo
import sara.repositories.user as user_repo
from sara.core.security import get_password_hash, validate_password
from sara.db.models.user import User as UserModel
from sara.errors import (
    DomainValidationError,
    DuplicateResourceError,
    ForbiddenError,
    NotFoundError,
)
from sara.schemas.user import UserCreate, UserSignup, UserUpdate


def _create_user_with_role(
    db: Session,
    email: str,
    name: str,
    password: str,
    role_id: int,
    rut: str | None = None,
) -> UserModel:
    existing_user = user_repo.get_user_by_email(db, email)
    if existing_user:
        raise DuplicateResourceError("Email already registered")

    is_valid, error_message = validate_password(password)
    if not is_valid:
        raise DomainValidationError(error_message)

    return user_repo.create_user(
        db,
        email=email,
        name=name,
        rut=rut,
        password_hash=get_password_hash(password),
        role_id=role_id,
    )


def create_user(db: Session, user_data: UserCreate) -> UserModel:
    """
    Create a new user with business logic validation (admin operation).

    - Validates email uniqueness
    - Validates password requirements
    - Validates role_id exists (if provided)
    - Defaults to "tenant" role if role_id not provided
    """
    if user_data.role_id is None:
        tenant_role = role_repo.get_role_by_name(db, "tenant")
        if not tenant_role:
            raise NotFoundError("Tenant role not found")
        role_id = tenant_role.id
    else:
        role = role_repo.get_role_by_id(db, user_data.role_id)
        if not role:
            raise NotFoundError(f"Role with id {user_data.role_id} not found")
        role_id = role.id

    return _create_user_with_role(
        db,
        email=user_data.email,
        name=user_data.name,
        password=user_data.password,
        role_id=role_id,
        rut=user_data.rut,
    )


def register_user(db: Session, signup_data: UserSignup) -> UserModel:
    """
    Self-service signup as a landlord or a tenant.

    Admin accounts can only be created by another admin.
    """
    role = role_repo.get_role_by_name(db, signup_data.role)
    if not role:
        raise NotFoundError(f"Role {signup_data.role} not found")

    return _create_user_with_role(
        db,
        email=signup_data.email,
        name=signup_data.name,
        password=signup_data.password,
        role_id=role.id,
        rut=signup_data.rut,
    )


def get_user(db: Session, user_id: int, current_user: UserModel) -> UserModel:
    """
    Get a user by ID with authorization checks.

    - Admin can get any user
    - Landlords and tenants can only get themselves

    Raises:
        NotFoundError: If user doesn't exist
        ForbiddenError: If a non-admin tries to access another user
    """
    user = user_repo.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    if current_user.role.name != "admin" and current_user.id != user_id:
        raise ForbiddenError("You can only access your own user information")

    return user


def update_user(
    db: Session,
    user_id: int,
    user_data: UserUpdate,
    current_user: UserModel,
) -> UserModel:
    """
    Update a user with authorization checks and business logic validation.

    - Admin can update any user (email, name, rut, role), but cannot change their own role
    - Landlords and tenants can only update themselves (email, name, rut, NOT role)

    Raises:
        NotFoundError: If user or role doesn't exist
        DuplicateResourceError: If email is already taken by another user
        ForbiddenError: If a non-admin updates another user or their role
        DomainValidationError: If any user tries to change their own role
    """
    user = user_repo.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    is_admin = current_user.role.name == "admin"
    if not is_admin and current_user.id != user_id:
        raise ForbiddenError("You can only update your own user information")

    if not is_admin and user_data.role_id is not None:
        raise ForbiddenError("You cannot modify your role")

    if current_user.id == user_id and user_data.role_id is not None:
        raise DomainValidationError("You cannot change your own role")

    if user_data.email is not None and user_data.email.lower() != user.email.lower():
        existing_user = user_repo.get_user_by_email(db, user_data.email)
        if existing_user:
            raise DuplicateResourceError("Email already registered")

    if user_data.role_id is not None:
        role = role_repo.get_role_by_id(db, user_data.role_id)
        if not role:
            raise NotFoundError(f"Role with id {user_data.role_id} not found")

    return user_repo.update_user(
        db,
        user_id=user_id,
        email=user_data.email,
        name=user_data.name,
        rut=user_data.rut,
        role_id=user_data.role_id,
    )


def get_all_users(
    db: Session, page: int = 1, page_size: int = 100, name: str | None = None
) -> tuple[list[UserModel], int]:
    """Get all users with pagination. Admin-only, checked at the router."""
    return user_repo.get_all_users_paginated(
        db, page=page, page_size=page_size, name=name
    )


def delete_user(db: Session, user_id: int) -> None:
    """
    Delete a user with business logic validation.

    - Validates user exists
    - Validates user is not an admin (cannot delete admin users)
    - Validates user has no contracts, as landlord or as tenant

    Raises:
        NotFoundError: If user doesn't exist
        DomainValidationError: If user is an admin or has contracts
    """
    user = user_repo.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    if user.role.name == "admin":
        raise DomainValidationError("Cannot delete user: admin users cannot be deleted")

    if contract_repo.get_contracts_by_user_id(db, user_id):
        raise DomainValidationError("Cannot delete user: user has associated contracts")

    if user.properties:
        raise DomainValidationError("Cannot delete user: user has registered properties")

    user_repo.delete_user(db, user_id)
