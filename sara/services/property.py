from sqlalchemy.orm import Session

import sara.repositories.contract as contract_repo
import sara.repositories.property as property_repo
from sara.db.models.property import Property as PropertyModel
from sara.db.models.user import User
from sara.errors import (
    DomainValidationError,
    DuplicateResourceError,
    ForbiddenError,
    NotFoundError,
)


def list_properties_for_user(db: Session, current_user: User) -> list[PropertyModel]:
    """
    List properties visible to the given user (business access rules).

    - Admin: all properties
    - Landlord: the properties they own
    - Tenant: the properties of their active contracts
    """
    role = current_user.role.name
    if role == "admin":
        return property_repo.get_all_properties(db)
    if role == "landlord":
        return property_repo.get_properties_by_owner_id(db, current_user.id)
    return property_repo.get_properties_with_active_contracts_by_tenant_id(
        db, current_user.id
    )


def get_property(db: Session, property_id: int, current_user: User) -> PropertyModel:
    """
    Get a property visible to the given user.

    Raises:
        NotFoundError: If property doesn't exist
        ForbiddenError: If the user is neither an admin, the owner nor a current tenant
    """
    property_ = property_repo.get_property_by_id(db, property_id)
    if not property_:
        raise NotFoundError("Property not found")

    if current_user.role.name == "admin" or property_.owner_id == current_user.id:
        return property_

    rented = property_repo.get_properties_with_active_contracts_by_tenant_id(
        db, current_user.id
    )
    if any(p.id == property_id for p in rented):
        return property_

    raise ForbiddenError("You do not have access to this property")


def _get_owned_property(db: Session, property_id: int, owner: User) -> PropertyModel:
    property_ = property_repo.get_property_by_id(db, property_id)
    if not property_:
        raise NotFoundError("Property not found")
    if property_.owner_id != owner.id:
        raise ForbiddenError("Only the owner of the property can modify it")
    return property_


def create_property(db: Session, owner: User, **fields) -> PropertyModel:
    """
    Register a property for a landlord.

    - Enforces uniqueness of the code among the landlord's properties

    Raises:
        DuplicateResourceError: If the landlord already has a property with that code
    """
    code = fields["code"]
    if property_repo.get_property_by_owner_code(db, owner.id, code):
        raise DuplicateResourceError(f"You already have a property with code {code}")

    return property_repo.create_property(db, owner_id=owner.id, **fields)


def update_property(db: Session, property_id: int, owner: User, **fields) -> PropertyModel:
    """
    Update one of the landlord's properties.

    Raises:
        NotFoundError: If property doesn't exist
        ForbiddenError: If the caller does not own it
        DuplicateResourceError: If the new code is taken by another of their properties
    """
    _get_owned_property(db, property_id, owner)

    code = fields.get("code")
    if code is not None and property_repo.get_property_by_owner_code(
        db, owner.id, code, exclude_id=property_id
    ):
        raise DuplicateResourceError(f"You already have a property with code {code}")

    return property_repo.update_property(db, property_id, **fields)


def delete_property(db: Session, property_id: int, owner: User) -> None:
    """
    Delete one of the landlord's properties.

    Raises:
        NotFoundError: If property doesn't exist
        ForbiddenError: If the caller does not own it
        DomainValidationError: If the property has contracts
    """
    _get_owned_property(db, property_id, owner)

    if contract_repo.get_contracts_by_property_id(db, property_id):
        raise DomainValidationError(
            "Cannot delete property: property has associated contracts"
        )

    property_repo.delete_property(db, property_id)
